"""
Serves the browser client for GET requests outside the Patient API.
"""

import logging
import mimetypes
from pathlib import Path

from werkzeug.security import safe_join

from patients_api.common.common import FlaskResponse, error_response, no_content

logger = logging.getLogger(__name__)

DEFAULT_MIMETYPE = "application/octet-stream"
INDEX_FILE = "index.html"
FAVICON_PATH = "/favicon.ico"


class StaticFileServer:
    def __init__(self, client_dir: Path) -> None:
        self.client_dir = Path(client_dir)

    def serve(self, pathname: str) -> FlaskResponse:
        """
        Return the file at ``pathname`` under the client directory.

        ``/`` serves ``index.html``. A missing ``/favicon.ico`` answers ``204`` so
        browsers stop asking for it.

        :param pathname: Normalised request path, always starting with ``/``.
        """
        if pathname == "/":
            pathname = f"/{INDEX_FILE}"

        file_path = safe_join(str(self.client_dir), pathname.lstrip("/"))
        if file_path is None:
            return error_response(403, "Forbidden")

        try:
            data = Path(file_path).read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            if pathname == FAVICON_PATH:
                return no_content()
            return error_response(404, f"File not found: {pathname}")
        except ValueError:
            # Paths with an embedded NUL byte name no file.
            return error_response(404, f"File not found: {pathname}")
        except OSError as err:
            logger.exception("Error reading %s", file_path)
            return error_response(500, f"Error reading file: {err.strerror}")

        mimetype, _ = mimetypes.guess_type(file_path)
        return FlaskResponse(
            status_code=200,
            data=data,
            headers={"Content-Type": mimetype or DEFAULT_MIMETYPE},
        )
