import logging
import os
import signal
from types import FrameType
from typing import Any, TypedDict

from flask import Flask, Response, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed

from patients_api.common.common import FlaskResponse, error_response
from patients_api.config import Config
from patients_api.controller import Controller
from patients_api.persistence import JsonFileStore
from patients_api.repository import PatientRepository
from patients_api.router import Router
from patients_api.static_files import StaticFileServer

logger = logging.getLogger(__name__)

ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]
REPOSITORY_EXTENSION = "patients_repository"


class HealthStatus(TypedDict):
    status: str


def get_app_host() -> str:
    host = os.getenv("FLASK_HOST")
    if host is None:
        raise RuntimeError("FLASK_HOST environment variable is not set.")
    return host


def get_app_port() -> int:
    port = os.getenv("FLASK_PORT")
    if port is None:
        raise RuntimeError("FLASK_PORT environment variable is not set.")
    return int(port)


def to_flask_response(flask_response: FlaskResponse) -> Response:
    """Convert a controller/router :class:`FlaskResponse` into a Flask response."""
    response = Response(
        response=flask_response.data,
        status=flask_response.status_code,
        headers=flask_response.headers,
    )
    if flask_response.data is None:
        # Bodiless responses (204) carry no content type.
        response.headers.pop("Content-Type", None)
    return response


def create_app(
    config: Config | None = None, repository: PatientRepository | None = None
) -> Flask:
    """
    Build the application and its collaborators.

    :param config: Settings; read from the environment when omitted.
    :param repository: Pre-built repository; built from ``config`` when omitted.
    :returns: The configured Flask app. The repository is kept in
        ``app.extensions["patients_repository"]``.
    """
    config = config or Config.from_env()

    if repository is None:
        store = JsonFileStore(config.data_file) if config.enable_persistence else None
        repository = PatientRepository(store=store)
        repository.initialize()

    router = Router(
        controller=Controller(repository, base_path=config.base_path),
        static_files=StaticFileServer(config.client_dir),
        base_path=config.base_path,
    )

    app = Flask(__name__, static_folder=None)
    app.extensions[REPOSITORY_EXTENSION] = repository

    @app.before_request
    def log_request() -> None:
        logger.info("%s %s", request.method, request.full_path.rstrip("?"))

    @app.route("/health", methods=["GET"], provide_automatic_options=False)
    def health_check() -> tuple[HealthStatus, int]:
        """Health check endpoint."""
        return {"status": "healthy"}, 200

    @app.route(
        "/",
        defaults={"path": ""},
        methods=ROUTED_METHODS,
        provide_automatic_options=False,
    )
    @app.route(
        "/<path:path>", methods=ROUTED_METHODS, provide_automatic_options=False
    )
    def route_request(path: str) -> Response:  # noqa: ARG001
        """Hand every other request to the manual router."""
        return to_flask_response(
            router.dispatch(request.method, request.path, request.get_data())
        )

    @app.errorhandler(MethodNotAllowed)
    def route_unlisted_method(err: MethodNotAllowed) -> Response:  # noqa: ARG001
        """Methods no Flask rule accepts still get the router's JSON 404."""
        return to_flask_response(
            router.dispatch(request.method, request.path, request.get_data())
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception) -> Any:
        if isinstance(err, HTTPException):
            return err
        logger.exception("Unhandled error in request handler: %s", err)
        return to_flask_response(error_response(500, "Internal server error"))

    return app


def _exit_on_sigterm(signum: int, frame: FrameType | None) -> None:  # noqa: ARG001
    raise SystemExit(0)


def main() -> None:
    config = Config.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    host = get_app_host()
    port = get_app_port()

    app = create_app(config)
    repository: PatientRepository = app.extensions[REPOSITORY_EXTENSION]

    logger.info("API and client running at http://%s:%d/", host, port)
    logger.info("Base path for API: %r", config.base_path or "/")
    logger.info(
        "Persistence: %s",
        f"enabled ({config.data_file})" if config.enable_persistence else "disabled",
    )
    logger.info(
        "Endpoints: POST /Patient, GET|PUT|DELETE /Patient/<ID>, GET /PatientIDs"
    )

    signal.signal(signal.SIGTERM, _exit_on_sigterm)
    try:
        app.run(host=host, port=port)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down, flushing repository")
        repository.close()


if __name__ == "__main__":
    main()
