"""
Module: patients_api.router

Manual routing of Patient API requests.

Route table (after path normalisation):

    POST    /Patient        -> create
    GET     /Patient/{id}   -> read
    PUT     /Patient/{id}   -> update
    DELETE  /Patient/{id}   -> delete
    GET     /PatientIDs     -> list
    GET     anything not starting with /Patient -> static client files

Everything else is ``404 Route not found``. ``{id}`` must be a positive integer
written as plain digits, otherwise the request is rejected with ``400`` before the
controller is reached.
"""

import logging
import re
from dataclasses import dataclass
from enum import StrEnum

from patients_api.common.common import FlaskResponse, error_response
from patients_api.controller import Controller, RequestError
from patients_api.static_files import StaticFileServer

logger = logging.getLogger(__name__)

PATIENT_PREFIX = "/Patient"
PATIENT_ITEM_PREFIX = "/Patient/"
PATIENT_IDS_PATH = "/PatientIDs"

_DIGITS = re.compile(r"[0-9]+")


class Action(StrEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    STATIC = "static"


@dataclass(frozen=True)
class Route:
    action: Action
    path: str
    patient_id: int | None = None


def normalize_path(pathname: str, base_path: str = "") -> str:
    """
    Normalise a request path before matching.

    1) Strip a single trailing slash (the root ``/`` is left alone).
    2) Strip ``base_path`` if the path starts with it.
    3) Ensure a single leading slash.
    """
    normalized = pathname
    if len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized[:-1]

    if base_path and normalized.startswith(base_path):
        normalized = normalized[len(base_path) :]

    if not normalized.startswith("/"):
        normalized = "/" + normalized

    return normalized


def extract_id(pathname: str, prefix: str = PATIENT_ITEM_PREFIX) -> int | None:
    """
    Parse the identifier following ``prefix``.

    :returns: The identifier, or ``None`` unless the remainder is only digits and
        greater than zero.
    """
    if not pathname.startswith(prefix):
        return None

    id_part = pathname[len(prefix) :]
    if not _DIGITS.fullmatch(id_part):
        return None

    try:
        patient_id = int(id_part)
    except ValueError:
        return None
    return patient_id if patient_id > 0 else None


class Router:
    """
    Stateless dispatcher from method + path to controller operations.

    Entry points:
        - ``resolve(method, pathname) -> Route``
        - ``dispatch(method, pathname, body) -> FlaskResponse``
    """

    def __init__(
        self,
        controller: Controller,
        static_files: StaticFileServer,
        base_path: str = "",
    ) -> None:
        self.controller = controller
        self.static_files = static_files
        self.base_path = base_path

    def resolve(self, method: str, pathname: str) -> Route:
        """
        Match a request against the route table.

        :param method: HTTP method, upper case.
        :param pathname: Request path, without query string.
        :returns: The matched :class:`Route`.
        :raises RequestError: ``400`` for a malformed ``{id}``, ``404`` when no
            route matches.
        """
        path = normalize_path(pathname, self.base_path)

        if method == "GET" and not path.startswith(PATIENT_PREFIX):
            return Route(action=Action.STATIC, path=path)

        if method == "POST" and path == PATIENT_PREFIX:
            return Route(action=Action.CREATE, path=path)

        if method == "GET" and path == PATIENT_IDS_PATH:
            return Route(action=Action.LIST, path=path)

        item_actions = {
            "GET": Action.READ,
            "PUT": Action.UPDATE,
            "DELETE": Action.DELETE,
        }
        if method in item_actions and path.startswith(PATIENT_ITEM_PREFIX):
            patient_id = extract_id(path)
            if patient_id is None:
                raise RequestError(status_code=400, message="Invalid patient ID in URL")
            return Route(action=item_actions[method], path=path, patient_id=patient_id)

        raise RequestError(status_code=404, message=f"Route not found: {method} {path}")

    def dispatch(self, method: str, pathname: str, body: bytes = b"") -> FlaskResponse:
        """
        Route one request and return the response to send.

        Unexpected failures are logged and reported as ``500``.
        """
        try:
            route = self.resolve(method, pathname)
            return self._call(route, body)
        except RequestError as err:
            return error_response(err.status_code, str(err))
        except Exception:
            logger.exception("Unhandled error routing %s %s", method, pathname)
            return error_response(500, "Internal server error")

    def _call(self, route: Route, body: bytes) -> FlaskResponse:
        match route.action:
            case Action.STATIC:
                return self.static_files.serve(route.path)
            case Action.CREATE:
                return self.controller.create_patient(body)
            case Action.LIST:
                return self.controller.list_patient_ids()
            case Action.READ:
                return self.controller.read_patient(route.patient_id)
            case Action.UPDATE:
                return self.controller.update_patient(route.patient_id, body)
            case Action.DELETE:
                return self.controller.delete_patient(route.patient_id)
