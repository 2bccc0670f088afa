"""
Controller layer mapping Patient HTTP operations onto the repository
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from patients_api import patient_model
from patients_api.common.common import (
    FlaskResponse,
    coerce_positive_int,
    error_response,
    json_response,
    no_content,
)

if TYPE_CHECKING:
    from patients_api.repository import PatientRepository

logger = logging.getLogger(__name__)


@dataclass
class RequestError(Exception):
    """
    Raised (and handled) when there is a problem with the incoming request.

    Instances of this exception are caught by controller entry points and converted
    into an appropriate :class:`FlaskResponse`.

    :param status_code: HTTP status code that should be returned.
    :param message: Human-readable error message.
    """

    status_code: int
    message: str

    def __str__(self) -> str:
        """
        Coercing this exception to a string returns the error message.

        :returns: The error message.
        """
        return self.message


class Controller:
    """
    Orchestrates one Patient operation per call.

    Entry points:
        - ``create_patient(body) -> FlaskResponse``
        - ``read_patient(patient_id) -> FlaskResponse``
        - ``update_patient(patient_id, body) -> FlaskResponse``
        - ``delete_patient(patient_id) -> FlaskResponse``
        - ``list_patient_ids() -> FlaskResponse``
    """

    def __init__(self, repository: PatientRepository, base_path: str = "") -> None:
        """
        Create a controller instance.

        :param repository: Repository holding the Patient records.
        :param base_path: URL prefix used when building ``Location`` headers.
        """
        self.repository = repository
        self.base_path = base_path

    def create_patient(self, body: bytes) -> FlaskResponse:
        """
        Handle ``POST /Patient``.

        :param body: Raw request body.
        :returns: ``201`` with the created record and a ``Location`` header.
        """
        try:
            patient_data = self._read_json_body(body)
            self._validate_structure(patient_data)
            created = self.repository.create(patient_data)
        except RequestError as err:
            return error_response(err.status_code, str(err))
        except Exception as err:
            return self._internal_error("create", err)

        patient_id = patient_model.get_identifier(created)
        return json_response(
            201,
            created,
            headers={"Location": f"{self.base_path}/Patient/{patient_id}"},
        )

    def read_patient(self, patient_id: object) -> FlaskResponse:
        """Handle ``GET /Patient/{id}``."""
        try:
            numeric_id = self._validate_patient_id(patient_id)
            patient = self.repository.get_by_id(numeric_id)
            if patient is None:
                raise RequestError(status_code=404, message="Patient not found")
        except RequestError as err:
            return error_response(err.status_code, str(err))
        except Exception as err:
            return self._internal_error("read", err)

        return json_response(200, patient)

    def update_patient(self, patient_id: object, body: bytes) -> FlaskResponse:
        """
        Handle ``PUT /Patient/{id}``.

        The body's ``identifier``, when present, must equal the URL identifier.
        This is checked before the repository is touched, so an inconsistent
        request never changes stored state.
        """
        try:
            numeric_id = self._validate_patient_id(patient_id)
            patient_data = self._read_json_body(body)
            self._validate_structure(patient_data)

            if patient_model.identifier_conflicts(patient_data, numeric_id):
                raise RequestError(
                    status_code=400,
                    message=(
                        "Identifier mismatch: URL ID does not match patient identifier"
                    ),
                )

            updated = self.repository.update(numeric_id, patient_data)
            if updated is None:
                raise RequestError(status_code=404, message="Patient not found")
        except RequestError as err:
            return error_response(err.status_code, str(err))
        except Exception as err:
            return self._internal_error("update", err)

        return json_response(200, updated)

    def delete_patient(self, patient_id: object) -> FlaskResponse:
        """Handle ``DELETE /Patient/{id}``."""
        try:
            numeric_id = self._validate_patient_id(patient_id)
            if self.repository.delete(numeric_id) is None:
                raise RequestError(status_code=404, message="Patient not found")
        except RequestError as err:
            return error_response(err.status_code, str(err))
        except Exception as err:
            return self._internal_error("delete", err)

        return no_content()

    def list_patient_ids(self) -> FlaskResponse:
        """Handle ``GET /PatientIDs``; ``204`` when the store is empty."""
        try:
            patient_ids = self.repository.list_ids()
        except Exception as err:
            return self._internal_error("list", err)

        if not patient_ids:
            return no_content()
        return json_response(200, patient_ids)

    @staticmethod
    def _validate_patient_id(patient_id: object) -> int:
        """
        :raises RequestError: If ``patient_id`` is not a positive integer.
        """
        numeric_id = coerce_positive_int(patient_id)
        if numeric_id is None:
            raise RequestError(status_code=400, message="Invalid patient ID")
        return numeric_id

    @staticmethod
    def _read_json_body(body: bytes) -> object:
        """
        Decode a fully received request body.

        :raises RequestError: If the body is empty or is not valid UTF-8 JSON.
        """
        if not body:
            raise RequestError(status_code=400, message="Request body is empty")

        try:
            return json.loads(body.decode("utf-8"))
        except ValueError as err:
            # Covers both UnicodeDecodeError and json.JSONDecodeError
            raise RequestError(status_code=400, message=f"Invalid JSON: {err}") from err

    @staticmethod
    def _validate_structure(patient_data: object) -> None:
        validation = patient_model.validate_structure(patient_data)
        if not validation.valid:
            raise RequestError(
                status_code=400,
                message="Invalid patient data: " + ", ".join(validation.errors),
            )

    @staticmethod
    def _internal_error(operation: str, err: Exception) -> FlaskResponse:
        logger.exception("Unexpected error during %s", operation)
        return error_response(500, f"Internal server error: {err}")
