"""
Pure functions operating on Patient records.

Nothing in this module performs I/O or touches repository state; records are
plain dictionaries shaped like :class:`fhir.patient.Patient`.
"""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import cast

from fhir.patient import Patient

from patients_api.common.common import coerce_positive_int, is_positive_int

RESOURCE_TYPE = "Patient"


class InvalidIdentifierError(ValueError):
    """Raised when an identifier that is not a positive integer is assigned."""


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


def create_template() -> Patient:
    return {"resourceType": RESOURCE_TYPE}


def validate_structure(record: object) -> ValidationResult:
    """
    Check the type shape of an incoming Patient record.

    Every violated rule is reported, not just the first. A missing
    ``resourceType`` is tolerated because :func:`normalize` sets it.

    :param record: Decoded JSON request body.
    :returns: A :class:`ValidationResult` listing all violations.
    """
    if not isinstance(record, Mapping):
        return ValidationResult(valid=False, errors=["Patient must be an object"])

    errors: list[str] = []

    if "resourceType" in record and record["resourceType"] != RESOURCE_TYPE:
        errors.append(f'resourceType must be "{RESOURCE_TYPE}"')

    if "active" in record and not isinstance(record["active"], bool):
        errors.append("active must be a boolean")

    if "gender" in record and not isinstance(record["gender"], str):
        errors.append("gender must be a string")

    if "birthDate" in record and not isinstance(record["birthDate"], str):
        errors.append("birthDate must be a string")

    if "name" in record and not isinstance(record["name"], list):
        errors.append("name must be an array")

    return ValidationResult(valid=not errors, errors=errors)


def normalize(record: object) -> Patient:
    """
    Return a fresh copy of ``record`` with ``resourceType`` forced to "Patient".

    Input that is not a mapping is replaced by the empty template record.
    """
    if not isinstance(record, Mapping):
        return create_template()

    normalized = cast("Patient", copy.deepcopy(dict(record)))
    normalized["resourceType"] = RESOURCE_TYPE
    return normalized


def assign_identifier(record: Patient, patient_id: int) -> Patient:
    """
    Set ``record["identifier"]`` in place.

    :param record: Record to update. It is mutated, not copied.
    :param patient_id: Identifier to assign.
    :returns: The same record.
    :raises InvalidIdentifierError: If ``patient_id`` is not a positive integer.
    """
    if not is_positive_int(patient_id):
        raise InvalidIdentifierError("Identifier must be a positive integer")

    record["identifier"] = patient_id
    return record


def get_identifier(record: object) -> int | None:
    """
    Return the record's identifier, or ``None`` if it has no usable one.

    Zero, negative and non-integer identifiers count as absent.
    """
    if not isinstance(record, Mapping):
        return None
    return coerce_positive_int(record.get("identifier"))


def identifier_matches(record: object, patient_id: object) -> bool:
    identifier = get_identifier(record)
    if identifier is None:
        return False
    return identifier == coerce_positive_int(patient_id)


def identifier_conflicts(record: object, patient_id: object) -> bool:
    """
    Return ``True`` if ``record`` carries an identifier that is not ``patient_id``.

    A record without an ``identifier`` key (or with ``null``) never conflicts; any
    other value must match ``patient_id`` numerically.
    """
    if not isinstance(record, Mapping) or record.get("identifier") is None:
        return False
    return not identifier_matches(record, patient_id)
