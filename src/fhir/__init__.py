"""FHIR data types and resources."""

from fhir.human_name import HumanName
from fhir.patient import Patient

__all__ = [
    "HumanName",
    "Patient",
]
