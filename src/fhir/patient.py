"""FHIR Patient resource."""

from typing import TypedDict

from fhir.human_name import HumanName


class Patient(TypedDict, total=False):
    """
    Simplified Patient record.

    ``identifier`` is a plain positive integer assigned by the repository rather
    than the FHIR ``Identifier`` list. Every other field is optional pass-through
    data.
    """

    resourceType: str
    identifier: int
    active: bool
    name: list[HumanName]
    gender: str
    birthDate: str
