"""FHIR HumanName type."""

from typing import TypedDict


class HumanName(TypedDict, total=False):
    family: str
    given: list[str]
