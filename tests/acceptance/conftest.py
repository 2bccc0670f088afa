"""Shared fixtures for the acceptance scenarios."""

from dataclasses import dataclass

import pytest
import requests


@dataclass
class ResponseContext:
    """Holds the most recent response between steps of one scenario."""

    response: requests.Response | None = None


@pytest.fixture
def response_context() -> ResponseContext:
    return ResponseContext()
