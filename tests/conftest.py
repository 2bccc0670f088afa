"""Pytest configuration and shared fixtures for patients API tests."""

import threading
import time
from collections.abc import Generator
from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest
import requests
from werkzeug.serving import make_server

from patients_api.app import create_app
from patients_api.config import Config


class Client:
    """Thin ``requests`` wrapper around a running patients API."""

    timeout = timedelta(seconds=2).total_seconds()

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def send_health_check(self) -> requests.Response:
        return requests.get(f"{self.base_url}/health", timeout=self.timeout)

    def create_patient(self, payload: Any) -> requests.Response:
        return requests.post(
            f"{self.base_url}/Patient", json=payload, timeout=self.timeout
        )

    def read_patient(self, patient_id: int | str) -> requests.Response:
        return requests.get(
            f"{self.base_url}/Patient/{patient_id}", timeout=self.timeout
        )

    def update_patient(self, patient_id: int | str, payload: Any) -> requests.Response:
        return requests.put(
            f"{self.base_url}/Patient/{patient_id}", json=payload, timeout=self.timeout
        )

    def delete_patient(self, patient_id: int | str) -> requests.Response:
        return requests.delete(
            f"{self.base_url}/Patient/{patient_id}", timeout=self.timeout
        )

    def list_patient_ids(self) -> requests.Response:
        return requests.get(f"{self.base_url}/PatientIDs", timeout=self.timeout)

    def send_raw(self, method: str, path: str, data: bytes = b"") -> requests.Response:
        return requests.request(
            method, f"{self.base_url}{path}", data=data, timeout=self.timeout
        )


def start_server(config: Config) -> Generator[str, None, None]:
    """Serve a fresh app on a free port in a daemon thread and yield its URL."""
    # Port 0 lets the OS assign a free port
    server = make_server("127.0.0.1", 0, create_app(config))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    url = f"http://127.0.0.1:{server.server_port}"
    max_retries = 10
    retry_delay = 0.1  # 100ms between retries

    for _ in range(max_retries):
        try:
            response = requests.get(f"{url}/health", timeout=1)
            if response.status_code == 200:
                break
        except requests.exceptions.RequestException:
            # Server not ready yet, wait and retry
            time.sleep(retry_delay)
    else:
        server.shutdown()
        raise RuntimeError(f"Flask server failed to start on {url}")

    yield url

    server.shutdown()
    thread.join(timeout=5)


@pytest.fixture
def provider_url(tmp_path: Path) -> Generator[str, None, None]:
    """Start an in-memory patients API and return its URL."""
    yield from start_server(Config(client_dir=tmp_path))


@pytest.fixture
def client(provider_url: str) -> Client:
    return Client(provider_url)
