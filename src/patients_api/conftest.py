"""Pytest configuration and shared fixtures for patients API tests."""

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from flask import Flask
from flask.testing import FlaskClient

from patients_api.app import create_app
from patients_api.config import Config
from patients_api.persistence import JsonFileStore
from patients_api.repository import PatientRepository


@pytest.fixture
def valid_patient_payload() -> dict[str, Any]:
    return {
        "resourceType": "Patient",
        "active": True,
        "name": [{"family": "Johnson", "given": ["Alice", "May"]}],
        "gender": "female",
        "birthDate": "1990-05-15",
    }


@pytest.fixture
def repository() -> PatientRepository:
    repository = PatientRepository()
    repository.initialize()
    return repository


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "patients-data.json"


@pytest.fixture
def persistent_repository(data_file: Path) -> PatientRepository:
    repository = PatientRepository(store=JsonFileStore(data_file))
    repository.initialize()
    return repository


@pytest.fixture
def client_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "client"
    directory.mkdir()
    (directory / "index.html").write_text("<h1>Patients</h1>", encoding="utf-8")
    (directory / "js").mkdir()
    (directory / "js" / "api.js").write_text("// api", encoding="utf-8")
    return directory


@pytest.fixture
def config(client_dir: Path) -> Config:
    return Config(client_dir=client_dir)


@pytest.fixture
def app(config: Config) -> Flask:
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app: Flask) -> Generator[FlaskClient, None, None]:
    with app.test_client() as client:
        yield client
