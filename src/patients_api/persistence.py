"""
Module: patients_api.persistence

JSON snapshot storage for the patient repository.

The whole repository state is written as one document on every save::

    {
      "patients": {"1": {...}, "2": {...}},
      "nextId": 3
    }

There are no incremental updates; the file is replaced atomically.
"""

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from fhir.patient import Patient

from patients_api.common.common import coerce_positive_int

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """
    Raised when a snapshot cannot be read or has an unexpected shape.
    """


@dataclass
class Snapshot:
    """
    Full repository state.

    :param patients: Stored records keyed by identifier.
    :param next_id: Next identifier the repository will issue.
    """

    patients: dict[int, Patient] = field(default_factory=dict)
    next_id: int = 1


class JsonFileStore:
    """
    Loads and saves :class:`Snapshot` instances as a JSON file.

    Usage:

        store = JsonFileStore("patients-data.json")
        snapshot = store.load()
        store.save(snapshot)
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """
        :param path: Location of the snapshot file. Its parent directory must exist.
        """
        self.path = Path(path)

    def load(self) -> Snapshot:
        """
        Read the snapshot file.

        :returns: The stored snapshot, or an empty one if the file does not exist.
        :raises PersistenceError: If the file cannot be read or is malformed.
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No snapshot at %s, starting empty", self.path)
            return Snapshot()
        except OSError as err:
            raise PersistenceError(f"Cannot read {self.path}: {err}") from err

        try:
            document = json.loads(text)
        except json.JSONDecodeError as err:
            raise PersistenceError(f"Malformed JSON in {self.path}: {err}") from err

        return self._parse_document(document)

    def save(self, snapshot: Snapshot) -> None:
        """
        Write ``snapshot`` to disk, replacing any previous file.

        :raises OSError: If the file cannot be written.
        """
        document = {
            "patients": {
                str(patient_id): record
                for patient_id, record in sorted(snapshot.patients.items())
            },
            "nextId": snapshot.next_id,
        }
        text = json.dumps(document, indent=2)

        directory = self.path.parent
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # --------------- internal helpers for document parsing -----------------

    def _parse_document(self, document: object) -> Snapshot:
        if not isinstance(document, Mapping):
            raise PersistenceError(f"Snapshot in {self.path} is not a JSON object")

        raw_patients = document.get("patients", {})
        if not isinstance(raw_patients, Mapping):
            raise PersistenceError(f'"patients" in {self.path} is not a JSON object')

        patients: dict[int, Patient] = {}
        for key, record in raw_patients.items():
            patient_id = coerce_positive_int(key)
            if patient_id is None:
                raise PersistenceError(f"Invalid patient key {key!r} in {self.path}")
            if not isinstance(record, Mapping):
                raise PersistenceError(
                    f"Patient {patient_id} in {self.path} is not a JSON object"
                )
            patients[patient_id] = cast("Patient", dict(record))

        raw_next_id = document.get("nextId")
        next_id = coerce_positive_int(raw_next_id)
        if next_id is None:
            # The repository raises the counter above every stored key on load.
            if raw_next_id is not None:
                logger.warning(
                    "Ignoring invalid nextId %r in %s", raw_next_id, self.path
                )
            next_id = 1

        return Snapshot(patients=patients, next_id=next_id)
