"""
In-memory Patient repository with optional JSON snapshot persistence.
"""

import copy
import logging
import threading

from fhir.patient import Patient

from patients_api import patient_model
from patients_api.common.common import coerce_positive_int
from patients_api.persistence import JsonFileStore, PersistenceError, Snapshot

logger = logging.getLogger(__name__)


class PatientRepository:
    """
    Owns the Patient store and the identifier counter.

    Identifiers start at 1 and are never reused, even after a delete. When a
    ``store`` is given, the full state is flushed to it after every mutation.
    Flush failures are logged and otherwise ignored; the in-memory change stands.
    The file is written outside the store lock, so a slow write holds up only
    the request that made the change.

    Entry points:
        - ``create(data) -> Patient``
        - ``get_by_id(patient_id) -> Patient | None``
        - ``update(patient_id, data) -> Patient | None``
        - ``delete(patient_id) -> Patient | None``
        - ``list_ids() -> list[int]``
    """

    def __init__(self, store: JsonFileStore | None = None) -> None:
        """
        :param store: Snapshot store used for persistence, or ``None`` to keep
            everything in memory.
        """
        self.store = store
        self._patients: dict[int, Patient] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self._save_lock = threading.Lock()
        self._generation = 0
        self._saved_generation = 0

    @property
    def persistence_enabled(self) -> bool:
        return self.store is not None

    @property
    def next_id(self) -> int:
        return self._next_id

    def initialize(self) -> None:
        """
        Load the last saved snapshot, if persistence is enabled.

        Any failure to load leaves the repository empty with ``next_id`` 1.
        """
        if self.store is None:
            logger.info("Repository running in memory (persistence disabled)")
            return

        try:
            snapshot = self.store.load()
        except PersistenceError:
            logger.exception("Failed to load snapshot, starting with an empty store")
            snapshot = Snapshot()

        with self._lock:
            self._restore(snapshot)

        logger.info(
            "Repository loaded %d patient(s) from %s, next id %d",
            len(self._patients),
            self.store.path,
            self._next_id,
        )

    def close(self) -> None:
        """Flush the current state one last time."""
        with self._lock:
            pending = self._take_snapshot()
        self._flush(pending, force=True)

    def create(self, data: object) -> Patient:
        """
        Store ``data`` as a new Patient under a freshly issued identifier.

        :param data: Patient record (validated by the caller).
        :returns: A copy of the stored record.
        """
        with self._lock:
            patient_id = self._next_id
            self._next_id += 1

            patient = patient_model.assign_identifier(
                patient_model.normalize(data), patient_id
            )
            self._patients[patient_id] = patient
            pending = self._take_snapshot()
            created = copy.deepcopy(patient)

        self._flush(pending)
        logger.debug("Created patient %d", patient_id)
        return created

    def get_by_id(self, patient_id: object) -> Patient | None:
        key = coerce_positive_int(patient_id)
        if key is None:
            return None

        with self._lock:
            patient = self._patients.get(key)
            return copy.deepcopy(patient) if patient is not None else None

    def update(self, patient_id: object, data: object) -> Patient | None:
        """
        Replace an existing Patient entirely.

        There is no implicit create: unknown identifiers return ``None`` and leave
        the store and counter untouched. Any identifier inside ``data`` is
        overwritten with ``patient_id``.

        :returns: A copy of the new record, or ``None`` if ``patient_id`` is unknown.
        """
        key = coerce_positive_int(patient_id)
        if key is None:
            return None

        with self._lock:
            if key not in self._patients:
                return None

            patient = patient_model.assign_identifier(
                patient_model.normalize(data), key
            )
            self._patients[key] = patient
            pending = self._take_snapshot()
            updated = copy.deepcopy(patient)

        self._flush(pending)
        logger.debug("Updated patient %d", key)
        return updated

    def delete(self, patient_id: object) -> Patient | None:
        """
        Remove a Patient permanently.

        :returns: The record as it was before removal, or ``None`` if unknown.
        """
        key = coerce_positive_int(patient_id)
        if key is None:
            return None

        with self._lock:
            patient = self._patients.pop(key, None)
            if patient is None:
                return None
            pending = self._take_snapshot()

        self._flush(pending)
        logger.debug("Deleted patient %d", key)
        return patient

    def list_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._patients)

    def exists(self, patient_id: object) -> bool:
        key = coerce_positive_int(patient_id)
        with self._lock:
            return key is not None and key in self._patients

    def count(self) -> int:
        with self._lock:
            return len(self._patients)

    # --------------- internal helpers -----------------

    def _restore(self, snapshot: Snapshot) -> None:
        patients: dict[int, Patient] = {}
        for patient_id, record in snapshot.patients.items():
            patients[patient_id] = patient_model.assign_identifier(
                patient_model.normalize(record), patient_id
            )

        self._patients = patients
        # Never reissue an identifier that is already stored.
        self._next_id = max([snapshot.next_id, *(key + 1 for key in patients)])

    def _take_snapshot(self) -> tuple[int, Snapshot] | None:
        """
        Capture the state to persist. Must be called with ``_lock`` held.

        Stored records are replaced, never mutated in place, so a shallow copy of
        the mapping is a stable view.
        """
        if self.store is None:
            return None

        self._generation += 1
        snapshot = Snapshot(patients=dict(self._patients), next_id=self._next_id)
        return self._generation, snapshot

    def _flush(self, pending: tuple[int, Snapshot] | None, force: bool = False) -> None:
        """
        Write a captured snapshot without holding ``_lock``.

        Writes are serialised by ``_save_lock``. A snapshot older than the last
        one written is skipped so the file never moves backwards.
        """
        if self.store is None or pending is None:
            return

        generation, snapshot = pending
        with self._save_lock:
            if not force and generation <= self._saved_generation:
                return
            try:
                self.store.save(snapshot)
            except OSError:
                logger.exception("Failed to save snapshot to %s", self.store.path)
                return
            self._saved_generation = generation
