"""In-memory identity gallery."""

import logging
import threading
from typing import Dict, List, Optional

from .types import IdentityRecord

logger = logging.getLogger(__name__)


class IdentityGallery:
    """Registered identities keyed by label.

    A dumb store: no validation happens here. Registering an existing label
    overwrites the previous record in place, keeping its original position
    in the snapshot order. Every read and write goes through one lock so
    snapshots are consistent with concurrent registration.
    """

    def __init__(self):
        self._records: Dict[str, IdentityRecord] = {}
        self._lock = threading.Lock()

    def all_records(self) -> List[IdentityRecord]:
        """Return a point-in-time snapshot of records in registration order."""
        with self._lock:
            return list(self._records.values())

    def register(self, label: str, record: IdentityRecord) -> None:
        """Insert or overwrite the record stored under `label`."""
        with self._lock:
            replaced = label in self._records
            self._records[label] = record
        if replaced:
            logger.info(f"Updated identity: {label}")
        else:
            logger.info(f"Registered identity: {label}")

    def get(self, label: str) -> Optional[IdentityRecord]:
        """Get the record registered under `label`."""
        with self._lock:
            return self._records.get(label)

    def labels(self) -> List[str]:
        """Get list of all registered labels."""
        with self._lock:
            return list(self._records.keys())

    def clear(self) -> None:
        """Remove every record."""
        with self._lock:
            self._records.clear()
        logger.info("Gallery cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, label: str) -> bool:
        with self._lock:
            return label in self._records
