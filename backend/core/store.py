"""
Dataset Store

In-memory dataset storage with TTL, keyed by dataset id and owned by a user.
"""

import hashlib
import time
from dataclasses import dataclass
from datetime import datetime
from threading import Lock
from typing import Optional

from config import get_settings
from core.dataset import Dataset


@dataclass(frozen=True)
class StoredDataset:
    """A dataset together with its store bookkeeping."""

    dataset_id: str
    user_id: Optional[str]
    dataset: Dataset
    created_at: float

    @property
    def created_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.created_at)


class DatasetStore:
    """Thread-safe dataset storage."""

    def __init__(self, ttl_hours: Optional[int] = None):
        if ttl_hours is None:
            ttl_hours = get_settings().store.ttl_hours
        self.ttl_seconds = ttl_hours * 3600
        self._datasets: dict[str, StoredDataset] = {}
        self._lock = Lock()

    def generate_id(self, file_name: str) -> str:
        """Unique id based on file name and timestamp."""
        content = f"{file_name}_{datetime.now().isoformat()}_{time.perf_counter_ns()}"
        return hashlib.sha256(content.encode()).hexdigest()[:16]

    def create(self, dataset: Dataset, user_id: Optional[str] = None) -> str:
        """Store a dataset and return its id."""
        dataset_id = self.generate_id(dataset.file_name)
        with self._lock:
            self._datasets[dataset_id] = StoredDataset(
                dataset_id=dataset_id,
                user_id=user_id,
                dataset=dataset,
                created_at=time.time(),
            )
        return dataset_id

    def get(self, dataset_id: str) -> Optional[StoredDataset]:
        with self._lock:
            stored = self._datasets.get(dataset_id)
            if stored is None:
                return None

            if self._expired(stored, time.time()):
                del self._datasets[dataset_id]
                return None

            return stored

    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        stored = self.get(dataset_id)
        return stored.dataset if stored else None

    def list_datasets(self, user_id: Optional[str] = None) -> list[StoredDataset]:
        """Active datasets, newest first, optionally limited to one user."""
        with self._lock:
            now = time.time()
            expired = [k for k, v in self._datasets.items() if self._expired(v, now)]
            for dataset_id in expired:
                del self._datasets[dataset_id]

            active = [
                stored for stored in self._datasets.values()
                if user_id is None or stored.user_id == user_id
            ]

        return sorted(active, key=lambda s: s.created_at, reverse=True)

    def delete(self, dataset_id: str) -> bool:
        with self._lock:
            if dataset_id in self._datasets:
                del self._datasets[dataset_id]
                return True
            return False

    def clear(self) -> int:
        """Remove everything; returns how many datasets were dropped."""
        with self._lock:
            count = len(self._datasets)
            self._datasets.clear()
            return count

    def _expired(self, stored: StoredDataset, now: float) -> bool:
        return now - stored.created_at > self.ttl_seconds


# Global instance
dataset_store = DatasetStore()
