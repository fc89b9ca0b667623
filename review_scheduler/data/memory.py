import threading

from ..domain.records import ReviewRecord


class InMemoryReviewStore:
    """Process-local ReviewStore. Records are immutable, so reads share them."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records = {}
        self._items = set()

    def load(self, owner_id, item_id):
        with self._lock:
            return self._records.get((owner_id, item_id))

    def compare_and_swap(self, record, expected_revision):
        key = (record.owner_id, record.item_id)
        with self._lock:
            current = self._records.get(key)
            current_revision = current.revision if current is not None else 0
            if current_revision != expected_revision:
                return False
            self._records[key] = record
            self._items.add(key)
            return True

    def add_item(self, owner_id, item_id):
        key = (owner_id, item_id)
        with self._lock:
            if key in self._items:
                return False
            self._items.add(key)
            return True

    def remove_item(self, owner_id, item_id):
        key = (owner_id, item_id)
        with self._lock:
            self._records.pop(key, None)
            if key not in self._items:
                return False
            self._items.discard(key)
            return True

    def scan(self, owner_id=None):
        with self._lock:
            keys = [k for k in self._items if owner_id is None or k[0] == owner_id]
            return [self._records.get(k) or ReviewRecord.initial(*k) for k in keys]
