"""Per-owner ordering of items by next review time.

Each owner gets a sorted list of keys ``(rank, next_review_at, item_id)``
kept in order with :mod:`bisect`. Never-taken items use rank 0 so they sort
ahead of everything scheduled; scheduled items use rank 1. A side map from
item id to ``(key, revision)`` makes updates and removals a binary search
away, and lets stale updates (older revision than the indexed one) be
dropped.

The index is derived data: an owner's bucket is loaded from the store on
first query and can be rebuilt from the store at any time.
"""
import threading
from bisect import bisect_left, insort
from datetime import datetime, timedelta, timezone

_NEVER_TAKEN = 0
_SCHEDULED = 1
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)
_TICK = timedelta(microseconds=1)


def _key_for(record):
    if record.never_taken:
        return (_NEVER_TAKEN, _EPOCH, record.item_id)
    return (_SCHEDULED, record.next_review_at, record.item_id)


class _OwnerBucket:
    __slots__ = ("keys", "entries")

    def __init__(self):
        self.keys = []
        self.entries = {}

    def put(self, item_id, key, revision) -> bool:
        existing = self.entries.get(item_id)
        if existing is not None:
            if revision < existing[1]:
                return False
            self._discard_key(existing[0])
        insort(self.keys, key)
        self.entries[item_id] = (key, revision)
        return True

    def remove(self, item_id) -> bool:
        existing = self.entries.pop(item_id, None)
        if existing is None:
            return False
        self._discard_key(existing[0])
        return True

    def due(self, as_of, limit):
        try:
            # (1, t) sorts before every (1, t, item_id), so this lands just past as_of
            end = bisect_left(self.keys, (_SCHEDULED, as_of + _TICK))
        except OverflowError:
            end = len(self.keys)
        return [key[2] for key in self.keys[:min(end, limit)]]

    def _discard_key(self, key):
        pos = bisect_left(self.keys, key)
        if pos < len(self.keys) and self.keys[pos] == key:
            del self.keys[pos]


class DueIndex:
    def __init__(self):
        self._lock = threading.Lock()
        self._buckets = {}
        self._loaded = set()

    def is_loaded(self, owner_id) -> bool:
        with self._lock:
            return owner_id in self._loaded

    def track(self, owner_id):
        """Start collecting updates for an owner ahead of loading it."""
        with self._lock:
            self._buckets.setdefault(owner_id, _OwnerBucket())

    def load_owner(self, owner_id, records) -> int:
        """Replace an owner's bucket with ``records`` read from the store.

        Updates that reached the old bucket at a newer revision than the one
        read are carried over, so a load racing with a commit never rolls the
        commit back.
        """
        fresh = _OwnerBucket()
        for record in records:
            fresh.put(record.item_id, _key_for(record), record.revision)

        with self._lock:
            previous = self._buckets.get(owner_id)
            first_load = owner_id not in self._loaded
            if previous is not None:
                for item_id, (key, revision) in previous.entries.items():
                    loaded = fresh.entries.get(item_id)
                    if loaded is None and not first_load:
                        continue
                    if loaded is None or loaded[1] < revision:
                        fresh.put(item_id, key, revision)
            self._buckets[owner_id] = fresh
            self._loaded.add(owner_id)
            return len(fresh.entries)

    def upsert(self, record) -> bool:
        """Index ``record``; False if the owner is untracked or a newer revision is indexed."""
        with self._lock:
            bucket = self._buckets.get(record.owner_id)
            if bucket is None:
                return False
            return bucket.put(record.item_id, _key_for(record), record.revision)

    def remove(self, owner_id, item_id) -> bool:
        with self._lock:
            bucket = self._buckets.get(owner_id)
            return bucket.remove(item_id) if bucket is not None else False

    def due(self, owner_id, as_of, limit):
        with self._lock:
            bucket = self._buckets.get(owner_id)
            return bucket.due(as_of, limit) if bucket is not None else []

    def owners(self):
        with self._lock:
            return sorted(self._loaded)

    def __len__(self):
        with self._lock:
            return sum(len(b.entries) for b in self._buckets.values())
