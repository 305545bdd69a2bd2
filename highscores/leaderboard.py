import json, logging, time
from typing import Callable, Dict, Iterable, List

from .errors import StorageCorruption
from .settings import LEDGER_KEY, MAX_ENTRIES
from .storage import BlobStore
from .types import ScoreEntry, validate_value

logger = logging.getLogger(__name__)


def merge_entries(
    existing: Iterable[ScoreEntry],
    incoming: Iterable[ScoreEntry],
    limit: int = MAX_ENTRIES,
) -> List[ScoreEntry]:
    """
    Merge two entry sets into a leaderboard.

    Duplicate ids keep the copy that carries a remote timestamp; between equally
    complete copies the later one wins (incoming is seen after existing).
    Result is sorted by value, then local time, most recent first, and cut to
    `limit`.
    """
    by_id: Dict[str, ScoreEntry] = {}
    for e in list(existing) + list(incoming):
        seen = by_id.get(e.id)
        if seen is not None and seen.recorded_at_remote is not None and e.recorded_at_remote is None:
            continue
        by_id[e.id] = e

    items = sorted(by_id.values(), key=ScoreEntry.sort_key, reverse=True)
    return items[:limit]


def encode(entries: List[ScoreEntry]) -> bytes:
    return json.dumps([e.to_record() for e in entries], ensure_ascii=False, indent=2).encode("utf-8")


def decode(blob: bytes) -> List[ScoreEntry]:
    try:
        raw = json.loads(blob.decode("utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"expected a list, got {type(raw).__name__}")
        return [ScoreEntry.from_record(r) for r in raw]
    except (ValueError, RecursionError) as e:  # RecursionError: absurdly nested JSON
        raise StorageCorruption(str(e)) from e


class LocalLedger:
    def __init__(
        self,
        store: BlobStore,
        key: str = LEDGER_KEY,
        limit: int = MAX_ENTRIES,
        clock: Callable[[], int] = time.time_ns,
    ):
        self.store = store
        self.key = key
        self.limit = limit
        self._clock = clock
        self._last_id = 0

    def _load(self) -> List[ScoreEntry]:
        try:
            blob = self.store.get(self.key)
        except OSError as e:
            logger.warning("Leaderboard %r unreadable, treating as empty: %s", self.key, e)
            return []
        if blob is None:
            return []
        try:
            return decode(blob)
        except StorageCorruption as e:
            logger.warning("Leaderboard %r is corrupt, treating as empty: %s", self.key, e)
            return []

    def _save(self, items: List[ScoreEntry]):
        self.store.put(self.key, encode(items))

    def _next_id(self, now: int, items: List[ScoreEntry]) -> int:
        # ids must not repeat when two records land in the same clock tick,
        # including records made through another ledger on the same store
        taken = {e.id for e in items}
        eid = max(now, self._last_id + 1)
        while str(eid) in taken:
            eid += 1
        self._last_id = eid
        return eid

    def record(self, value: int) -> ScoreEntry:
        value = validate_value(value)
        with self.store.lock:
            items = self._load()
            now = self._clock()
            eid = self._next_id(now, items)
            entry = ScoreEntry(id=str(eid), value=value, recorded_at_local=now // 1_000_000)
            items = merge_entries(items, [entry], self.limit)
            self._save(items)
        logger.debug("Recorded score %d as %s", value, entry.id)
        return entry

    def all(self) -> List[ScoreEntry]:
        with self.store.lock:
            return self._load()

    def clear(self):
        with self.store.lock:
            self.store.delete(self.key)
        logger.info("Local leaderboard %r cleared", self.key)

    def reconcile(self, remote_entries: Iterable[ScoreEntry]) -> List[ScoreEntry]:
        with self.store.lock:
            items = merge_entries(self._load(), remote_entries, self.limit)
            self._save(items)
        return items

