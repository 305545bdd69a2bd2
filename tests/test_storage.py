import threading

import pytest

from highscores.errors import StorageError
from highscores.leaderboard import LocalLedger
from highscores.settings import MAX_ENTRIES
from highscores.storage import FileBlobStore, MemoryBlobStore


def test_memory_store_basics():
    s = MemoryBlobStore()
    assert s.get("k") is None
    s.put("k", b"abc")
    assert s.get("k") == b"abc"
    s.delete("k")
    s.delete("k")
    assert s.get("k") is None


def test_file_store_basics(tmp_path):
    s = FileBlobStore(tmp_path / "nested")
    assert s.get("k") is None
    s.put("k", b"[]")
    assert (tmp_path / "nested" / "k.json").read_bytes() == b"[]"
    s.put("k", b"[1]")
    assert s.get("k") == b"[1]"
    s.delete("k")
    assert s.get("k") is None
    s.delete("k")


def test_file_store_leaves_no_temp_files(tmp_path):
    s = FileBlobStore(tmp_path)
    for i in range(5):
        s.put("k", str(i).encode())
    assert [p.name for p in tmp_path.iterdir()] == ["k.json"]


def test_unwritable_store_raises_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("i am a file", encoding="utf-8")
    s = FileBlobStore(blocker)
    with pytest.raises(StorageError):
        s.put("k", b"[]")


def test_record_propagates_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("i am a file", encoding="utf-8")
    ledger = LocalLedger(FileBlobStore(blocker))
    with pytest.raises(StorageError):
        ledger.record(10)


class FailingStore(MemoryBlobStore):
    def put(self, key, data):
        raise StorageError("disk full")

    def delete(self, key):
        raise StorageError("disk full")


def test_clear_and_reconcile_propagate_storage_error():
    ledger = LocalLedger(FailingStore())
    with pytest.raises(StorageError):
        ledger.clear()
    with pytest.raises(StorageError):
        ledger.reconcile([])


class UnreadableStore(MemoryBlobStore):
    def get(self, key):
        raise PermissionError("nope")


def test_unreadable_store_reads_as_empty():
    assert LocalLedger(UnreadableStore()).all() == []


def test_concurrent_records_keep_invariants(tmp_path):
    store = FileBlobStore(tmp_path)
    ledgers = [LocalLedger(store) for _ in range(4)]
    created = []
    created_lock = threading.Lock()

    def worker(ledger, base):
        for i in range(10):
            e = ledger.record(base + i)
            with created_lock:
                created.append(e)

    threads = [threading.Thread(target=worker, args=(l, n * 10)) for n, l in enumerate(ledgers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({e.id for e in created}) == 40
    items = LocalLedger(store).all()
    assert len(items) == MAX_ENTRIES
    assert [e.value for e in items] == list(range(39, 19, -1))
