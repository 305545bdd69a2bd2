# -*- coding: utf-8 -*-
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, TypedDict


class ScoreRecord(TypedDict, total=False):
    id: str
    value: int
    recordedAtLocal: int
    recordedAtRemote: Optional[int]


@dataclass(frozen=True)
class ScoreEntry:
    id: str
    value: int
    recorded_at_local: int  # epoch ms
    recorded_at_remote: Optional[int] = None  # epoch ms, set once the remote store accepts it

    def with_remote_timestamp(self, ts: int) -> "ScoreEntry":
        return replace(self, recorded_at_remote=ts)

    def sort_key(self):
        return (self.value, self.recorded_at_local, self.id)

    def to_record(self) -> ScoreRecord:
        rec: ScoreRecord = {
            "id": self.id,
            "value": self.value,
            "recordedAtLocal": self.recorded_at_local,
        }
        if self.recorded_at_remote is not None:
            rec["recordedAtRemote"] = self.recorded_at_remote
        return rec

    @classmethod
    def from_record(cls, rec: Mapping[str, Any], entry_id: Optional[str] = None) -> "ScoreEntry":
        """
        Build an entry from a wire record.

        `score` and `localTimestamp` are read as aliases of `value` and
        `recordedAtLocal`. A missing local timestamp falls back to the remote
        one. Raises ValueError for anything that cannot be an entry.
        """
        if not isinstance(rec, Mapping):
            raise ValueError(f"record is not an object: {rec!r}")

        eid = entry_id if entry_id is not None else rec.get("id")
        if not isinstance(eid, str) or not eid:
            raise ValueError(f"record has no id: {rec!r}")

        value = rec.get("value", rec.get("score"))
        value = _as_int(value, "value")
        if value < 0:
            raise ValueError(f"negative value in record {eid}")

        remote = rec.get("recordedAtRemote")
        remote = None if remote is None else _as_millis(remote)

        local = rec.get("recordedAtLocal", rec.get("localTimestamp"))
        if local is None:
            if remote is None:
                raise ValueError(f"record {eid} has no timestamp")
            local = remote
        else:
            local = _as_int(local, "recordedAtLocal")

        return cls(id=eid, value=value, recorded_at_local=local, recorded_at_remote=remote)


def validate_value(value) -> int:
    v = _as_int(value, "value")
    if v < 0:
        raise ValueError(f"score must be non-negative, got {v}")
    return v


def _as_int(x, name: str) -> int:
    # bool is an int subclass; a True score is a bug upstream
    if isinstance(x, bool) or not isinstance(x, int):
        raise ValueError(f"{name} must be an integer, got {x!r}")
    return x


def _as_millis(x) -> int:
    if isinstance(x, str):
        dt = datetime.fromisoformat(x.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)
    if isinstance(x, float) and x.is_integer():
        return int(x)
    return _as_int(x, "recordedAtRemote")


@dataclass(frozen=True)
class UserIdentity:
    uid: str
    token: Optional[str] = None  # opaque bearer token, adapters decide how to use it


class SyncStatus(str, Enum):
    SYNCED = "synced"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SubmitOutcome:
    entry: ScoreEntry
    sync: SyncStatus
    error: Optional[str] = None


@dataclass(frozen=True)
class DeleteOutcome:
    entry_id: str
    error: Optional[str] = None  # None = deleted

    @property
    def ok(self) -> bool:
        return self.error is None


class ClearStatus(str, Enum):
    CLEARED = "cleared"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class ClearResult:
    status: ClearStatus
    deleted: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)  # entry id -> error
    error: Optional[str] = None  # set when the whole call failed before any delete

    @property
    def ok(self) -> bool:
        return self.status is ClearStatus.CLEARED
