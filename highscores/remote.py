import logging, threading, time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import requests

from .errors import RemoteError
from .settings import COLLECTION_SCORES, COLLECTION_USERS, DELETE_WORKERS, REMOTE_TIMEOUT
from .types import DeleteOutcome, ScoreEntry, UserIdentity

logger = logging.getLogger(__name__)


class RemoteScoreStore(Protocol):
    def push(self, identity: UserIdentity, entry: ScoreEntry) -> ScoreEntry: ...

    def fetch_all(self, identity: UserIdentity) -> List[ScoreEntry]: ...

    def delete_all(self, identity: UserIdentity) -> List[DeleteOutcome]: ...


def _record_list(payload: Any) -> list:
    if isinstance(payload, dict):
        payload = payload.get(COLLECTION_SCORES)
    if not isinstance(payload, list):
        raise RemoteError(f"unexpected payload: {type(payload).__name__}")
    return payload


def parse_records(payload: Any) -> List[ScoreEntry]:
    """Parse a list of wire records, skipping the ones that are malformed."""
    out = []
    for rec in _record_list(payload):
        try:
            out.append(ScoreEntry.from_record(rec))
        except ValueError as e:
            logger.warning("Skipping malformed score record: %s", e)
    return out


class HttpScoreStore:
    """
    Score documents over HTTP, one document per entry:

        PUT    {base}/users/{uid}/scores/{id}
        GET    {base}/users/{uid}/scores
        DELETE {base}/users/{uid}/scores/{id}
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = REMOTE_TIMEOUT,
        session: Optional[requests.Session] = None,
        max_workers: int = DELETE_WORKERS,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.max_workers = max_workers

    def _collection_url(self, identity: UserIdentity) -> str:
        return f"{self.base_url}/{COLLECTION_USERS}/{quote(identity.uid, safe='')}/{COLLECTION_SCORES}"

    def _doc_url(self, identity: UserIdentity, entry_id: str) -> str:
        return f"{self._collection_url(identity)}/{quote(entry_id, safe='')}"

    def _headers(self, identity: UserIdentity) -> Dict[str, str]:
        if identity.token:
            return {"Authorization": f"Bearer {identity.token}"}
        return {}

    def _request(self, method: str, url: str, identity: UserIdentity, **kwargs) -> requests.Response:
        try:
            r = self.session.request(
                method, url, headers=self._headers(identity), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise RemoteError(f"{method} {url} failed: {e}") from e
        return r

    def _json(self, r: requests.Response) -> Any:
        try:
            r.raise_for_status()
            return r.json()
        except requests.HTTPError as e:
            raise RemoteError(str(e)) from e
        except (ValueError, RecursionError) as e:
            raise RemoteError(f"invalid JSON from {r.url}: {e}") from e

    def push(self, identity: UserIdentity, entry: ScoreEntry) -> ScoreEntry:
        r = self._request("PUT", self._doc_url(identity, entry.id), identity, json=entry.to_record())
        data = self._json(r)
        try:
            acked = ScoreEntry.from_record(data)
        except ValueError as e:
            raise RemoteError(f"malformed push acknowledgement: {e}") from e
        if acked.id != entry.id or acked.recorded_at_remote is None:
            raise RemoteError(f"push of {entry.id} was not acknowledged")
        return acked

    def fetch_all(self, identity: UserIdentity) -> List[ScoreEntry]:
        r = self._request("GET", self._collection_url(identity), identity)
        return parse_records(self._json(r))

    def _delete_one(self, identity: UserIdentity, entry_id: str) -> DeleteOutcome:
        try:
            r = self._request("DELETE", self._doc_url(identity, entry_id), identity)
            if r.status_code != 404:
                r.raise_for_status()
        except (RemoteError, requests.HTTPError) as e:
            logger.warning("Delete of remote score %s failed: %s", entry_id, e)
            return DeleteOutcome(entry_id, str(e))
        return DeleteOutcome(entry_id)

    def delete_all(self, identity: UserIdentity) -> List[DeleteOutcome]:
        # every listed document is deleted, including ones fetch_all would skip
        r = self._request("GET", self._collection_url(identity), identity)
        ids, unaddressable = [], []
        for n, rec in enumerate(_record_list(self._json(r))):
            eid = rec.get("id") if isinstance(rec, dict) else None
            if isinstance(eid, str) and eid:
                ids.append(eid)
            else:
                logger.warning("Remote score record #%d has no id, cannot delete it", n)
                unaddressable.append(DeleteOutcome(f"#{n}", "record has no id"))
        if not ids:
            return unaddressable
        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(ids)))) as executor:
            return list(executor.map(lambda eid: self._delete_one(identity, eid), ids)) + unaddressable


class MemoryScoreStore:
    """In-process remote store, keyed by uid. Stamps entries with the time of receipt."""

    def __init__(self, clock=lambda: int(time.time() * 1000)):
        self._docs: Dict[str, Dict[str, ScoreEntry]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def push(self, identity: UserIdentity, entry: ScoreEntry) -> ScoreEntry:
        acked = entry.with_remote_timestamp(self._clock())
        with self._lock:
            self._docs.setdefault(identity.uid, {})[entry.id] = acked
        return acked

    def fetch_all(self, identity: UserIdentity) -> List[ScoreEntry]:
        with self._lock:
            return list(self._docs.get(identity.uid, {}).values())

    def delete_all(self, identity: UserIdentity) -> List[DeleteOutcome]:
        with self._lock:
            docs = self._docs.pop(identity.uid, {})
        return [DeleteOutcome(eid) for eid in docs]
