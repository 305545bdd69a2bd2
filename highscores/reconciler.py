import logging
from typing import List, Optional

from .errors import IdentityRequiredError, RemoteError
from .leaderboard import LocalLedger
from .remote import RemoteScoreStore
from .types import (
    ClearResult,
    ClearStatus,
    ScoreEntry,
    SubmitOutcome,
    SyncStatus,
    UserIdentity,
)

logger = logging.getLogger(__name__)


class ScoreReconciler:
    """
    Local ledger first, remote store best-effort.

    Local writes are the durability guarantee and their failures propagate.
    Remote failures are logged and reported through return values. Nothing is
    retried here; callers retry when they want to.
    """

    def __init__(self, ledger: LocalLedger, remote: Optional[RemoteScoreStore] = None):
        self.ledger = ledger
        self.remote = remote

    def submit(self, value: int, identity: Optional[UserIdentity] = None) -> SubmitOutcome:
        entry = self.ledger.record(value)

        if identity is None or self.remote is None:
            logger.info("Score %d saved locally only (no identity or remote)", entry.value)
            return SubmitOutcome(entry, SyncStatus.SKIPPED)

        try:
            acked = self.remote.push(identity, entry)
        except RemoteError as e:
            logger.warning("Score %s not synced for %s: %s", entry.id, identity.uid, e)
            return SubmitOutcome(entry, SyncStatus.FAILED, str(e))

        # the acknowledged copy carries the remote timestamp and replaces ours
        self.ledger.reconcile([acked])
        logger.debug("Score %s synced for %s", entry.id, identity.uid)
        return SubmitOutcome(acked, SyncStatus.SYNCED)

    def fetch_leaderboard(self, identity: Optional[UserIdentity] = None) -> List[ScoreEntry]:
        local = self.ledger.all()
        if identity is None or self.remote is None:
            return local

        try:
            remote = self.remote.fetch_all(identity)
        except RemoteError as e:
            logger.warning("Remote leaderboard unavailable for %s, using local: %s", identity.uid, e)
            return local

        return self.ledger.reconcile(remote)

    def clear_local(self):
        self.ledger.clear()

    def clear_remote(self, identity: Optional[UserIdentity]) -> ClearResult:
        if identity is None:
            raise IdentityRequiredError("clearing remote scores needs a user identity")
        if self.remote is None:
            return ClearResult(ClearStatus.FAILED, error="no remote store configured")

        try:
            outcomes = self.remote.delete_all(identity)
        except RemoteError as e:
            logger.warning("Remote scores for %s not cleared: %s", identity.uid, e)
            return ClearResult(ClearStatus.FAILED, error=str(e))

        deleted = [o.entry_id for o in outcomes if o.ok]
        failures = {o.entry_id: o.error for o in outcomes if not o.ok}

        if not failures:
            status = ClearStatus.CLEARED
            logger.info("Cleared %d remote scores for %s", len(deleted), identity.uid)
        elif deleted:
            status = ClearStatus.PARTIAL
            logger.warning(
                "Cleared %d remote scores for %s, %d failed: %s",
                len(deleted), identity.uid, len(failures), ", ".join(failures),
            )
        else:
            status = ClearStatus.FAILED
            logger.warning("No remote scores cleared for %s, %d failed", identity.uid, len(failures))
        return ClearResult(status, deleted=deleted, failures=failures)
