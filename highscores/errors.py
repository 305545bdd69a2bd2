class HighScoreError(Exception):
    """Base class for every error raised by the high-score engine."""


class StorageError(HighScoreError):
    """The local blob could not be written or removed. Not recoverable."""


class StorageCorruption(HighScoreError):
    """The local blob exists but does not decode to a leaderboard."""


class RemoteError(HighScoreError):
    """A push, fetch or delete against the remote store failed."""


class IdentityRequiredError(HighScoreError):
    """A remote operation that needs a user identity was called without one."""
