import os
from pathlib import Path


MAX_ENTRIES = 20
LEDGER_KEY = "high_scores"

# remote layout: {API_URL}/users/{uid}/scores/{id}
COLLECTION_USERS = "users"
COLLECTION_SCORES = "scores"


def user_data_path():
    base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
    p = Path(base) / "IQMaster"
    p.mkdir(parents=True, exist_ok=True)
    return p


def data_dir() -> Path:
    override = os.environ.get("HIGHSCORES_DATA_DIR")
    if override:
        return Path(override)
    return user_data_path()


API_URL = os.environ.get("HIGHSCORES_API_URL", "")  # empty = offline
REMOTE_TIMEOUT = float(os.environ.get("HIGHSCORES_TIMEOUT", "5"))
DELETE_WORKERS = int(os.environ.get("HIGHSCORES_DELETE_WORKERS", "4"))
