import pytest

from highscores.types import ClearResult, ClearStatus, DeleteOutcome, ScoreEntry, validate_value


def test_to_record_omits_missing_remote_timestamp():
    e = ScoreEntry("1", 10, 1000)
    assert e.to_record() == {"id": "1", "value": 10, "recordedAtLocal": 1000}
    assert e.with_remote_timestamp(2000).to_record()["recordedAtRemote"] == 2000


def test_with_remote_timestamp_returns_copy():
    e = ScoreEntry("1", 10, 1000)
    synced = e.with_remote_timestamp(2000)
    assert e.recorded_at_remote is None
    assert synced.recorded_at_remote == 2000
    assert synced.id == e.id and synced.value == e.value


def test_from_record_aliases_and_fallbacks():
    assert ScoreEntry.from_record({"id": "a", "score": 5, "localTimestamp": 7}) == ScoreEntry("a", 5, 7)
    e = ScoreEntry.from_record({"id": "a", "value": 5, "recordedAtRemote": 9000})
    assert e.recorded_at_local == 9000 and e.recorded_at_remote == 9000
    e = ScoreEntry.from_record({"value": 5, "recordedAtLocal": 1}, entry_id="doc")
    assert e.id == "doc"


def test_from_record_integral_float_remote_timestamp():
    e = ScoreEntry.from_record({"id": "a", "value": 1, "recordedAtLocal": 1, "recordedAtRemote": 1.7e12})
    assert e.recorded_at_remote == 1_700_000_000_000
    assert isinstance(e.recorded_at_remote, int)
    with pytest.raises(ValueError):
        ScoreEntry.from_record({"id": "a", "value": 1, "recordedAtLocal": 1, "recordedAtRemote": 1.5})


def test_from_record_iso_remote_timestamp():
    e = ScoreEntry.from_record(
        {"id": "a", "value": 1, "recordedAtLocal": 1, "recordedAtRemote": "1970-01-01T00:00:01Z"}
    )
    assert e.recorded_at_remote == 1000


@pytest.mark.parametrize(
    "rec",
    [
        {"value": 1, "recordedAtLocal": 1},
        {"id": "", "value": 1, "recordedAtLocal": 1},
        {"id": "a", "recordedAtLocal": 1},
        {"id": "a", "value": -3, "recordedAtLocal": 1},
        {"id": "a", "value": "3", "recordedAtLocal": 1},
        {"id": "a", "value": 3},
        {"id": "a", "value": 3, "recordedAtLocal": 1, "recordedAtRemote": "yesterday"},
        ["id", "a"],
    ],
)
def test_from_record_rejects_malformed(rec):
    with pytest.raises(ValueError):
        ScoreEntry.from_record(rec)


def test_validate_value():
    assert validate_value(0) == 0
    with pytest.raises(ValueError):
        validate_value(False)


def test_delete_outcome_and_clear_result_flags():
    assert DeleteOutcome("1").ok
    assert not DeleteOutcome("1", "boom").ok
    assert ClearResult(ClearStatus.CLEARED).ok
    assert not ClearResult(ClearStatus.PARTIAL).ok
