import json
import logging
from datetime import datetime, timedelta, timezone

from pointiq.schemas import PointRecord
from pointiq.storage.local import LocalPointStore

T0 = datetime(2025, 12, 24, 10, 0, 0, tzinfo=timezone.utc)


def _point(seconds: int, outcome: str = "my_winner") -> PointRecord:
    return PointRecord.create(outcome, ["SS"], timestamp=T0 + timedelta(seconds=seconds))


def test_missing_file_loads_empty(tmp_path):
    store = LocalPointStore(tmp_path / "history.json")
    assert store.load_all() == []
    assert store.delete_last() is None


def test_append_is_idempotent(tmp_path):
    store = LocalPointStore(tmp_path / "nested" / "history.json")
    a = _point(0)

    store.append(a)
    store.append(a)
    store.append(PointRecord.model_validate(a.to_storage()))

    assert store.load_all() == [a]


def test_load_preserves_file_order(tmp_path):
    store = LocalPointStore(tmp_path / "history.json")
    late, early = _point(10), _point(0, "i_missed")
    store.append(late)
    store.append(early)

    assert [r.id for r in store.load_all()] == [late.id, early.id]


def test_delete_by_id_removes_one_and_ignores_unknown(tmp_path):
    store = LocalPointStore(tmp_path / "history.json")
    a, b = _point(0), _point(1)
    store.append(a)
    store.append(b)

    store.delete_by_id("missing")
    store.delete_by_id(a.id)

    assert store.load_all() == [b]


def test_delete_last_removes_most_recent_append(tmp_path):
    store = LocalPointStore(tmp_path / "history.json")
    a, b = _point(0), _point(1)
    store.append(a)
    store.append(b)

    assert store.delete_last() == b
    assert store.delete_last() == a
    assert store.delete_last() is None
    assert store.load_all() == []


def test_clear_and_replace_all(tmp_path):
    path = tmp_path / "history.json"
    store = LocalPointStore(path)
    store.append(_point(0))

    store.clear()
    assert not path.exists()
    store.clear()

    store.replace_all([_point(5), _point(6)])
    assert len(store.load_all()) == 2


def test_file_is_a_json_array_with_iso_timestamps(tmp_path):
    path = tmp_path / "history.json"
    store = LocalPointStore(path)
    store.append(_point(0))

    data = json.loads(path.read_text())
    assert isinstance(data, list)
    assert data[0]["outcome"] == "my_winner"
    assert data[0]["timestamp"].startswith("2025-12-24T10:00:00")


def test_malformed_record_is_dropped_and_rest_loads(tmp_path, caplog):
    path = tmp_path / "history.json"
    good = _point(0)
    path.write_text(
        json.dumps(
            [
                good.to_storage(),
                {"id": "broken", "timestamp": "not a date", "outcome": "my_winner"},
                {"id": "no-outcome", "timestamp": T0.isoformat()},
            ]
        )
    )

    with caplog.at_level(logging.WARNING):
        records = LocalPointStore(path).load_all()

    assert records == [good]
    assert "Dropping malformed point" in caplog.text


def test_corrupt_file_degrades_to_empty(tmp_path, caplog):
    path = tmp_path / "history.json"
    path.write_text("{not json")

    with caplog.at_level(logging.WARNING):
        assert LocalPointStore(path).load_all() == []
    assert "Error loading point history" in caplog.text

    path.write_text(json.dumps({"points": []}))
    assert LocalPointStore(path).load_all() == []


def test_unwritable_location_is_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    store = LocalPointStore(blocker / "history.json")

    with caplog.at_level(logging.WARNING):
        store.append(_point(0))

    assert store.load_all() == []
    assert "Error saving point history" in caplog.text
