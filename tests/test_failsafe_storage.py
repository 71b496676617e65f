import json
from datetime import timedelta

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fieldkiosk.models import Survey, utcnow
from fieldkiosk.models_local import LocalRecord
from fieldkiosk.storage.failsafe import SURVEYS, TIME_ENTRIES, FailsafeStorage, cloud_upserter
from fieldkiosk.storage.local_store import LAST_BACKUP_KEY


def _record(record_id="s-1", **extra):
    record = {
        "id": record_id,
        "employee_id": "emp-1",
        "store": "lowes",
        "category": "survey",
        "timestamp": "2024-05-01T12:00:00",
        "answers": {},
    }
    record.update(extra)
    return record


def _failing_upsert(payload):
    raise OperationalError("INSERT", {}, Exception("cloud down"))


def test_save_writes_local_then_cloud(db, local_db, tmp_path):
    storage = FailsafeStorage(local_db, {SURVEYS: cloud_upserter(db, Survey)}, emergency_dir=str(tmp_path))

    result = storage.save(SURVEYS, _record())

    assert result.success is True
    assert result.synced is True
    assert db.get(Survey, "s-1") is not None
    row = local_db.get(LocalRecord, (SURVEYS, "s-1"))
    assert row.synced is True
    assert row.synced_at is not None
    assert storage.pending() == []


def test_cloud_failure_keeps_record_queued(local_db, tmp_path):
    storage = FailsafeStorage(local_db, {SURVEYS: _failing_upsert}, emergency_dir=str(tmp_path))

    result = storage.save(SURVEYS, _record())

    assert result.success is True
    assert result.synced is False
    assert "cloud down" in result.error
    queue = storage.pending()
    assert [row.id for row in queue] == ["s-1"]
    assert queue[0].retry_count == 1


def test_save_without_id_fails(local_db, tmp_path):
    storage = FailsafeStorage(local_db, emergency_dir=str(tmp_path))

    result = storage.save(SURVEYS, {"employee_id": "emp-1"})

    assert result.success is False
    assert result.error == "Record has no id"


def test_unusable_local_store_falls_back_to_emergency_file(tmp_path):
    # Engine without tables: every device store write fails
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    broken_db = sessionmaker(bind=engine)()
    storage = FailsafeStorage(broken_db, emergency_dir=str(tmp_path))

    result = storage.save(SURVEYS, _record())

    assert result.success is True
    assert result.synced is False
    assert "Device store unavailable" in result.error
    dumped = json.loads((tmp_path / "surveys_s-1.json").read_text())
    assert dumped["id"] == "s-1"
    assert dumped["emergency"] is True
    assert storage.emergency_records()[0]["id"] == "s-1"
    broken_db.close()


def test_all_storage_failing_is_reported(tmp_path):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    broken_db = sessionmaker(bind=engine)()
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    storage = FailsafeStorage(broken_db, emergency_dir=str(blocker / "nested"))

    result = storage.save(SURVEYS, _record())

    assert result.success is False
    assert result.error.startswith("All storage methods failed")
    broken_db.close()


def test_sync_to_cloud_replays_queue(db, local_db, tmp_path):
    offline = FailsafeStorage(local_db, {SURVEYS: _failing_upsert}, emergency_dir=str(tmp_path))
    offline.save(SURVEYS, _record("s-1"))
    offline.save(SURVEYS, _record("s-2"))

    online = FailsafeStorage(local_db, {SURVEYS: cloud_upserter(db, Survey)}, emergency_dir=str(tmp_path))
    results = online.sync_to_cloud()

    assert results == {SURVEYS: {"synced": 2, "failed": 0}}
    assert online.pending() == []
    assert db.query(Survey).count() == 2


def test_sync_to_cloud_failures_stay_queued(local_db, tmp_path):
    storage = FailsafeStorage(local_db, {SURVEYS: _failing_upsert}, emergency_dir=str(tmp_path))
    storage.save(SURVEYS, _record())

    results = storage.sync_to_cloud()

    assert results == {SURVEYS: {"synced": 0, "failed": 1}}
    row = storage.pending()[0]
    assert row.retry_count == 2
    assert row.last_error is not None


def test_replayed_upsert_is_idempotent(db, local_db, tmp_path):
    storage = FailsafeStorage(local_db, {SURVEYS: cloud_upserter(db, Survey)}, emergency_dir=str(tmp_path))

    storage.save(SURVEYS, _record())
    storage.save(SURVEYS, _record(synced_to_salesforce=True))

    assert db.query(Survey).count() == 1
    assert db.get(Survey, "s-1").synced_to_salesforce is True


def test_local_records_include_synced_rows(db, local_db, tmp_path):
    storage = FailsafeStorage(
        local_db,
        {SURVEYS: cloud_upserter(db, Survey), TIME_ENTRIES: _failing_upsert},
        emergency_dir=str(tmp_path),
    )
    storage.save(SURVEYS, _record())

    assert [r["id"] for r in storage.local_records(SURVEYS)] == ["s-1"]
    assert storage.local_records(TIME_ENTRIES) == []


def test_prune_only_removes_old_synced_rows(db, local_db, tmp_path):
    storage = FailsafeStorage(local_db, {SURVEYS: cloud_upserter(db, Survey)}, emergency_dir=str(tmp_path))
    storage.save(SURVEYS, _record("old"))
    storage.save(SURVEYS, _record("fresh"))
    FailsafeStorage(local_db, {SURVEYS: _failing_upsert}, emergency_dir=str(tmp_path)).save(
        SURVEYS, _record("queued")
    )
    for record_id in ("old", "queued"):
        local_db.get(LocalRecord, (SURVEYS, record_id)).saved_at = utcnow() - timedelta(days=40)
    local_db.commit()

    deleted = storage.prune_synced(30)

    assert deleted == 1
    assert sorted(r["id"] for r in storage.local_records(SURVEYS)) == ["fresh", "queued"]


def test_clear_pending(local_db, tmp_path):
    storage = FailsafeStorage(local_db, {SURVEYS: _failing_upsert}, emergency_dir=str(tmp_path))
    storage.save(SURVEYS, _record())

    assert storage.clear_pending() == 1
    assert storage.pending() == []


def test_health_reports_counts_and_backup(db, local_db, tmp_path):
    storage = FailsafeStorage(local_db, {SURVEYS: _failing_upsert}, emergency_dir=str(tmp_path))
    storage.save(SURVEYS, _record())

    health = storage.health()

    assert health["healthy"] is True
    assert health["surveys_stored"] == 1
    assert health["time_entries_stored"] == 0
    assert health["queued_for_sync"] == 1
    assert health["last_backup"] == storage.kv.get(LAST_BACKUP_KEY)["timestamp"]


def test_health_degrades_when_local_store_unusable(tmp_path):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    broken_db = sessionmaker(bind=engine)()

    health = FailsafeStorage(broken_db, emergency_dir=str(tmp_path)).health()

    assert health["healthy"] is False
    assert health["queued_for_sync"] == 0
    broken_db.close()
