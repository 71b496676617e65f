from fieldkiosk.cache import Cache
from fieldkiosk.worker import WorkerSettings, sync_minutes


def test_root(client):
    assert client.get("/").json() == {"message": "Field Kiosk API is running"}


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["storage"]["healthy"] is True


def test_sync_minutes():
    assert sync_minutes(15) == {0, 15, 30, 45}
    assert sync_minutes(0) == set(range(60))
    assert sync_minutes(90) == {0}


def test_worker_registers_all_tasks():
    names = {f.__name__ for f in WorkerSettings.functions}

    assert names == {"sync_cycle_task", "adp_sync_task", "daily_report_task", "stats_sync_task"}
    assert WorkerSettings.max_tries == 1


def test_cache_fails_open_without_redis(client, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("REDIS_HOST", raising=False)
    local_cache = Cache()

    assert local_cache.get("salesforce:lead_fields") is None
    assert local_cache.set("salesforce:lead_fields", []) is False

    body = client.get("/health/redis").json()
    assert body["status"] == "unhealthy"
    assert body["redis"]["connected"] is False
