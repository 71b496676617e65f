from fieldkiosk.storage.reconcile import merge_by_id


def test_cloud_copy_wins_on_shared_id():
    local = [{"id": "a", "timestamp": "2024-01-01T10:00:00", "synced_to_salesforce": False}]
    cloud = [{"id": "a", "timestamp": "2024-01-01T10:00:00", "synced_to_salesforce": True}]

    merged = merge_by_id(local, cloud)

    assert merged == cloud


def test_local_only_records_are_kept():
    local = [{"id": "offline", "timestamp": "2024-01-02T09:00:00"}]
    cloud = [{"id": "remote", "timestamp": "2024-01-01T09:00:00"}]

    merged = merge_by_id(local, cloud)

    assert [r["id"] for r in merged] == ["offline", "remote"]


def test_sorted_newest_first_by_default():
    records = [
        {"id": "1", "clock_in": "2024-03-01T08:00:00"},
        {"id": "2", "clock_in": "2024-03-03T08:00:00"},
        {"id": "3", "clock_in": "2024-03-02T08:00:00"},
    ]

    merged = merge_by_id(records, [], sort_key="clock_in")

    assert [r["id"] for r in merged] == ["2", "3", "1"]


def test_ascending_sort():
    records = [{"id": "1", "timestamp": "b"}, {"id": "2", "timestamp": "a"}]

    assert [r["id"] for r in merge_by_id(records, [], reverse=False)] == ["2", "1"]


def test_records_without_id_are_ignored():
    assert merge_by_id([{"timestamp": "x"}], [{"id": None}]) == []


def test_merge_is_idempotent():
    local = [{"id": "a", "timestamp": "1"}, {"id": "b", "timestamp": "2"}]
    cloud = [{"id": "b", "timestamp": "2", "cloud": True}]

    once = merge_by_id(local, cloud)
    twice = merge_by_id(once, cloud)

    assert once == twice
