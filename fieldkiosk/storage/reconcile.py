from typing import Iterable


def merge_by_id(
    local: Iterable[dict],
    cloud: Iterable[dict],
    sort_key: str = "timestamp",
    reverse: bool = True,
) -> list[dict]:
    """
    Merge local and cloud copies of the same collection.

    Local records go in first, then cloud records overwrite by id, so when
    both sides hold the same id the cloud copy wins. Records without an id
    are ignored. The result is sorted by ``sort_key`` (newest first by
    default); merging the output again with the same inputs is a no-op.
    """
    merged: dict[str, dict] = {}
    for record in local:
        if record.get("id"):
            merged[record["id"]] = record
    for record in cloud:
        if record.get("id"):
            merged[record["id"]] = record

    return sorted(merged.values(), key=lambda r: str(r.get(sort_key) or ""), reverse=reverse)
