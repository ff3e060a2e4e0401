import pytest

from modules.snapshot.adapters.schemas import RuleResult, ValidationPayload
from modules.snapshot.domain.errors import (
    DiffNotFoundError,
    SnapshotNotFoundError,
    StorageError,
)
from modules.snapshot.infrastructure.persistence import SqlSnapshotStore
from tests.image_utils import solid_png

pytestmark = pytest.mark.integration


def _payload(found: bool = True) -> ValidationPayload:
    return ValidationPayload(
        profile=None,
        rules=[RuleResult(selector="h1", expected_text="Hello", found=found)],
    )


def test_snapshot_round_trip(store) -> None:
    image = solid_png(3, 2)
    snapshot_id = store.create_snapshot(
        image=image,
        dom="<h1>Hello</h1>",
        metadata={"url": "https://example.com"},
        label="home",
        tags=["smoke", "desktop"],
        env_info={"browser": "chromium"},
    )
    record = store.get_snapshot(snapshot_id)
    assert record.image == image
    assert record.dom == "<h1>Hello</h1>"
    assert record.metadata == {"url": "https://example.com"}
    assert record.tags == ["smoke", "desktop"]
    assert record.env_info == {"browser": "chromium"}
    assert record.archived is False
    assert record.timestamp is not None


def test_ids_are_increasing_and_never_reused(store) -> None:
    first = store.create_snapshot(image=None, dom="", metadata={})
    second = store.create_snapshot(image=None, dom="", metadata={})
    assert second > first
    store.delete_snapshot(second)
    third = store.create_snapshot(image=None, dom="", metadata={})
    assert third > second


def test_list_snapshots_filters_and_omits_images(store) -> None:
    active = store.create_snapshot(
        image=solid_png(2, 2), dom="", metadata={}, label="home", tags=["a"]
    )
    archived = store.create_snapshot(image=None, dom="", metadata={}, label="about", tags=["b"])
    store.set_archived(archived, True)

    summaries = store.list_snapshots()
    assert [summary.id for summary in summaries] == [active, archived]
    assert summaries[0].has_image is True
    assert summaries[0].image is None
    assert summaries[1].has_image is False

    assert [s.id for s in store.list_snapshots(archived=False)] == [active]
    assert [s.id for s in store.list_snapshots(archived=True)] == [archived]
    assert [s.id for s in store.list_snapshots(label="about")] == [archived]
    assert [s.id for s in store.list_snapshots(tag="a")] == [active]
    assert store.list_snapshots(include_image=True)[0].image is not None


def test_archive_is_idempotent_and_reversible(store) -> None:
    snapshot_id = store.create_snapshot(image=None, dom="", metadata={})
    store.set_archived(snapshot_id, True)
    store.set_archived(snapshot_id, True)
    assert store.get_snapshot(snapshot_id).archived is True
    store.set_archived(snapshot_id, False)
    assert store.get_snapshot(snapshot_id).archived is False


def test_archive_missing_snapshot_is_not_found(store) -> None:
    with pytest.raises(SnapshotNotFoundError):
        store.set_archived(42, True)


def test_delete_cascades_to_validations_and_diffs(store) -> None:
    image = solid_png(2, 2)
    a = store.create_snapshot(image=image, dom="", metadata={})
    b = store.create_snapshot(image=image, dom="", metadata={})
    store.record_validation(a, _payload())
    store.record_validation(b, _payload(False))
    store.record_comparison(a, b, b"png", 0.0)
    store.record_comparison(b, b, b"png", 0.0)

    removed = store.delete_snapshot(a)
    assert removed == {"validations": 1, "diffs": 1}
    with pytest.raises(SnapshotNotFoundError):
        store.get_snapshot(a)
    assert [v.snapshot_id for v in store.list_validations()] == [b]
    assert [(d.snapshot_id_a, d.snapshot_id_b) for d in store.list_comparisons()] == [(b, b)]


def test_delete_missing_snapshot_is_not_found(store) -> None:
    with pytest.raises(SnapshotNotFoundError):
        store.delete_snapshot(7)


def test_record_for_missing_snapshot_is_not_found(store) -> None:
    with pytest.raises(SnapshotNotFoundError):
        store.record_validation(1, _payload())
    with pytest.raises(SnapshotNotFoundError):
        store.record_comparison(1, 2, b"png", 0.0)


def test_latest_comparison_is_ordered_pair(store) -> None:
    a = store.create_snapshot(image=None, dom="", metadata={})
    b = store.create_snapshot(image=None, dom="", metadata={})
    store.record_comparison(a, b, b"first", 1.0)
    latest = store.record_comparison(a, b, b"second", 2.0)

    record = store.latest_comparison(a, b)
    assert record.id == latest
    assert record.diff_image == b"second"
    with pytest.raises(DiffNotFoundError):
        store.latest_comparison(b, a)


def test_list_comparisons_omits_images(store) -> None:
    a = store.create_snapshot(image=None, dom="", metadata={})
    store.record_comparison(a, a, b"png", 3.0)
    listed = store.list_comparisons()
    assert listed[0].diff_image is None
    assert listed[0].score == 3.0


def test_update_snapshot_meta_keeps_untouched_fields(store) -> None:
    snapshot_id = store.create_snapshot(image=None, dom="", metadata={}, label="x", tags=["t"])
    record = store.update_snapshot_meta(snapshot_id, label="renamed")
    assert record.label == "renamed"
    assert record.tags == ["t"]
    record = store.update_snapshot_meta(snapshot_id, tags=None)
    assert record.tags is None


def test_legacy_single_rule_validation_rows_are_readable(store) -> None:
    snapshot_id = store.create_snapshot(image=None, dom="", metadata={})
    store.import_table(
        "validations",
        [
            {
                "snapshot_id": snapshot_id,
                "result": '{"selector": "h1", "expectedText": "Hi", "found": true}',
            }
        ],
    )
    record = store.list_validations(snapshot_id)[0]
    assert record.result.rules[0].expected_text == "Hi"
    assert record.result.rules[0].found is True


def test_unreadable_validation_row_is_storage_error(store) -> None:
    snapshot_id = store.create_snapshot(image=None, dom="", metadata={})
    store.import_table(
        "validations",
        [{"snapshot_id": snapshot_id, "result": '{"rules": [{"selector": 1}]}'}],
    )
    with pytest.raises(StorageError):
        store.list_validations()


def test_second_store_sees_writes(database_url, store) -> None:
    snapshot_id = store.create_snapshot(image=None, dom="<p>shared</p>", metadata={})
    other = SqlSnapshotStore.from_url(database_url)
    try:
        assert other.get_snapshot(snapshot_id).dom == "<p>shared</p>"
    finally:
        other.close()


def test_get_comparison_includes_image(store) -> None:
    a = store.create_snapshot(image=None, dom="", metadata={})
    diff_id = store.record_comparison(a, a, b"png", 0.0)
    assert store.get_comparison(diff_id).diff_image == b"png"
    with pytest.raises(DiffNotFoundError):
        store.get_comparison(diff_id + 1)
