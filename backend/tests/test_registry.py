from __future__ import annotations

import errno
import os

import pytest

import db.attachments as attachments
from core.exceptions import IOFailure, ItemNotFound, ValidationError
from db.attachments import AttachmentStore
from db.registry import InventoryRegistry


def test_ids_strictly_increase_and_are_not_reused(registry):
    first = registry.register("Drill")
    second = registry.register("Saw")
    registry.delete(second.id)
    third = registry.register("Hammer")
    assert first.id == 1
    assert second.id == 2
    assert third.id == 3


@pytest.mark.parametrize("name", [None, "", "   ", "\t\n"])
def test_blank_name_rejected_without_side_effects(registry, cache_dir, png_bytes, stored_files, name):
    with pytest.raises(ValidationError):
        registry.register(name, "desc", png_bytes, ".png")
    assert stored_files(cache_dir) == []
    assert registry.list() == []
    # the failed attempt must not consume an id
    assert registry.register("Drill").id == 1


def test_register_trims_name_and_defaults_description(registry):
    item = registry.register("  Drill  ")
    assert item.name == "Drill"
    assert item.description == ""
    assert item.photo is None


def test_register_with_photo_stores_file(registry, png_bytes):
    item = registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    assert item.photo is not None
    assert registry.store.exists(item.photo)
    assert registry.store.read(item.photo) == png_bytes


def test_register_photo_failure_creates_nothing(tmp_path, png_bytes):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    registry = InventoryRegistry(AttachmentStore(blocker / "cache"))
    with pytest.raises(IOFailure):
        registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    assert registry.list() == []


def test_get_unknown_id(registry):
    with pytest.raises(ItemNotFound):
        registry.get(42)


def test_list_keeps_insertion_order_and_is_detached(registry):
    registry.register("A")
    registry.register("B")
    listed = registry.list()
    assert [i.name for i in listed] == ["A", "B"]

    listed.clear()
    assert len(registry.list()) == 2


def test_returned_records_do_not_alias_state(registry):
    item = registry.register("Drill", "18V")
    item.description = "changed outside"
    assert registry.get(item.id).description == "18V"


def test_update_only_touches_given_fields(registry):
    item = registry.register("Drill", "18V")
    updated = registry.update(item.id, description="20V")
    assert updated.name == "Drill"
    assert updated.description == "20V"

    updated = registry.update(item.id, name="Impact drill")
    assert updated.name == "Impact drill"
    assert updated.description == "20V"


def test_update_accepts_empty_name(registry):
    item = registry.register("Drill")
    assert registry.update(item.id, name="").name == ""


def test_update_none_means_unchanged(registry):
    item = registry.register("Drill", "18V")
    updated = registry.update(item.id, name=None, description=None)
    assert (updated.name, updated.description) == ("Drill", "18V")


def test_update_unknown_id(registry):
    with pytest.raises(ItemNotFound):
        registry.update(7, name="x")


def test_delete_removes_record_and_file(registry, png_bytes):
    item = registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    path = registry.store.resolve(item.photo)
    registry.delete(item.id)
    with pytest.raises(ItemNotFound):
        registry.get(item.id)
    assert not path.exists()


def test_delete_tolerates_missing_file(registry, png_bytes):
    item = registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    registry.store.resolve(item.photo).unlink()
    registry.delete(item.id)
    assert registry.list() == []


def test_delete_unknown_id(registry):
    with pytest.raises(ItemNotFound):
        registry.delete(1)


def test_replace_then_clear_photo(registry, cache_dir, png_bytes, stored_files):
    item = registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    old_key = item.photo

    replaced = registry.replace_photo(item.id, b"new photo", ".jpg")
    new_key = replaced.photo
    assert new_key != old_key
    assert not registry.store.exists(old_key)
    assert registry.store.read(new_key) == b"new photo"

    cleared = registry.replace_photo(item.id, None)
    assert cleared.photo is None
    assert registry.get(item.id).photo is None
    assert stored_files(cache_dir) == []


def test_replace_photo_unknown_id(registry):
    with pytest.raises(ItemNotFound):
        registry.replace_photo(3, b"x", ".jpg")


def test_find_by_id_annotates_copy_only(registry, png_bytes):
    item = registry.register("Saw", "Circular", png_bytes, ".png")
    found = registry.find_by_id(item.id, photo_locator="http://test/inventory/1/photo")
    assert found.description == "Circular\n\nPhoto URL: http://test/inventory/1/photo"
    assert found.description.count("Photo URL:") == 1
    assert registry.get(item.id).description == "Circular"


def test_find_by_id_without_photo_is_plain(registry):
    item = registry.register("Drill", "18V")
    found = registry.find_by_id(item.id, photo_locator="http://test/inventory/1/photo")
    assert found.description == "18V"
    assert registry.find_by_id(item.id).description == "18V"


def test_find_by_id_unknown(registry):
    with pytest.raises(ItemNotFound):
        registry.find_by_id(9)


def test_drill_and_saw_scenario(registry, png_bytes):
    drill = registry.register("Drill", "18V")
    assert drill.id == 1
    assert drill.photo is None

    saw = registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    assert saw.id == 2
    saw_path = registry.store.resolve(saw.photo)
    assert saw_path.exists()

    updated = registry.update(1, description="20V")
    assert updated.name == "Drill"
    assert updated.description == "20V"

    registry.delete(2)
    with pytest.raises(ItemNotFound):
        registry.get(2)
    assert not saw_path.exists()

    assert [i.id for i in registry.list()] == [1]


def _fail_with(err_no):
    def _raise(*args, **kwargs):
        raise OSError(err_no, os.strerror(err_no))
    return _raise


def test_register_write_failure_creates_nothing(registry, cache_dir, png_bytes, stored_files, monkeypatch):
    monkeypatch.setattr(attachments.os, "replace", _fail_with(errno.ENOSPC))
    with pytest.raises(IOFailure):
        registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    assert registry.list() == []
    assert stored_files(cache_dir) == []


def test_replace_photo_write_failure_leaves_no_photo(registry, cache_dir, png_bytes, stored_files, monkeypatch):
    item = registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    monkeypatch.setattr(attachments.os, "replace", _fail_with(errno.ENOSPC))

    with pytest.raises(IOFailure):
        registry.replace_photo(item.id, b"new photo", ".jpg")

    assert registry.get(item.id).photo is None
    assert stored_files(cache_dir) == []


def test_delete_keeps_record_when_file_cannot_be_removed(registry, png_bytes, monkeypatch):
    item = registry.register("Saw", photo_bytes=png_bytes, extension=".png")
    path = registry.store.resolve(item.photo)
    monkeypatch.setattr(attachments.Path, "unlink", _fail_with(errno.EACCES))

    with pytest.raises(IOFailure):
        registry.delete(item.id)

    monkeypatch.undo()
    assert registry.get(item.id).photo == item.photo
    assert path.exists()
