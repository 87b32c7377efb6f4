import pytest

from kennel.errors import SeedResetError
from kennel.reconciler import DirectoryReconciler
from kennel.seed import SEED_PUPPIES


def test_reset_installs_the_seed_set(store):
    store.create_puppy("Custom", ["/dogs/custom/image1.jpg"])

    result = DirectoryReconciler(store).reset_to_seed()

    assert result == {"success": True}
    assert store.get_puppy_by_name("Custom") is None
    puppies = {p.name: p for p in store.list_puppies()}
    assert len(puppies) == len(SEED_PUPPIES) == 9
    assert puppies["Gray"].images == ["/dogs/gray/image1.jpg", "/dogs/gray/image2.jpg"]
    assert {name for name, p in puppies.items() if p.is_sold} == {"Green", "Pink"}
    parents = store.get_parents()
    assert parents["dam"].name == "Queenie" and len(parents["dam"].images) == 6
    assert parents["sire"].name == "King" and len(parents["sire"].images) == 4


def test_reset_twice_does_not_duplicate_parents(store):
    reconciler = DirectoryReconciler(store)
    reconciler.reset_to_seed()
    reconciler.reset_to_seed()
    assert store.count_subjects() == 11


def test_failed_reset_keeps_previous_data(store, monkeypatch):
    store.create_parent("dam", "Queenie", ["/dogs/dam/image7.jpg"])
    store.create_puppy("Custom", ["/dogs/custom/image1.jpg"], is_sold=True)

    def explode(*args, **kwargs):
        raise RuntimeError("power cut between delete and insert")

    monkeypatch.setattr(store, "bulk_insert", explode)
    with pytest.raises(SeedResetError):
        DirectoryReconciler(store).reset_to_seed()

    assert store.count_subjects() == 2
    custom = store.get_puppy_by_name("Custom")
    assert custom.images == ["/dogs/custom/image1.jpg"]
    assert custom.is_sold is True
    assert store.get_parent("dam").images == ["/dogs/dam/image7.jpg"]


def test_failed_commit_keeps_previous_data(store, monkeypatch):
    store.create_puppy("Custom", [])

    def failing_commit():
        raise RuntimeError("database is locked")

    monkeypatch.setattr(store, "commit", failing_commit)
    with pytest.raises(SeedResetError):
        DirectoryReconciler(store).reset_to_seed()

    assert [p.name for p in store.list_puppies()] == ["Custom"]
