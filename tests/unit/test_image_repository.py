import pytest

from src.domain.errors import OwnerNotFoundError
from src.infrastructure.database.memory_store import MemoryStore
from src.infrastructure.database.repositories.image_repository import ImageRepository
from src.infrastructure.database.repositories.profile_repository import ProfileRepository


@pytest.fixture()
def store() -> MemoryStore:
    store = MemoryStore()
    profiles = ProfileRepository(None, store=store)
    profiles.upsert("alice", "alice@example.com")
    profiles.upsert("bob", None)
    return store


@pytest.fixture()
def repo(store) -> ImageRepository:
    return ImageRepository(None, store=store)


def test_requires_a_backend():
    with pytest.raises(ValueError):
        ImageRepository(None)


def test_create_and_get(repo):
    created = repo.create("alice", "/uploads/1-a.png")

    assert created.user_id == "alice"
    assert created.original_url == "/uploads/1-a.png"
    assert created.bg_removed_url is None
    assert repo.get("alice", created.id) == created


def test_create_rejects_unknown_owner(repo):
    with pytest.raises(OwnerNotFoundError):
        repo.create("mallory", "/uploads/1-a.png")


def test_create_rejects_empty_url(repo):
    with pytest.raises(ValueError):
        repo.create("alice", "")


def test_other_owner_cannot_read_or_delete(repo):
    img = repo.create("alice", "/uploads/1-a.png")

    assert repo.get("bob", img.id) is None
    assert repo.delete("bob", img.id) == 0
    assert repo.update_bg_removed_url("bob", img.id, "/uploads/evil.png") == 0
    assert repo.get("alice", img.id) == img


def test_list_is_scoped_and_in_insertion_order(repo):
    first = repo.create("alice", "/uploads/1-a.png")
    repo.create("bob", "/uploads/2-b.png")
    second = repo.create("alice", "/uploads/3-c.png")

    items = repo.list_by_user("alice")

    assert [it.id for it in items] == [first.id, second.id]
    assert items[0].original_url == "/uploads/1-a.png"
    assert repo.list_by_user("nobody") == []


def test_list_returns_a_fresh_snapshot(repo):
    repo.create("alice", "/uploads/1-a.png")
    items = repo.list_by_user("alice")
    repo.create("alice", "/uploads/2-b.png")

    assert len(items) == 1
    assert len(repo.list_by_user("alice")) == 2


def test_update_bg_removed_url(repo):
    img = repo.create("alice", "/uploads/1-a.png")

    assert repo.update_bg_removed_url("alice", img.id, "/uploads/1-a.png") == 1
    updated = repo.get("alice", img.id)
    assert updated.bg_removed_url == "/uploads/1-a.png"
    assert updated.is_processed
    assert updated.created_at == img.created_at


def test_update_missing_image_is_a_noop(repo):
    assert repo.update_bg_removed_url("alice", "img_404", "/uploads/x.png") == 0


def test_delete_is_idempotent(repo):
    img = repo.create("alice", "/uploads/1-a.png")

    assert repo.delete("alice", img.id) == 1
    assert repo.delete("alice", img.id) == 0
    assert repo.get("alice", img.id) is None


def test_separate_stores_do_not_share_rows(repo):
    repo.create("alice", "/uploads/1-a.png")
    other_store = MemoryStore()
    ProfileRepository(None, store=other_store).upsert("alice", None)

    assert ImageRepository(None, store=other_store).list_by_user("alice") == []
