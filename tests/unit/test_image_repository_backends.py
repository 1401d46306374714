from datetime import UTC, datetime
from unittest.mock import MagicMock, Mock

import pytest

from src.domain.errors import OwnerNotFoundError
from src.infrastructure.database.postgres_client import PostgresClient
from src.infrastructure.database.repositories.image_repository import ImageRepository

IMAGE_UUID = "7d3c1e0a-5f4b-4f3e-9a51-2b1c0d9e8f76"
CREATED = datetime(2024, 1, 1, tzinfo=UTC)


class FakeDbError(Exception):
    def __init__(self, message, pgcode=None, code=None):
        super().__init__(message)
        self.pgcode = pgcode
        self.code = code


def image_row(**overrides):
    row = {
        "id": IMAGE_UUID,
        "user_id": "alice",
        "original_url": "/uploads/1-a.png",
        "bg_removed_url": None,
        "created_at": CREATED,
    }
    row.update(overrides)
    return row


@pytest.fixture()
def pg():
    return Mock(spec=PostgresClient)


@pytest.fixture()
def pg_repo(pg):
    return ImageRepository(None, pg_client=pg)


@pytest.fixture()
def query():
    """A chainable stand-in for a supabase query builder."""
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "limit", "order"):
        getattr(query, method).return_value = query
    query.execute.return_value = Mock(data=[])
    return query


@pytest.fixture()
def supabase(query):
    client = MagicMock()
    client.table.return_value = query
    return client


@pytest.fixture()
def sb_repo(supabase):
    return ImageRepository(supabase)


class TestPostgresBackend:
    def test_create_passes_owner(self, pg, pg_repo):
        pg.execute_insert.return_value = image_row()

        entity = pg_repo.create("alice", "/uploads/1-a.png")

        assert entity.id == IMAGE_UUID
        assert entity.created_at == CREATED
        _, params = pg.execute_insert.call_args.args
        assert params[:2] == ("alice", "/uploads/1-a.png")

    def test_create_fk_violation_is_owner_not_found(self, pg, pg_repo):
        pg.execute_insert.side_effect = FakeDbError("violates foreign key", pgcode="23503")

        with pytest.raises(OwnerNotFoundError) as exc_info:
            pg_repo.create("mallory", "/uploads/1-a.png")

        assert exc_info.value.user_id == "mallory"

    def test_create_other_errors_are_runtime_errors(self, pg, pg_repo):
        pg.execute_insert.side_effect = FakeDbError("connection lost", pgcode="08006")

        with pytest.raises(RuntimeError, match="connection lost"):
            pg_repo.create("alice", "/uploads/1-a.png")

    def test_get_is_scoped_to_owner(self, pg, pg_repo):
        pg.execute_one.return_value = image_row()

        entity = pg_repo.get("alice", IMAGE_UUID)

        assert entity.user_id == "alice"
        sql, params = pg.execute_one.call_args.args
        assert "user_id = %s" in sql
        assert params == (IMAGE_UUID, "alice")

    def test_get_missing_row(self, pg, pg_repo):
        pg.execute_one.return_value = None

        assert pg_repo.get("bob", IMAGE_UUID) is None

    def test_list_by_user(self, pg, pg_repo):
        pg.execute_many.return_value = [
            {"id": IMAGE_UUID, "original_url": "/uploads/1-a.png", "bg_removed_url": "/uploads/1-a.png"},
        ]

        items = pg_repo.list_by_user("alice")

        assert [item.id for item in items] == [IMAGE_UUID]
        sql, params = pg.execute_many.call_args.args
        assert "ORDER BY created_at" in sql
        assert params == ("alice",)

    def test_update_and_delete_report_rowcount(self, pg, pg_repo):
        pg.execute_update.return_value = 0

        assert pg_repo.update_bg_removed_url("bob", IMAGE_UUID, "/uploads/1-a.png") == 0
        assert pg_repo.delete("bob", IMAGE_UUID) == 0

        for call in pg.execute_update.call_args_list:
            sql, params = call.args
            assert "user_id = %s" in sql
            assert params[-2:] == (IMAGE_UUID, "bob")


class TestSupabaseBackend:
    def test_create(self, supabase, query, sb_repo):
        query.execute.return_value = Mock(data=[image_row(created_at=CREATED.isoformat())])

        entity = sb_repo.create("alice", "/uploads/1-a.png")

        assert entity.id == IMAGE_UUID
        assert entity.created_at == CREATED
        supabase.table.assert_called_with("images")
        inserted = query.insert.call_args.args[0]
        assert inserted["user_id"] == "alice"

    def test_create_fk_violation_is_owner_not_found(self, query, sb_repo):
        query.execute.side_effect = FakeDbError("violates foreign key", code="23503")

        with pytest.raises(OwnerNotFoundError):
            sb_repo.create("mallory", "/uploads/1-a.png")

    def test_create_other_errors_are_runtime_errors(self, query, sb_repo):
        query.execute.side_effect = FakeDbError("timeout", code="57014")

        with pytest.raises(RuntimeError, match="timeout"):
            sb_repo.create("alice", "/uploads/1-a.png")

    def test_get_filters_by_id_and_owner(self, query, sb_repo):
        query.execute.return_value = Mock(data=[image_row(created_at=CREATED.isoformat())])

        entity = sb_repo.get("alice", IMAGE_UUID.upper())

        assert entity.id == IMAGE_UUID
        query.eq.assert_any_call("id", IMAGE_UUID)
        query.eq.assert_any_call("user_id", "alice")

    def test_get_foreign_image_is_none(self, query, sb_repo):
        query.execute.return_value = Mock(data=[])

        assert sb_repo.get("bob", IMAGE_UUID) is None

    def test_list_by_user(self, query, sb_repo):
        query.execute.return_value = Mock(
            data=[{"id": IMAGE_UUID, "original_url": "/uploads/1-a.png", "bg_removed_url": None}],
        )

        items = sb_repo.list_by_user("alice")

        assert [item.id for item in items] == [IMAGE_UUID]
        query.eq.assert_called_once_with("user_id", "alice")
        query.order.assert_called_once_with("created_at")

    def test_update_and_delete_count_returned_rows(self, query, sb_repo):
        query.execute.return_value = Mock(data=[image_row()])

        assert sb_repo.update_bg_removed_url("alice", IMAGE_UUID, "/uploads/1-a.png") == 1
        assert sb_repo.delete("alice", IMAGE_UUID) == 1
        query.eq.assert_any_call("user_id", "alice")

    @pytest.mark.parametrize("image_id", ["abc", "img_1", "", "1; drop table images"])
    def test_malformed_ids_never_reach_the_database(self, query, sb_repo, image_id):
        assert sb_repo.get("alice", image_id) is None
        assert sb_repo.update_bg_removed_url("alice", image_id, "/uploads/1-a.png") == 0
        assert sb_repo.delete("alice", image_id) == 0

        query.execute.assert_not_called()

    def test_read_errors_are_runtime_errors(self, query, sb_repo):
        query.execute.side_effect = FakeDbError("bad gateway")

        with pytest.raises(RuntimeError, match="DB get image failed"):
            sb_repo.get("alice", IMAGE_UUID)
        with pytest.raises(RuntimeError, match="DB delete image failed"):
            sb_repo.delete("alice", IMAGE_UUID)
