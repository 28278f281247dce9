"""Tests for principal persistence: conditional saves, soft delete and listing."""

import pytest

from gate_auth.models.enums import AdminRole
from gate_auth.utils.exceptions import AlreadyExistsError, ConcurrentUpdateError

PHONE = "+77771234567"


@pytest.fixture
def store(services):
    return services.store


class TestConditionalSave:

    def test_save_with_expected_version(self, conn, store):
        user = store.create_user(conn, PHONE, "hash")
        user.token_version = 1
        user.current_device_id = "A"
        store.save_user(conn, user, expected_version=0)

        reloaded = store.find_user_by_id(conn, user.id)
        assert reloaded.token_version == 1
        assert reloaded.current_device_id == "A"

    def test_save_without_changes_still_succeeds(self, conn, store):
        user = store.create_user(conn, PHONE, "hash")
        store.save_user(conn, user, expected_version=0)
        assert store.find_user_by_id(conn, user.id).token_version == 0

    def test_lost_race_raises(self, conn, store):
        user = store.create_user(conn, PHONE, "hash")
        winner = store.find_user_by_id(conn, user.id)
        loser = store.find_user_by_id(conn, user.id)

        winner.token_version += 1
        store.save_user(conn, winner, expected_version=0)

        loser.token_version += 1
        with pytest.raises(ConcurrentUpdateError):
            store.save_user(conn, loser, expected_version=0)
        assert store.find_user_by_id(conn, user.id).token_version == 1

    def test_admin_lost_race_raises(self, conn, store):
        admin = store.create_admin(conn, "ops", "hash", AdminRole.REGULAR)
        admin.token_version = 5
        with pytest.raises(ConcurrentUpdateError):
            store.save_admin(conn, admin, expected_version=4)


class TestSoftDelete:

    def test_deleted_user_is_hidden_and_bumped(self, conn, store):
        user = store.create_user(conn, PHONE, "hash")
        store.delete_user(conn, user)

        assert store.find_user_by_id(conn, user.id) is None
        assert store.find_user_by_phone(conn, PHONE) is None
        hidden = store.find_user_by_id(conn, user.id, include_deleted=True)
        assert hidden.deleted_at is not None
        assert hidden.token_version == 1

    def test_phone_can_be_reused_after_delete(self, conn, store):
        old = store.create_user(conn, PHONE, "hash")
        store.delete_user(conn, old)
        assert store.phone_exists(conn, PHONE) is False

        new = store.create_user(conn, PHONE, "hash2")
        assert new.id != old.id
        assert store.find_user_by_phone(conn, PHONE).id == new.id

    def test_deleted_user_cannot_be_saved(self, conn, store):
        user = store.create_user(conn, PHONE, "hash")
        store.delete_user(conn, user)
        with pytest.raises(ConcurrentUpdateError):
            store.save_user(conn, user, expected_version=user.token_version)

    def test_deleted_admin_is_hidden_and_bumped(self, conn, store):
        admin = store.create_admin(conn, "ops", "hash", AdminRole.REGULAR)
        store.delete_admin(conn, admin)

        assert store.find_admin_by_id(conn, admin.id) is None
        assert store.username_exists(conn, "ops") is False
        assert store.find_admin_by_id(conn, admin.id, include_deleted=True).token_version == 1


class TestLiveUniqueness:

    def test_second_live_phone_rejected(self, conn, store):
        store.create_user(conn, PHONE, "hash")
        with pytest.raises(AlreadyExistsError, match="already exists"):
            store.create_user(conn, PHONE, "hash2")
        _, total = store.list_users(conn, 1, -1)
        assert total == 1

    def test_many_deleted_rows_share_a_phone(self, conn, store):
        for _ in range(2):
            store.delete_user(conn, store.create_user(conn, PHONE, "hash"))
        live = store.create_user(conn, PHONE, "hash")
        assert store.find_user_by_phone(conn, PHONE).id == live.id

    def test_phone_change_onto_live_phone(self, conn, store):
        store.create_user(conn, PHONE, "hash")
        other = store.create_user(conn, "+77770000000", "hash")
        other.phone = PHONE
        other.token_version += 1
        with pytest.raises(AlreadyExistsError, match="already in use"):
            store.save_user(conn, other, expected_version=0)
        assert store.find_user_by_id(conn, other.id).phone == "+77770000000"

    def test_second_live_username_rejected(self, conn, store):
        store.create_admin(conn, "ops", "hash", AdminRole.REGULAR)
        with pytest.raises(AlreadyExistsError):
            store.create_admin(conn, "ops", "hash", AdminRole.SUPER)

    def test_rename_onto_live_username(self, conn, store):
        admin = store.create_admin(conn, "ops", "hash", AdminRole.REGULAR)
        admin.username = "root"
        with pytest.raises(AlreadyExistsError):
            store.save_admin(conn, admin, expected_version=0)

    def test_deleted_username_can_be_reused(self, conn, store):
        store.delete_admin(conn, store.create_admin(conn, "ops", "hash", AdminRole.REGULAR))
        again = store.create_admin(conn, "ops", "hash", AdminRole.REGULAR)
        assert store.find_admin_by_username(conn, "ops").id == again.id


class TestListing:

    def _seed(self, conn, store, count):
        return [store.create_user(conn, f"+7777123450{i}", "hash") for i in range(count)]

    def test_pagination_and_total(self, conn, store):
        self._seed(conn, store, 5)
        page_one, total = store.list_users(conn, page=1, limit=2)
        page_three, _ = store.list_users(conn, page=3, limit=2)

        assert total == 5
        assert len(page_one) == 2
        assert len(page_three) == 1

    def test_limit_minus_one_returns_everything(self, conn, store):
        self._seed(conn, store, 4)
        users, total = store.list_users(conn, page=1, limit=-1)
        assert len(users) == total == 4

    def test_order_and_search(self, conn, store):
        seeded = self._seed(conn, store, 3)
        oldest_first, _ = store.list_users(conn, 1, 10, order="ASC")
        newest_first, _ = store.list_users(conn, 1, 10, order="DESC")
        assert oldest_first[0].id == seeded[0].id
        assert newest_first[0].id == seeded[-1].id

        matches, total = store.list_users(conn, 1, 10, search="4502")
        assert total == 1
        assert matches[0].phone == "+77771234502"

    def test_deleted_excluded_from_listing(self, conn, store):
        users = self._seed(conn, store, 2)
        store.delete_user(conn, users[0])
        _, total = store.list_users(conn, 1, 10)
        assert total == 1

    def test_admin_role_filter(self, conn, store):
        store.create_admin(conn, "ops", "hash", AdminRole.REGULAR)
        regular, total = store.list_admins(conn, 1, 10, role=AdminRole.REGULAR)
        assert total == 1
        assert regular[0].username == "ops"
        # the bootstrap admin is the only super
        _, supers = store.list_admins(conn, 1, 10, role=AdminRole.SUPER)
        assert supers == 1

    def test_find_by_id_covers_both_kinds(self, conn, store):
        user = store.create_user(conn, PHONE, "hash")
        admin = store.create_admin(conn, "ops", "hash", AdminRole.REGULAR)
        assert store.find_by_id(conn, user.id).phone == PHONE
        assert store.find_by_id(conn, admin.id).username == "ops"
