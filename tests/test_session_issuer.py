"""Unit tests for registration, login, refresh and the invalidation rules around them."""

import pytest

from gate_auth.models.enums import AdminRole, TokenKind
from gate_auth.services.session_issuer import device_requires_new_version
from gate_auth.utils.exceptions import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidPhoneFormatError,
    PrincipalNotFoundError,
    TokenInvalidatedError,
    ValidationError,
    WeakPasswordError,
)

PHONE = "+77771234567"
PASSWORD = "secret123"


@pytest.fixture
def issuer(services):
    return services.issuer


@pytest.fixture
def registered(conn, issuer):
    return issuer.register_user(conn, PHONE, PASSWORD)


def _version(conn, services, user_id):
    return services.store.find_user_by_id(conn, user_id).token_version


class TestDevicePolicy:

    @pytest.mark.parametrize(
        "stored,supplied,bump",
        [
            ("", None, True),
            ("A", None, True),
            ("A", "", True),
            ("", "A", False),
            ("A", "A", False),
            ("A", "B", True),
        ],
    )
    def test_policy(self, stored, supplied, bump):
        assert device_requires_new_version(stored, supplied) is bump


class TestRegister:

    def test_register_starts_at_version_zero(self, conn, services, registered):
        user = services.store.find_user_by_id(conn, registered)
        assert user.token_version == 0
        assert user.current_device_id == ""
        assert user.password_hash != PASSWORD

    def test_duplicate_phone_rejected(self, conn, issuer, registered):
        with pytest.raises(AlreadyExistsError, match="already exists"):
            issuer.register_user(conn, PHONE, "another-pass")

    def test_racing_registration_hits_constraint(self, conn, services, issuer, registered, monkeypatch):
        # both requests passed the availability check before either inserted
        monkeypatch.setattr(services.store, "phone_exists", lambda conn, phone: False)
        with pytest.raises(AlreadyExistsError, match="already exists"):
            issuer.register_user(conn, PHONE, "another-pass")
        assert services.store.find_user_by_phone(conn, PHONE).id == registered

    @pytest.mark.parametrize("phone", ["", "77771234567", "+0123", "+1", "+7 777 123"])
    def test_bad_phone_rejected(self, conn, issuer, phone):
        with pytest.raises(InvalidPhoneFormatError):
            issuer.register_user(conn, phone, PASSWORD)

    def test_short_password_rejected(self, conn, issuer):
        with pytest.raises(WeakPasswordError):
            issuer.register_user(conn, PHONE, "12345")

    def test_phone_availability(self, conn, issuer, registered):
        assert issuer.is_phone_available(conn, PHONE) is False
        assert issuer.is_phone_available(conn, "+77770000000") is True

    def test_phone_availability_requires_phone(self, conn, issuer):
        with pytest.raises(ValidationError, match="required"):
            issuer.is_phone_available(conn, "")


class TestUserLogin:

    def test_login_without_device_bumps_version(self, conn, services, issuer, registered):
        session = issuer.login_user(conn, PHONE, PASSWORD)
        assert session.token_version == 1
        assert _version(conn, services, registered) == 1

        claims = services.codec.verify(session.access_token, TokenKind.ACCESS)
        assert claims.version == 1
        assert services.codec.verify(session.refresh_token, TokenKind.REFRESH).version == 1

    def test_second_login_without_device_invalidates_first(self, conn, services, issuer, registered):
        first = issuer.login_user(conn, PHONE, PASSWORD)
        issuer.login_user(conn, PHONE, PASSWORD)

        with pytest.raises(TokenInvalidatedError):
            services.guard.authenticate(conn, f"Bearer {first.access_token}", TokenKind.ACCESS)

    def test_consecutive_plain_logins_count_up(self, conn, services, issuer, registered):
        versions = [issuer.login_user(conn, PHONE, PASSWORD).token_version for _ in range(3)]
        assert versions == [1, 2, 3]
        assert _version(conn, services, registered) == 3

    def test_device_sequence(self, conn, services, issuer, registered):
        legacy = issuer.login_user(conn, PHONE, PASSWORD)
        assert legacy.token_version == 1

        on_a = issuer.login_user(conn, PHONE, PASSWORD, device_id="A")
        assert on_a.token_version == 1
        assert services.store.find_user_by_id(conn, registered).current_device_id == "A"

        again_on_a = issuer.login_user(conn, PHONE, PASSWORD, device_id="A")
        assert again_on_a.token_version == 1
        # same device keeps the earlier session alive
        services.guard.authenticate(conn, f"Bearer {on_a.access_token}", TokenKind.ACCESS)

        on_b = issuer.login_user(conn, PHONE, PASSWORD, device_id="B")
        assert on_b.token_version == 2
        assert services.store.find_user_by_id(conn, registered).current_device_id == "B"
        with pytest.raises(TokenInvalidatedError):
            services.guard.authenticate(conn, f"Bearer {again_on_a.access_token}", TokenKind.ACCESS)

    def test_first_device_login_keeps_version(self, conn, services, issuer, registered):
        session = issuer.login_user(conn, PHONE, PASSWORD, device_id="A")
        assert session.token_version == 0

    def test_wrong_password(self, conn, services, issuer, registered):
        with pytest.raises(InvalidCredentialsError):
            issuer.login_user(conn, PHONE, "wrong-password")
        assert _version(conn, services, registered) == 0

    def test_unknown_phone_gets_same_error(self, conn, issuer, registered):
        with pytest.raises(InvalidCredentialsError) as unknown:
            issuer.login_user(conn, "+77770000000", PASSWORD)
        with pytest.raises(InvalidCredentialsError) as wrong:
            issuer.login_user(conn, PHONE, "wrong-password")
        assert unknown.value.message == wrong.value.message

    def test_bad_phone_format(self, conn, issuer):
        with pytest.raises(InvalidPhoneFormatError):
            issuer.login_user(conn, "12345", PASSWORD)

    def test_session_reports_lifetimes(self, conn, issuer, settings, registered):
        session = issuer.login_user(conn, PHONE, PASSWORD)
        assert session.access_ttl == settings.JWT_ACCESS_EXPIRY
        assert session.refresh_ttl == settings.JWT_REFRESH_EXPIRY


class TestRefresh:

    def test_refresh_mints_access_at_same_version(self, conn, services, issuer, registered):
        session = issuer.login_user(conn, PHONE, PASSWORD)
        access = issuer.refresh_user_access(conn, session.refresh_token)

        claims = services.codec.verify(access, TokenKind.ACCESS)
        assert claims.version == session.token_version
        assert _version(conn, services, registered) == session.token_version

    def test_refresh_after_relogin_is_invalidated(self, conn, issuer, registered):
        first = issuer.login_user(conn, PHONE, PASSWORD)
        issuer.login_user(conn, PHONE, PASSWORD)
        with pytest.raises(TokenInvalidatedError):
            issuer.refresh_user_access(conn, first.refresh_token)

    def test_access_token_cannot_refresh(self, conn, issuer, registered):
        session = issuer.login_user(conn, PHONE, PASSWORD)
        with pytest.raises(InvalidOrExpiredTokenError, match="refresh token"):
            issuer.refresh_user_access(conn, session.access_token)

    def test_garbage_refresh_token(self, conn, issuer):
        with pytest.raises(InvalidOrExpiredTokenError):
            issuer.refresh_user_access(conn, "garbage")

    def test_refresh_for_deleted_user(self, conn, services, issuer, super_actor, registered):
        session = issuer.login_user(conn, PHONE, PASSWORD)
        services.users.delete_user(conn, super_actor, registered)
        with pytest.raises(PrincipalNotFoundError):
            issuer.refresh_user_access(conn, session.refresh_token)


class TestAdminLogin:

    def test_every_login_bumps_and_revokes_previous(self, conn, services, issuer):
        first = issuer.login_admin(conn, "root", "root-password")
        second = issuer.login_admin(conn, "root", "root-password")

        assert second.token_version == first.token_version + 1
        assert second.role == AdminRole.SUPER
        with pytest.raises(TokenInvalidatedError):
            services.guard.authenticate(conn, f"Bearer {first.token}", TokenKind.ADMIN)
        context = services.guard.authenticate(conn, f"Bearer {second.token}", TokenKind.ADMIN)
        assert context.role == AdminRole.SUPER

    def test_admin_token_has_no_expiry(self, conn, services, issuer):
        session = issuer.login_admin(conn, "root", "root-password")
        assert services.codec.verify(session.token, TokenKind.ADMIN).expires_at is None

    def test_wrong_password(self, conn, issuer):
        with pytest.raises(InvalidCredentialsError):
            issuer.login_admin(conn, "root", "nope-nope")

    def test_unknown_admin(self, conn, issuer):
        with pytest.raises(InvalidCredentialsError):
            issuer.login_admin(conn, "ghost", "root-password")

    @pytest.mark.parametrize("username,password", [("", "x"), ("root", ""), ("", "")])
    def test_missing_fields(self, conn, issuer, username, password):
        with pytest.raises(ValidationError, match="required"):
            issuer.login_admin(conn, username, password)
