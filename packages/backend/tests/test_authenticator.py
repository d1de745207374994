"""Authenticator tests: login admission rules per principal kind.

Runs against FakeCredentialStore, so no database is involved.
"""

import pytest
from structlog.testing import capture_logs

import caoguia.auth.service as auth_service
from caoguia.auth.errors import (
    InvalidCredentials,
    RegistrationPending,
    RegistrationRejected,
)
from caoguia.auth.principals import PrincipalKind, Role
from caoguia.auth.service import Authenticator
from conftest import PASSWORD


@pytest.fixture()
def authenticator(store, codec):
    return Authenticator(store, codec)


# ═══════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("is_admin, role", [(False, Role.PCD), (True, Role.ADMIN)])
async def test_user_login_role_follows_admin_flag(authenticator, store, codec, is_admin, role):
    store.add_user(1, "maria@example.com", name="Maria", is_admin=is_admin)

    issued = await authenticator.login(PrincipalKind.USER, "maria@example.com", PASSWORD)

    assert issued.role == role
    assert issued.expires_in == 3600
    assert issued.token_type == "bearer"
    claims = codec.decode(issued.access_token)
    assert claims["id"] == 1
    assert claims["name"] == "Maria"
    assert claims["is_admin"] is is_admin
    assert claims["role"] == role.value


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_email_are_indistinguishable(authenticator, store):
    store.add_user(1, "maria@example.com")

    with pytest.raises(InvalidCredentials) as wrong_pw:
        await authenticator.login_user("maria@example.com", "not-the-password")
    with pytest.raises(InvalidCredentials) as unknown:
        await authenticator.login_user("nobody@example.com", PASSWORD)

    assert type(wrong_pw.value) is type(unknown.value)
    assert wrong_pw.value.detail == unknown.value.detail
    assert wrong_pw.value.code == unknown.value.code == "invalid_credentials"


@pytest.mark.asyncio
async def test_inactive_user_cannot_log_in(authenticator, store):
    store.add_user(1, "gone@example.com", is_active=False)

    with pytest.raises(InvalidCredentials):
        await authenticator.login_user("gone@example.com", PASSWORD)


@pytest.mark.asyncio
async def test_pending_user_can_log_in(authenticator, store):
    """Users have no approval gate at login; only institutions do."""
    store.add_user(1, "new@example.com", approval_status="pending")

    issued = await authenticator.login_user("new@example.com", PASSWORD)
    assert issued.role == Role.PCD


@pytest.mark.asyncio
async def test_kind_accepts_plain_strings(authenticator, store):
    store.add_user(1, "maria@example.com")
    issued = await authenticator.login("user", "maria@example.com", PASSWORD)
    assert issued.role == Role.PCD


@pytest.mark.asyncio
async def test_unknown_kind_is_rejected(authenticator):
    with pytest.raises(ValueError):
        await authenticator.login("robot", "x@example.com", PASSWORD)


# ═══════════════════════════════════════════════════════════
# Institutions
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_approved_institution_gets_institution_token(authenticator, store, codec):
    store.add_institution(9, "escola@example.org", legal_name="Escola Helen Keller")

    issued = await authenticator.login(
        PrincipalKind.INSTITUTION, "escola@example.org", PASSWORD
    )

    assert issued.role == Role.INSTITUICAO
    claims = codec.decode(issued.access_token)
    assert claims["id"] == 9
    assert claims["name"] == "Escola Helen Keller"
    assert claims["is_admin"] is False
    assert claims["role"] == "INSTITUICAO"


@pytest.mark.asyncio
async def test_pending_institution_never_gets_a_token(authenticator, store):
    store.add_institution(9, "escola@example.org", approval_status="pending")

    with pytest.raises(RegistrationPending) as exc_info:
        await authenticator.login_institution("escola@example.org", PASSWORD)
    assert exc_info.value.code == "registration_pending"
    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_rejected_institution_never_gets_a_token(authenticator, store):
    store.add_institution(9, "escola@example.org", approval_status="rejected")

    with pytest.raises(RegistrationRejected) as exc_info:
        await authenticator.login_institution("escola@example.org", PASSWORD)
    assert exc_info.value.code == "registration_rejected"


@pytest.mark.asyncio
async def test_approval_is_checked_before_password(authenticator, store):
    store.add_institution(9, "escola@example.org", approval_status="pending")

    with pytest.raises(RegistrationPending):
        await authenticator.login_institution("escola@example.org", "wrong-password")


@pytest.mark.asyncio
async def test_approved_institution_wrong_password(authenticator, store):
    store.add_institution(9, "escola@example.org")

    with pytest.raises(InvalidCredentials):
        await authenticator.login_institution("escola@example.org", "wrong-password")


@pytest.mark.asyncio
async def test_unknown_institution_email(authenticator):
    with pytest.raises(InvalidCredentials):
        await authenticator.login_institution("ghost@example.org", PASSWORD)


@pytest.mark.asyncio
async def test_user_credentials_do_not_open_institution_login(authenticator, store):
    store.add_user(1, "maria@example.com")

    with pytest.raises(InvalidCredentials):
        await authenticator.login_institution("maria@example.com", PASSWORD)


# ═══════════════════════════════════════════════════════════
# Side channels
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_unknown_email_still_runs_a_bcrypt_check(authenticator, store, monkeypatch):
    checked = []
    real_verify = auth_service.verify_password

    def recording_verify(secret, password_hash):
        checked.append(password_hash)
        return real_verify(secret, password_hash)

    monkeypatch.setattr(auth_service, "verify_password", recording_verify)
    store.add_user(1, "gone@example.com", is_active=False)

    with pytest.raises(InvalidCredentials):
        await authenticator.login_user("nobody@example.com", PASSWORD)
    with pytest.raises(InvalidCredentials):
        await authenticator.login_user("gone@example.com", PASSWORD)
    with pytest.raises(InvalidCredentials):
        await authenticator.login_institution("nobody@example.org", PASSWORD)

    assert len(checked) == 3
    assert all(h.startswith("$2b$") for h in checked)


@pytest.mark.asyncio
async def test_rejected_login_logs_domain_not_address(authenticator):
    with capture_logs() as logs:
        with pytest.raises(InvalidCredentials):
            await authenticator.login_user("maria@example.com", PASSWORD)

    rejected = [e for e in logs if e["event"] == "auth.login_rejected"]
    assert len(rejected) == 1
    assert rejected[0]["email_domain"] == "example.com"
    assert "maria@example.com" not in repr(rejected[0])
