"""User routes: self-or-admin gating and soft-delete revocation."""

import pytest


@pytest.mark.asyncio
async def test_owner_is_admitted_other_user_is_forbidden(client, make_user, login):
    """A PCD token opens its own record and nobody else's."""
    me = await make_user("maria@example.com")
    other = await make_user("joao@example.com", name="João")
    headers = await login("maria@example.com")

    r = await client.get(f"/api/v1/users/{me.id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["email"] == "maria@example.com"
    assert "password_hash" not in r.json()

    r = await client.get(f"/api/v1/users/{other.id}", headers=headers)
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"


@pytest.mark.asyncio
async def test_admin_is_admitted_to_any_user(client, make_user, login):
    await make_user("boss@example.com", is_admin=True)
    target = await make_user("maria@example.com")
    headers = await login("boss@example.com")

    r = await client.get(f"/api/v1/users/{target.id}", headers=headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_institution_cannot_open_user_with_same_id(client, make_user, make_institution, login):
    user = await make_user("maria@example.com")
    inst = await make_institution("escola@example.org", "11222333000181")
    assert inst.id == user.id  # ids come from separate sequences
    headers = await login("escola@example.org", institution=True)

    r = await client.get(f"/api/v1/users/{user.id}", headers=headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_users_me(client, make_user, login):
    await make_user("maria@example.com", name="Maria")
    headers = await login("maria@example.com")

    r = await client.get("/api/v1/users/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Maria"


@pytest.mark.asyncio
async def test_users_requires_token(client, make_user):
    user = await make_user("maria@example.com")
    r = await client.get(f"/api/v1/users/{user.id}")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_update_own_profile(client, make_user, login):
    me = await make_user("maria@example.com")
    headers = await login("maria@example.com")

    r = await client.put(
        f"/api/v1/users/{me.id}",
        json={"name": "Maria S.", "phone": "(48) 99999-0000"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Maria S."
    assert r.json()["phone"] == "48999990000"


@pytest.mark.asyncio
async def test_update_email_to_taken_address(client, make_user, login):
    me = await make_user("maria@example.com")
    await make_user("joao@example.com")
    headers = await login("maria@example.com")

    r = await client.put(
        f"/api/v1/users/{me.id}", json={"email": "joao@example.com"}, headers=headers
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_update_other_user_forbidden(client, make_user, login):
    await make_user("maria@example.com")
    other = await make_user("joao@example.com")
    headers = await login("maria@example.com")

    r = await client.put(f"/api/v1/users/{other.id}", json={"name": "Hacked"}, headers=headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_self_deactivation_revokes_token_on_next_request(client, make_user, login):
    me = await make_user("maria@example.com")
    headers = await login("maria@example.com")

    r = await client.delete(f"/api/v1/users/{me.id}", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"deactivated": True}

    # Same, still unexpired token
    r = await client.get("/api/v1/auth/me", headers=headers)
    assert r.status_code == 401
    assert r.json()["code"] == "principal_not_found"

    # And the account can no longer log in
    r = await client.post(
        "/api/v1/auth/login", json={"email": "maria@example.com", "password": "correct-horse"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_admin_deactivates_user(client, make_user, login):
    await make_user("boss@example.com", is_admin=True)
    await make_user("maria@example.com")
    target_headers = await login("maria@example.com")
    admin_headers = await login("boss@example.com")

    me = (await client.get("/api/v1/auth/me", headers=target_headers)).json()
    r = await client.delete(f"/api/v1/users/{me['id']}", headers=admin_headers)
    assert r.status_code == 200

    r = await client.get("/api/v1/users/me", headers=target_headers)
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_deactivate_missing_user(client, make_user, login):
    await make_user("boss@example.com", is_admin=True)
    headers = await login("boss@example.com")

    r = await client.delete("/api/v1/users/999", headers=headers)
    assert r.status_code == 404
