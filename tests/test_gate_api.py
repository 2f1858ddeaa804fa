"""Tests for the storefront and admin access gates."""

import threading

import pytest

from storefront.config import Settings, settings


@pytest.mark.asyncio
async def test_storefront_gate_requires_age_confirmation(client):
    response = await client.post(
        "/gate/storefront", json={"password": "shop-secret", "age_confirmed": False}
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Please confirm that you are 21 years or older."


@pytest.mark.asyncio
async def test_storefront_gate_rejects_wrong_password(client):
    response = await client.post(
        "/gate/storefront", json={"password": "guess", "age_confirmed": True}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Please enter the correct password to access the site."


@pytest.mark.asyncio
async def test_storefront_gate_returns_welcome_instructions(client, admin_headers):
    await client.patch(
        "/admin/settings",
        json={"welcome_instructions": "Scroll down to browse."},
        headers=admin_headers,
    )

    response = await client.post(
        "/gate/storefront", json={"password": "shop-secret", "age_confirmed": True}
    )

    assert response.status_code == 200
    assert response.json() == {"granted": True, "welcome_instructions": "Scroll down to browse."}


@pytest.mark.asyncio
async def test_gate_stays_closed_without_configured_password(client):
    settings.STOREFRONT_PASSWORD = None

    response = await client.post(
        "/gate/storefront", json={"password": "anything", "age_confirmed": True}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_gate(client):
    ok = await client.post("/gate/admin", json={"password": "admin-secret"})
    denied = await client.post("/gate/admin", json={"password": "shop-secret"})

    assert ok.status_code == 200
    assert denied.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_require_password_header(client):
    missing = await client.get("/admin/products")
    wrong = await client.get("/admin/products", headers={"X-Admin-Password": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert missing.json()["detail"] == "Invalid admin password"


@pytest.mark.asyncio
async def test_password_change_takes_effect(client, admin_headers):
    response = await client.put(
        "/admin/settings/passwords",
        json={"admin_password": "rotated", "storefront_password": "new-shop"},
        headers=admin_headers,
    )
    assert response.status_code == 204

    old = await client.get("/admin/products", headers=admin_headers)
    new = await client.get("/admin/products", headers={"X-Admin-Password": "rotated"})
    shop = await client.post(
        "/gate/storefront", json={"password": "new-shop", "age_confirmed": True}
    )

    assert old.status_code == 401
    assert new.status_code == 200
    assert shop.status_code == 200


@pytest.mark.asyncio
async def test_public_settings_never_expose_password_hashes(client):
    response = await client.get("/settings")

    body = response.json()
    assert response.status_code == 200
    assert "admin_password_hash" not in body
    assert "storefront_password_hash" not in body
    assert body["pwa_display"] == "standalone"


@pytest.mark.asyncio
async def test_password_longer_than_bcrypt_limit_is_rejected(client, admin_headers):
    response = await client.put(
        "/admin/settings/passwords",
        json={"storefront_password": "x" * 80},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "72 bytes" in response.text

    still_valid = await client.post(
        "/gate/storefront", json={"password": "shop-secret", "age_confirmed": True}
    )
    assert still_valid.status_code == 200


@pytest.mark.asyncio
async def test_overlong_gate_attempt_is_denied(client):
    response = await client.post(
        "/gate/storefront", json={"password": "é" * 40, "age_confirmed": True}
    )

    assert response.status_code == 401


def test_overlong_seed_password_fails_configuration(monkeypatch):
    monkeypatch.setattr(Settings, "ADMIN_PASSWORD", "x" * 73)

    with pytest.raises(ValueError, match="ADMIN_PASSWORD"):
        Settings()


@pytest.mark.asyncio
async def test_password_checks_run_off_the_event_loop(client, admin_headers, monkeypatch):
    from storefront.api import dependencies
    from storefront.api.routes import site

    loop_thread = threading.get_ident()
    callers = []

    def _recording(check):
        def _wrapped(password, stored_hash):
            callers.append(threading.get_ident())
            return check(password, stored_hash)

        return _wrapped

    monkeypatch.setattr(dependencies, "verify_password", _recording(dependencies.verify_password))
    monkeypatch.setattr(site, "verify_password", _recording(site.verify_password))

    admin = await client.get("/admin/settings", headers=admin_headers)
    gate = await client.post("/gate/admin", json={"password": "admin-secret"})

    assert admin.status_code == 200
    assert gate.status_code == 200
    assert len(callers) == 2
    assert loop_thread not in callers
