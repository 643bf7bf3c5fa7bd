# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin login, settings read/write and the password override."""

from httpx import AsyncClient

from mymusicapi_server.config import settings


async def test_auth_with_static_password(client: AsyncClient, static_password):
    r = await client.post("/auth", json={"password": static_password})
    assert r.status_code == 200
    assert r.json() == {"success": True, "username": "Admin", "api_enabled": True}


async def test_auth_wrong_password(client: AsyncClient):
    r = await client.post("/auth", json={"password": "xyz"})
    assert r.status_code == 401
    assert "detail" in r.json()


async def test_auth_is_exact_match(client: AsyncClient, static_password):
    for attempt in (static_password.upper(), f" {static_password}", f"{static_password} "):
        r = await client.post("/auth", json={"password": attempt})
        assert r.status_code == 401


async def test_auth_blank_password(client: AsyncClient):
    assert (await client.post("/auth", json={"password": "  "})).status_code == 400
    assert (await client.post("/auth", json={})).status_code == 400


async def test_auth_not_configured(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "admin_password", None)
    r = await client.post("/auth", json={"password": "anything"})
    assert r.status_code == 500
    assert r.json()["detail"] == "Admin password not configured."
    assert "ADMIN_PASSWORD" in r.json()["hint"]


async def test_admin_routes_reject_when_not_configured(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "admin_password", "")
    r = await client.get("/settings", headers={"x-admin-password": ""})
    assert r.status_code == 401


async def test_settings_defaults(client: AsyncClient, admin_headers):
    r = await client.get("/settings", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"username": "Admin", "api_enabled": True}


async def test_settings_require_admin(client: AsyncClient):
    assert (await client.get("/settings")).status_code == 401
    r = await client.put("/settings", json={"api_enabled": False}, headers={"x-admin-password": "nope"})
    assert r.status_code == 401
    assert (await client.get("/tracks")).status_code == 200


async def test_password_change_supersedes_static(client: AsyncClient, admin_headers, static_password):
    r = await client.put("/settings", json={"new_password": "x"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True, "username": "Admin", "api_enabled": True, "password_changed": True}

    assert (await client.post("/auth", json={"password": "x"})).status_code == 200
    assert (await client.post("/auth", json={"password": static_password})).status_code == 401
    assert (await client.get("/settings", headers=admin_headers)).status_code == 401
    assert (await client.get("/settings", headers={"x-admin-password": "x"})).status_code == 200


async def test_partial_update_keeps_other_fields(client: AsyncClient, admin_headers):
    await client.put("/settings", json={"username": "DJ", "api_enabled": False}, headers=admin_headers)
    r = await client.put("/settings", json={"new_password": "s3cret"}, headers=admin_headers)
    assert r.json()["username"] == "DJ"
    assert r.json()["api_enabled"] is False

    new_headers = {"x-admin-password": "s3cret"}
    r = await client.put("/settings", json={"username": "Host"}, headers=new_headers)
    assert r.json() == {"success": True, "username": "Host", "api_enabled": False, "password_changed": False}
    assert (await client.post("/auth", json={"password": "s3cret"})).json() == {
        "success": True,
        "username": "Host",
        "api_enabled": False,
    }


async def test_empty_new_password_is_ignored(client: AsyncClient, admin_headers, static_password):
    r = await client.put("/settings", json={"new_password": ""}, headers=admin_headers)
    assert r.json()["password_changed"] is False
    assert (await client.post("/auth", json={"password": static_password})).status_code == 200


async def test_settings_malformed_body(client: AsyncClient, admin_headers):
    r = await client.put("/settings", json={"api_enabled": "sometimes"}, headers=admin_headers)
    assert r.status_code == 400


async def test_auth_wrong_method(client: AsyncClient):
    assert (await client.get("/auth")).status_code == 405
