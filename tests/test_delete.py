# Copyright (C) 2024 MyMusicAPI Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Delete endpoint: record removal, storage cleanup, storage failures."""

from httpx import AsyncClient

from mymusicapi_server.main import app
from mymusicapi_server.services.storage import LocalObjectStore, get_object_store


async def test_delete_track(client: AsyncClient, admin_headers, object_store):
    r = await client.post(
        "/upload",
        files={"file": ("theme.mp3", b"audio", "audio/mpeg")},
        headers=admin_headers,
    )
    track = r.json()["track"]
    r = await client.delete(f"/delete/{track['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Track deleted", "id": track["id"]}
    assert track["file_name"] not in object_store.objects
    assert (await client.get(f"/tracks/{track['id']}")).status_code == 404


async def test_delete_removes_tags(client: AsyncClient, admin_headers, upload_track):
    track = await upload_track("Boss Battle", tags="battle")
    await client.delete(f"/delete/{track['id']}", headers=admin_headers)
    assert (await client.get("/tags")).json() == {"tags": []}


async def test_delete_survives_storage_failure(client: AsyncClient, admin_headers, object_store, upload_track):
    track = await upload_track("Boss Battle")
    object_store.fail_deletes = True
    r = await client.delete(f"/delete/{track['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert (await client.get(f"/tracks/{track['id']}")).status_code == 404


async def test_delete_not_found(client: AsyncClient, admin_headers):
    r = await client.delete("/delete/424242", headers=admin_headers)
    assert r.status_code == 404


async def test_delete_requires_admin(client: AsyncClient, upload_track):
    track = await upload_track("Boss Battle")
    r = await client.delete(f"/delete/{track['id']}", headers={"x-admin-password": "ABC"})
    assert r.status_code == 401
    assert (await client.get(f"/tracks/{track['id']}")).status_code == 200


async def test_delete_wrong_method(client: AsyncClient, admin_headers):
    r = await client.get("/delete/1", headers=admin_headers)
    assert r.status_code == 405


async def test_delete_with_local_store_removes_file(client: AsyncClient, admin_headers, tmp_path):
    store = LocalObjectStore(tmp_path, "http://test")
    app.dependency_overrides[get_object_store] = lambda: store
    r = await client.post(
        "/upload",
        files={"file": ("theme.mp3", b"audio", "audio/mpeg")},
        headers=admin_headers,
    )
    track = r.json()["track"]
    assert (tmp_path / track["file_name"]).read_bytes() == b"audio"

    r = await client.delete(f"/delete/{track['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert not (tmp_path / track["file_name"]).exists()


async def test_delete_with_local_store_and_foreign_key(client: AsyncClient, admin_headers, upload_track, tmp_path):
    """A recorded file_name outside the media directory still lets the record go."""
    app.dependency_overrides[get_object_store] = lambda: LocalObjectStore(tmp_path / "media", "http://test")
    absolute = await upload_track("Boss Battle", file_name="/srv/other/boss.mp3")
    relative = await upload_track("Village", file_name="../outside/village.mp3")
    for track in (absolute, relative):
        r = await client.delete(f"/delete/{track['id']}", headers=admin_headers)
        assert r.status_code == 200
        assert (await client.get(f"/tracks/{track['id']}")).status_code == 404


async def test_delete_with_local_store_missing_file(client: AsyncClient, admin_headers, upload_track, tmp_path):
    app.dependency_overrides[get_object_store] = lambda: LocalObjectStore(tmp_path, "http://test")
    track = await upload_track("Never Stored")
    r = await client.delete(f"/delete/{track['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert (await client.get(f"/tracks/{track['id']}")).status_code == 404
