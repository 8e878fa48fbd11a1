# tests/unit/test_routes_files.py
from __future__ import annotations
import io
import zipfile

import pytest


async def _login(client, users, roles) -> dict:
    role = roles.create("Technicien", ["files.read", "files.write"])[0]
    users.create(name="Jane Doe", email="jane@example.com", password="pw", role_id=role.id)
    r = await client.post("/api/auth/login", json={"email": "jane@example.com", "password": "pw"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.mark.asyncio
async def test_upload_schema_with_session(client, configured, base_dir, users, roles):
    headers = await _login(client, users, roles)
    r = await client.post(
        "/api/files/upload",
        headers=headers,
        data={"client": "Acme", "kind": "schemas"},
        files={"file": ("plan.pdf", io.BytesIO(b"%PDF-1.4"), "application/pdf")},
    )
    assert r.status_code == 200
    body = r.json()
    target = base_dir / "Acme" / "schemas" / "Acme 07032024 JD.pdf"
    assert body == {"ok": True, "savedAs": str(target), "kind": "schemas"}
    assert target.read_bytes() == b"%PDF-1.4"
    # dossiers requis créés au passage
    assert (base_dir / "Acme" / "pictures").is_dir()

@pytest.mark.asyncio
async def test_anonymous_upload_and_collision(client, configured, base_dir):
    for content in (b"1", b"2"):
        r = await client.post("/api/files/upload", data={"client": "Acme", "kind": "pictures"},
                              files={"file": ("photo.jpg", io.BytesIO(content), "image/jpeg")})
        assert r.status_code == 200
    names = sorted(p.name for p in (base_dir / "Acme" / "pictures").iterdir())
    assert names == ["Acme 07032024 XX.jpg", "Acme 07032024_1XX.jpg"]

@pytest.mark.asyncio
async def test_upload_programmation_extracts(client, configured, base_dir):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("src/main.py", "print('hi')")
    r = await client.post("/api/files/upload", data={"client": "Acme", "kind": "programmation"},
                          files={"file": ("plc.zip", buf.getvalue(), "application/zip")})
    assert r.status_code == 200
    assert r.json()["name"] == "Acme 07032024 XX"
    assert (base_dir / "Acme" / "programmation" / "Acme 07032024 XX" / "src" / "main.py").is_file()

@pytest.mark.asyncio
async def test_upload_errors(client, configured):
    r = await client.post("/api/files/upload", data={"client": "Acme"})
    assert r.status_code == 400
    assert r.json()["reason"] == "missing_fields"

    r = await client.post("/api/files/upload", data={"client": "Acme", "kind": "videos"},
                          files={"file": ("v.mp4", b"x", "video/mp4")})
    assert r.status_code == 400
    assert r.json() == {"error": "Unknown upload kind: videos", "reason": "unknown_kind"}

@pytest.mark.asyncio
async def test_upload_without_base_path(client):
    r = await client.post("/api/files/upload", data={"client": "Acme", "kind": "schemas"},
                          files={"file": ("plan.pdf", b"x", "application/pdf")})
    assert r.status_code == 400
    assert r.json()["reason"] == "not_configured"

@pytest.mark.asyncio
async def test_upload_session_can_be_required(client, configured, auth_cfg):
    auth_cfg.require_upload_session = True
    r = await client.post("/api/files/upload", data={"client": "Acme", "kind": "schemas"},
                          files={"file": ("plan.pdf", b"x", "application/pdf")})
    assert r.status_code == 401

@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client, configured):
    r = await client.get("/api/files", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


# ----------------- listing / téléchargement -----------------

@pytest.mark.asyncio
async def test_list_provisions_client_root(client, configured, base_dir):
    (base_dir / "Acme").mkdir()
    (base_dir / "notes.txt").write_text("n")

    r = await client.get("/api/files")
    assert r.status_code == 200
    assert [(e["name"], e["type"]) for e in r.json()] == [("Acme", "directory"), ("notes.txt", "file")]

    r = await client.get("/api/files", params={"view": str(base_dir / "Acme")})
    assert [e["name"] for e in r.json()] == ["pictures", "programmation", "schemas"]

@pytest.mark.asyncio
async def test_list_outside_base_is_forbidden(client, configured, tmp_path):
    r = await client.get("/api/files", params={"view": str(tmp_path)})
    assert r.status_code == 403
    assert r.json()["error"] == "Forbidden base path"

@pytest.mark.asyncio
async def test_list_without_base_path_is_empty(client):
    r = await client.get("/api/files")
    assert r.status_code == 200
    assert r.json() == []

@pytest.mark.asyncio
async def test_download_file_and_folder(client, configured, base_dir):
    (base_dir / "Acme" / "schemas").mkdir(parents=True)
    (base_dir / "Acme" / "schemas" / "plan été.pdf").write_bytes(b"%PDF")

    r = await client.get("/api/files/download", params={"path": str(base_dir / "Acme" / "schemas" / "plan été.pdf")})
    assert r.status_code == 200
    assert r.content == b"%PDF"
    assert "filename*=UTF-8''plan%20%C3%A9t%C3%A9.pdf" in r.headers["content-disposition"]

    r = await client.get("/api/files/download", params={"path": str(base_dir / "Acme"), "zip": "true"})
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(r.content)) as zf:
        assert zf.namelist() == ["schemas/plan été.pdf"]

@pytest.mark.asyncio
async def test_download_errors(client, configured, base_dir):
    r = await client.get("/api/files/download")
    assert r.status_code == 400
    r = await client.get("/api/files/download", params={"path": str(base_dir / "missing.pdf")})
    assert r.status_code == 404
