# tests/unit/test_uploads.py
from __future__ import annotations
import io
import os
import zipfile
from datetime import datetime

import pytest

from adapters.storage.local import LocalFileStore
from adapters.storage.memory import InMemoryFileStore
from portal.errors import AccessDenied, ConfigurationError, InvalidRequest, StorageFailure, UnknownKind
from portal.models import Identity, PortalSettings
from portal.uploads import UploadDispatcher

FIXED_NOW = datetime(2024, 3, 7, 10, 30)

JANE = Identity(id="u_1", name="Jane Doe", email="jane@example.com")


def _zip(entries: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def store() -> InMemoryFileStore:
    return InMemoryFileStore()

@pytest.fixture
def dispatcher(store, settings_store) -> UploadDispatcher:
    settings_store.save(PortalSettings(basePath="/data", requiredFolders=["schemas"], dateFormat="DDMMYYYY"))
    return UploadDispatcher(store, settings_store, clock=lambda: FIXED_NOW)


def test_schemas_upload_end_to_end(dispatcher, store):
    res = dispatcher.handle_upload(client="Acme", kind="schemas", uploader=JANE, filename="plan.pdf", data=b"%PDF")
    assert res.kind == "schemas"
    assert res.savedAs == "/data/Acme/schemas/Acme 07032024 JD.pdf"
    assert res.name is None
    assert store.read_bytes(res.savedAs) == b"%PDF"

def test_second_file_gets_disambiguated(dispatcher, store):
    first = dispatcher.handle_upload(client="Acme", kind="pictures", uploader=JANE, filename="a.jpg", data=b"1")
    second = dispatcher.handle_upload(client="Acme", kind="pictures", uploader=JANE, filename="b.jpg", data=b"2")
    assert first.savedAs == "/data/Acme/pictures/Acme 07032024 JD.jpg"
    assert second.savedAs == "/data/Acme/pictures/Acme 07032024_1JD.jpg"
    assert store.read_bytes(first.savedAs) == b"1"

def test_anonymous_upload_uses_placeholder_initials(dispatcher):
    res = dispatcher.handle_upload(client="Acme", kind="schemas", uploader=None, filename="plan.pdf", data=b"x")
    assert res.savedAs.endswith("Acme 07032024 XX.pdf")

def test_client_is_url_decoded(dispatcher):
    res = dispatcher.handle_upload(client="ACME%20BVBA", kind="schemas", uploader=JANE, filename="p.dwg", data=b"x")
    assert res.savedAs == "/data/ACME BVBA/schemas/ACME BVBA 07032024 JD.dwg"


def test_programmation_extracts_into_unique_directories(dispatcher, store):
    payload = _zip({"main.py": b"print(1)", "lib/util.py": b"x = 1"})
    first = dispatcher.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip", data=payload)
    second = dispatcher.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip", data=payload)

    assert first.name == "Acme 07032024 JD"
    assert first.savedAs == "/data/Acme/programmation/Acme 07032024 JD"
    assert second.name == "Acme 07032024_1JD"
    assert store.read_bytes(f"{first.savedAs}/lib/util.py") == b"x = 1"
    assert store.read_bytes(f"{second.savedAs}/main.py") == b"print(1)"

def test_overwrite_policy_replaces_previous_directory(store, settings_store):
    settings_store.save(PortalSettings(basePath="/data"))
    d = UploadDispatcher(store, settings_store, policy="overwrite", clock=lambda: FIXED_NOW)
    d.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip",
                    data=_zip({"old.txt": b"old"}))
    res = d.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip",
                          data=_zip({"new.txt": b"new"}))
    assert res.savedAs == "/data/Acme/programmation/Acme 07032024 JD"
    assert [e.name for e in store.list_dir(res.savedAs)] == ["new.txt"]

def test_overwrite_policy_keeps_a_file_with_the_directory_name(store, settings_store):
    settings_store.save(PortalSettings(basePath="/data"))
    store.makedirs("/data/Acme/programmation")
    store.create_exclusive("/data/Acme/programmation/Acme 07032024 JD", b"not a folder")
    d = UploadDispatcher(store, settings_store, policy="overwrite", clock=lambda: FIXED_NOW)
    res = d.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip",
                          data=_zip({"a.txt": b"a"}))
    assert res.name == "Acme 07032024_1JD"
    assert store.read_bytes("/data/Acme/programmation/Acme 07032024 JD") == b"not a folder"

def test_partial_directory_does_not_block_reupload(dispatcher, store):
    # reste d'une extraction interrompue
    store.makedirs("/data/Acme/programmation/Acme 07032024 JD")
    res = dispatcher.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip",
                                   data=_zip({"a.txt": b"a"}))
    assert res.name == "Acme 07032024_1JD"


def test_unknown_kind_has_no_side_effects(dispatcher, store):
    with pytest.raises(UnknownKind):
        dispatcher.handle_upload(client="Acme", kind="videos", uploader=JANE, filename="v.mp4", data=b"x")
    assert not store.exists("/data/Acme")

@pytest.mark.parametrize("client,kind,data", [(None, "schemas", b"x"), ("Acme", None, b"x"), ("Acme", "schemas", None)])
def test_missing_fields(dispatcher, client, kind, data):
    with pytest.raises(InvalidRequest) as exc:
        dispatcher.handle_upload(client=client, kind=kind, uploader=JANE, filename="f.pdf", data=data)
    assert exc.value.reason == "missing_fields"

def test_missing_base_path(store, settings_store):
    d = UploadDispatcher(store, settings_store)
    with pytest.raises(ConfigurationError):
        d.handle_upload(client="Acme", kind="schemas", uploader=JANE, filename="f.pdf", data=b"x")

@pytest.mark.parametrize("client", ["../etc", "Acme/schemas", "..", "%2E%2E"])
def test_client_must_be_a_single_segment(dispatcher, client):
    with pytest.raises(InvalidRequest) as exc:
        dispatcher.handle_upload(client=client, kind="schemas", uploader=JANE, filename="f.pdf", data=b"x")
    assert exc.value.reason == "invalid_client"

def test_invalid_archive_is_rejected_before_writing(dispatcher, store):
    with pytest.raises(InvalidRequest) as exc:
        dispatcher.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip", data=b"nope")
    assert exc.value.reason == "invalid_archive"
    assert not store.exists("/data/Acme")

def test_archive_entries_cannot_escape_destination(dispatcher, store):
    with pytest.raises(InvalidRequest) as exc:
        dispatcher.handle_upload(client="Acme", kind="programmation", uploader=JANE, filename="p.zip",
                                 data=_zip({"ok.txt": b"x", "../../evil.txt": b"x"}))
    assert exc.value.reason == "invalid_archive"
    assert not store.exists("/data/evil.txt")
    assert not store.exists("/data/Acme")

def test_io_failure_becomes_storage_failure(dispatcher, store):
    store.makedirs("/data")
    store.write_bytes("/data/Acme", b"a file where the client folder should be")
    with pytest.raises(StorageFailure):
        dispatcher.handle_upload(client="Acme", kind="schemas", uploader=JANE, filename="f.pdf", data=b"x")

def test_client_symlink_out_of_base_is_refused(tmp_path, settings_store):
    base = tmp_path / "clients"
    outside = tmp_path / "outside"
    base.mkdir()
    outside.mkdir()
    os.symlink(outside, base / "Acme", target_is_directory=True)
    settings_store.save(PortalSettings(basePath=str(base)))
    d = UploadDispatcher(LocalFileStore(), settings_store, clock=lambda: FIXED_NOW)
    with pytest.raises(AccessDenied):
        d.handle_upload(client="Acme", kind="schemas", uploader=JANE, filename="f.pdf", data=b"x")
    assert list(outside.iterdir()) == []
