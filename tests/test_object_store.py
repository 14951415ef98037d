import asyncio

import pytest

from app.common.exceptions import PersistenceError, StorageError
from app.store.object_store import SupabaseObjectStore


class FakeBucket:
    def __init__(self, name, fail=None):
        self.name = name
        self.fail = fail
        self.uploads = []

    def upload(self, path, file, file_options=None):
        if self.fail is not None:
            raise self.fail
        self.uploads.append((path, file, file_options))
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path):
        return f"https://proj.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self, fail=None):
        self.fail = fail
        self.buckets = {}

    def from_(self, name):
        return self.buckets.setdefault(name, FakeBucket(name, self.fail))


class FakeClient:
    def __init__(self, fail=None):
        self.storage = FakeStorage(fail)


def test_upload_goes_to_the_configured_bucket():
    client = FakeClient()
    store = SupabaseObjectStore(None, None, "intake-attachments", client=client)

    asyncio.run(store.upload("form-responses/r1/q1/abc-scan.pdf", b"%PDF", "application/pdf"))

    path, data, options = client.storage.buckets["intake-attachments"].uploads[0]
    assert path == "form-responses/r1/q1/abc-scan.pdf"
    assert data == b"%PDF"
    assert options == {"content-type": "application/pdf", "upsert": "false"}


def test_client_errors_become_storage_errors():
    store = SupabaseObjectStore(None, None, "bucket", client=FakeClient(fail=RuntimeError("413 Payload Too Large")))
    with pytest.raises(StorageError) as excinfo:
        asyncio.run(store.upload("k/scan.pdf", b"x"))
    assert excinfo.value.file_name == "scan.pdf"
    assert "413" in str(excinfo.value)


def test_public_urls():
    store = SupabaseObjectStore(None, None, "intake-attachments", client=FakeClient())
    assert store.public_url("a/b.pdf") == (
        "https://proj.supabase.co/storage/v1/object/public/intake-attachments/a/b.pdf"
    )
    cdn = SupabaseObjectStore(
        None, None, "intake-attachments", client=FakeClient(), public_base_url="https://cdn.example.org/files/"
    )
    assert cdn.public_url("a/b.pdf") == "https://cdn.example.org/files/a/b.pdf"


def test_missing_credentials():
    with pytest.raises(PersistenceError):
        SupabaseObjectStore(None, None, "bucket")
