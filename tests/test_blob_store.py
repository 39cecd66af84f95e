"""Tests for the local attachment store."""

from __future__ import annotations

import io

from expense_desk.services.blob_store import LocalBlobStore


def test_put_then_exists(tmp_path):
    store = LocalBlobStore(tmp_path, "/uploads/")
    blob = store.put(7, "Factura.PDF", "application/pdf", io.BytesIO(b"data"))
    assert blob.url.startswith("/uploads/7/")
    assert blob.url.endswith(".pdf")
    assert blob.filename == "Factura.PDF"
    assert (tmp_path / blob.key).read_bytes() == b"data"
    assert store.exists(blob.url)


def test_exists_rejects_foreign_and_escaping_urls(tmp_path):
    (tmp_path.parent / "secret.txt").write_text("x")
    store = LocalBlobStore(tmp_path / "blobs")
    (tmp_path / "blobs").mkdir()
    assert not store.exists("https://elsewhere.example/a.pdf")
    assert not store.exists("/uploads/../../secret.txt")
    assert not store.exists("/uploads/1/missing.pdf")
