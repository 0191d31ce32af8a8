"""Tests for family document upload and download."""

import base64
import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import SQLAlchemyError

from aidtrack.core.config import settings
from aidtrack.db.enums import Role
from aidtrack.db.models import FamilyDocument
from aidtrack.schemas.auth import UserSession
from aidtrack.services import antivirus_service, audit_service, document_service, document_validation
from aidtrack.services.antivirus_service import InfectedFileError, ScannerUnavailableError


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _payload(family, content=PNG, mime_type="image/png", **extra) -> dict:
    data = {
        "family_id": str(family.id) if family else str(uuid.uuid4()),
        "name": "ID card",
        "document_type": "identity",
        "file_data": f"data:{mime_type};base64,{base64.b64encode(content).decode()}",
        "mime_type": mime_type,
    }
    data.update(extra)
    return data


def _stored_files(root) -> list:
    return [p for p in root.rglob("*") if p.is_file()] if root.exists() else []


@pytest.mark.asyncio
async def test_upload_and_download_roundtrip(authed_client, db, test_family, local_storage):
    response = await authed_client.post("/documents", json=_payload(test_family))

    assert response.status_code == 201
    body = response.json()
    assert body["mime_type"] == "image/png"
    assert body["file_size"] == len(PNG)
    assert body["uploaded_by_name"] == "Test Admin"
    assert body["download_url"].startswith("/documents/local/")

    document = db.get(FamilyDocument, uuid.UUID(body["id"]))
    assert document.file_key.startswith(f"families/{test_family.id}/{document.id}/")
    assert len(_stored_files(local_storage)) == 1

    download = await authed_client.get(body["download_url"])
    assert download.status_code == 200
    assert download.content == PNG
    assert download.headers["content-type"] == "image/png"


@pytest.mark.asyncio
async def test_upload_with_mismatched_content_is_rejected(authed_client, db, test_family, local_storage):
    response = await authed_client.post(
        "/documents", json=_payload(test_family, content=b"%PDF-1.4 fake", mime_type="image/png")
    )

    assert response.status_code == 400
    assert "does not match" in response.json()["detail"]
    assert db.query(FamilyDocument).count() == 0
    assert _stored_files(local_storage) == []


@pytest.mark.asyncio
async def test_upload_disallowed_type_is_rejected(authed_client, test_family):
    response = await authed_client.post(
        "/documents",
        json=_payload(test_family, content=b"<html></html>", mime_type="text/html"),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_upload_oversized_file_is_rejected(authed_client, test_family, monkeypatch):
    def fail_decode(*_args, **_kwargs):
        raise AssertionError("payload should not be decoded")

    monkeypatch.setattr(settings, "MAX_DOCUMENT_BYTES", 16)
    monkeypatch.setattr(document_validation, "base64", SimpleNamespace(b64decode=fail_decode))

    response = await authed_client.post("/documents", json=_payload(test_family))

    assert response.status_code == 400
    assert "exceeds" in response.json()["detail"]


@pytest.mark.asyncio
async def test_infected_upload_is_rejected(authed_client, db, test_family, monkeypatch):
    def infected(_content):
        raise InfectedFileError("Eicar-Test-Signature")

    monkeypatch.setattr(antivirus_service, "scan_bytes", infected)

    response = await authed_client.post("/documents", json=_payload(test_family))

    assert response.status_code == 400
    assert "Eicar-Test-Signature" in response.json()["detail"]
    assert db.query(FamilyDocument).count() == 0


@pytest.mark.asyncio
async def test_scanner_unavailable_returns_503(authed_client, test_family, monkeypatch):
    def unavailable(_content):
        raise ScannerUnavailableError("clamd down")

    monkeypatch.setattr(antivirus_service, "scan_bytes", unavailable)

    response = await authed_client.post("/documents", json=_payload(test_family))

    assert response.status_code == 503


def test_failed_metadata_insert_removes_stored_object(
    db, test_family, test_user, local_storage, monkeypatch
):
    session = UserSession(
        user_id=test_user.id,
        org_id=test_user.organization_id,
        role=Role.ADMIN,
        email=test_user.email,
        display_name=test_user.name,
    )

    def failing_audit(*_args, **_kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(audit_service, "log_event", failing_audit)

    with pytest.raises(SQLAlchemyError):
        document_service.upload_document(
            db,
            test_family,
            session,
            name="Payslip",
            document_type="income",
            file_data=base64.b64encode(PNG).decode(),
            mime_type="image/png",
        )

    assert _stored_files(local_storage) == []
    assert db.query(FamilyDocument).count() == 0


@pytest.mark.asyncio
async def test_list_and_delete_documents(authed_client, db, test_family, local_storage):
    created = await authed_client.post("/documents", json=_payload(test_family))
    document_id = created.json()["id"]

    listed = await authed_client.get(f"/families/{test_family.id}/documents")
    assert [d["id"] for d in listed.json()] == [document_id]
    assert listed.json()[0]["download_url"]

    fresh = await authed_client.get(f"/documents/{document_id}/download")
    assert fresh.status_code == 200
    assert fresh.json()["expires_in_seconds"] == settings.SIGNED_URL_EXPIRY_SECONDS

    deleted = await authed_client.delete(f"/documents/{document_id}")
    assert deleted.status_code == 204
    assert db.query(FamilyDocument).count() == 0
    assert _stored_files(local_storage) == []


@pytest.mark.asyncio
async def test_local_download_rejects_bad_token(client):
    response = await client.get("/documents/local/not-a-token")

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_upload_for_unknown_family_returns_404(authed_client):
    response = await authed_client.post(
        "/documents", json=_payload(None)
    )

    assert response.status_code == 404
