"""HTTP tests for the agency and admin document routers."""

import pytest

from conftest import PDF_BYTES, PNG_BYTES, auth_headers

API = "/api/v1"
UPLOAD_URL = f"{API}/agency-documents/upload"


async def _upload(client, account, document_type, content=PDF_BYTES, filename="doc.pdf", content_type="application/pdf", note=None):
    data = {"documentType": document_type}
    if note is not None:
        data["note"] = note
    return await client.post(
        UPLOAD_URL,
        headers=auth_headers(account),
        data=data,
        files={"file": (filename, content, content_type)},
    )


async def _decide(client, admin, version_id, status, comment=None):
    return await client.post(
        f"{API}/admin/agency-documents/versions/{version_id}/decision",
        headers=auth_headers(admin),
        json={"status": status, "comment": comment},
    )


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_upload_returns_created_version(client, agency):
    response = await _upload(client, agency, "registration_certificate", filename="rc.pdf", note="original")

    assert response.status_code == 201
    body = response.json()["data"]
    assert body["versionNumber"] == 1
    assert body["status"] == "submitted"
    assert body["originalFilename"] == "rc.pdf"
    assert body["contentType"] == "application/pdf"
    assert body["sizeBytes"] == len(PDF_BYTES)
    assert body["uploadedBy"] == agency.id
    assert body["note"] == "original"
    assert body["statusChangedBy"] is None
    assert "relPath" not in body
    assert "absPath" not in body


@pytest.mark.asyncio
async def test_upload_requires_caller_header(client):
    response = await client.post(
        UPLOAD_URL,
        data={"documentType": "tax_id"},
        files={"file": ("tax.pdf", PDF_BYTES, "application/pdf")},
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_unknown_caller_is_unauthorized(client):
    response = await client.get(f"{API}/agency-documents/mine", headers={"X-User-Id": "ghost"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_cannot_upload(client, admin):
    response = await _upload(client, admin, "tax_id")
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_upload_rejects_disallowed_content_type(client, agency):
    response = await _upload(client, agency, "tax_id", content=b"PK\x03\x04", filename="a.zip", content_type="application/zip")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ARGUMENT"


@pytest.mark.asyncio
async def test_upload_rejects_unknown_document_type(client, agency):
    response = await _upload(client, agency, "passport")

    assert response.status_code == 400
    assert "passport" in response.json()["error"]["message"]


@pytest.mark.asyncio
async def test_upload_rejects_oversize_file(client, agency):
    response = await _upload(client, agency, "tax_id", content=b"\x00" * (10 * 1024 * 1024 + 1))

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "INVALID_ARGUMENT"


@pytest.mark.asyncio
async def test_verification_flow_over_http(client, agency, admin):
    rc = (await _upload(client, agency, "registration_certificate")).json()["data"]
    tax = (await _upload(client, agency, "tax_id", content=PNG_BYTES, filename="tax.png", content_type="image/png")).json()["data"]

    status = (await client.get(f"{API}/agency-documents/status", headers=auth_headers(agency))).json()["data"]
    assert status["verified"] is False

    response = await _decide(client, admin, rc["id"], "accepted", "ok")
    assert response.status_code == 200
    assert response.json()["data"]["statusChangedBy"] == admin.id
    assert (await _decide(client, admin, tax["id"], "accepted")).status_code == 200

    status = (await client.get(f"{API}/agency-documents/status", headers=auth_headers(agency))).json()["data"]
    assert status["verified"] is True
    assert status["verifiedAt"] is not None
    required = {r["documentType"]: r for r in status["requirements"] if r["required"]}
    assert set(required) == {"registration_certificate", "tax_id"}
    assert all(r["met"] and r["latestStatus"] == "accepted" for r in required.values())

    # New upload of a required type: pending again.
    await _upload(client, agency, "tax_id")
    admin_view = await client.get(
        f"{API}/admin/agency-documents/agencies/{agency.id}/status", headers=auth_headers(admin)
    )
    assert admin_view.status_code == 200
    assert admin_view.json()["data"]["verified"] is False


@pytest.mark.asyncio
async def test_mine_and_history(client, agency):
    await _upload(client, agency, "registration_certificate")
    await _upload(client, agency, "registration_certificate")
    await _upload(client, agency, "insurance")

    mine = (await client.get(f"{API}/agency-documents/mine", headers=auth_headers(agency))).json()["data"]
    latest = {item["document"]["documentType"]: item["latestVersion"]["versionNumber"] for item in mine}
    assert latest == {"registration_certificate": 2, "insurance": 1}

    history = (await client.get(f"{API}/agency-documents/history", headers=auth_headers(agency))).json()["data"]
    assert len(history) == 3
    assert [v["versionNumber"] for v in history] == [1, 2, 1]


@pytest.mark.asyncio
async def test_admin_list_is_paginated_and_filtered(client, agency, other_agency, admin):
    await _upload(client, agency, "registration_certificate")
    await _upload(client, agency, "tax_id")
    await _upload(client, other_agency, "registration_certificate")

    response = await client.get(
        f"{API}/admin/agency-documents", headers=auth_headers(admin), params={"limit": 2}
    )
    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 2
    assert body["meta"] == {"total": 3, "page": 1, "limit": 2, "pages": 2}

    response = await client.get(
        f"{API}/admin/agency-documents",
        headers=auth_headers(admin),
        params={"agencyId": agency.id, "documentType": "tax_id"},
    )
    assert [d["documentType"] for d in response.json()["data"]] == ["tax_id"]


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client, agency):
    response = await client.get(f"{API}/admin/agency-documents", headers=auth_headers(agency))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_lists_versions_newest_first(client, agency, admin):
    first = (await _upload(client, agency, "tax_id")).json()["data"]
    await _upload(client, agency, "tax_id")

    response = await client.get(
        f"{API}/admin/agency-documents/{first['documentId']}/versions", headers=auth_headers(admin)
    )
    assert [v["versionNumber"] for v in response.json()["data"]] == [2, 1]

    missing = await client.get(f"{API}/admin/agency-documents/nope/versions", headers=auth_headers(admin))
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_decision_rejects_non_decision_status(client, agency, admin):
    version = (await _upload(client, agency, "tax_id")).json()["data"]

    response = await _decide(client, admin, version["id"], "submitted")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ARGUMENT"


@pytest.mark.asyncio
async def test_decision_on_unknown_version(client, admin):
    response = await _decide(client, admin, "missing", "accepted")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_download_permissions(client, agency, other_agency, admin):
    version = (await _upload(client, agency, "registration_certificate", filename="Kbis 2024.pdf")).json()["data"]
    url = f"{API}/agency-documents/versions/{version['id']}/download"

    owned = await client.get(url, headers=auth_headers(agency))
    assert owned.status_code == 200
    assert owned.content == PDF_BYTES
    assert owned.headers["content-type"] == "application/pdf"
    assert "Kbis%202024.pdf" in owned.headers["content-disposition"]

    assert (await client.get(url, headers=auth_headers(other_agency))).status_code == 403
    assert (await client.get(url, headers=auth_headers(admin))).status_code == 200

    admin_url = f"{API}/admin/agency-documents/versions/{version['id']}/download"
    reviewed = await client.get(admin_url, headers=auth_headers(admin))
    assert reviewed.status_code == 200
    assert reviewed.content == PDF_BYTES


@pytest.mark.asyncio
async def test_recompute_endpoint(client, agency, admin):
    response = await client.post(
        f"{API}/admin/agency-documents/agencies/{agency.id}/recompute", headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"agencyId": agency.id, "verified": False}

    missing = await client.post(
        f"{API}/admin/agency-documents/agencies/ghost/recompute", headers=auth_headers(admin)
    )
    assert missing.status_code == 404
