from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from resident_ledger.api.dependencies import get_current_session, get_db
from resident_ledger.config import settings
from resident_ledger.constants import PERMISSION_DENIED_MESSAGE
from resident_ledger.main import app
from resident_ledger.models.models import AuditLog, Repayment
from resident_ledger.services.storage import storage_service


def _override_get_db(session):
    def _generator():
        try:
            yield session
        finally:
            pass

    return _generator


def _override_session(auth_session):
    def _provider():
        return auth_session

    return _provider


@pytest.fixture
def client_as(db_session):
    clients = []

    def _build(auth_session):
        app.dependency_overrides[get_db] = _override_get_db(db_session)
        app.dependency_overrides[get_current_session] = _override_session(auth_session)
        client = TestClient(app)
        clients.append(client)
        return client

    yield _build
    for client in clients:
        client.close()
    app.dependency_overrides.clear()


def _create_property(client, code="PROP-1", name="Maple Court", city="Pune"):
    response = client.post(
        "/properties/",
        json={"property_code": code, "name": name, "address": "1 Main Road", "city": city},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _create_resident(client, code="RES-1", name="Asha", **extra):
    payload = {"resident_code": code, "name": name, "monthly_rent": "1200.00"}
    payload.update(extra)
    response = client.post("/residents/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_is_public():
    client = TestClient(app)
    try:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert response.headers["X-Request-ID"]
        assert response.headers["X-Content-Type-Options"] == "nosniff"
    finally:
        client.close()


def test_request_id_is_echoed(client_as, viewer_session):
    client = client_as(viewer_session)
    response = client.get("/properties/", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_viewer_cannot_create_resident(client_as, viewer_session):
    client = client_as(viewer_session)
    response = client.post("/residents/", json={"resident_code": "RES-1", "name": "Asha"})
    assert response.status_code == 403
    assert response.json()["detail"] == PERMISSION_DENIED_MESSAGE


def test_admin_creates_property_and_resident(client_as, admin_session, db_session):
    client = client_as(admin_session)
    prop = _create_property(client)
    resident = _create_resident(client, property_id=prop["id"])

    assert resident["property"]["name"] == "Maple Court"
    fetched = client.get(f"/residents/{resident['id']}").json()
    assert fetched["property"]["city"] == "Pune"
    listed = client.get("/residents/").json()["items"]
    assert listed[0]["property"]["name"] == "Maple Court"
    assert isinstance(resident["monthly_rent"], str)
    assert Decimal(resident["monthly_rent"]) == Decimal("1200")
    assert db_session.query(AuditLog).filter(AuditLog.action == "property.create").count() == 1


def test_duplicate_property_code_returns_conflict(client_as, admin_session):
    client = client_as(admin_session)
    _create_property(client)
    response = client.post(
        "/properties/",
        json={"property_code": "PROP-1", "name": "Other", "address": "2 Main Road", "city": "Pune"},
    )
    assert response.status_code == 409


def test_invalid_payload_returns_validation_error(client_as, admin_session):
    client = client_as(admin_session)
    response = client.post("/residents/", json={"resident_code": "RES-1", "name": "Asha", "monthly_rent": "-5"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Validation failed."


def test_resident_listing_filters_sorts_and_pages(client_as, admin_session):
    client = client_as(admin_session)
    maple = _create_property(client, "PROP-1", "Maple Court", "Pune")
    cedar = _create_property(client, "PROP-2", "Cedar Heights", "Mumbai")
    _create_resident(client, "RES-1", "Zed", property_id=maple["id"])
    _create_resident(client, "RES-2", "amy", property_id=maple["id"])
    _create_resident(client, "RES-3", "Bo", property_id=cedar["id"])

    response = client.get("/residents/", params={"city": "Pune", "sort": "name", "direction": "asc"})
    body = response.json()
    assert response.status_code == 200
    assert [item["name"] for item in body["items"]] == ["amy", "Zed"]
    assert body["page_size"] == 500
    assert body["total_items"] == 2

    response = client.get("/residents/", params={"page_size": 25, "page": 2})
    assert response.json()["items"] == []
    assert response.json()["total_pages"] == 1

    assert client.get("/residents/", params={"page_size": 30}).status_code == 422
    assert client.get("/residents/", params={"sort": "nickname"}).status_code == 422


def test_statement_and_dashboard(client_as, admin_session):
    client = client_as(admin_session)
    resident = _create_resident(client, monthly_rent="5000", total_advance_disbursed="2500")
    rid = resident["id"]
    for code in ("D-1", "D-2"):
        response = client.post(
            f"/residents/{rid}/disbursements",
            json={"disbursement_code": code, "date": "2024-01-15", "amount": "1500", "type": "1st Tranche"},
        )
        assert response.status_code == 201, response.text
    response = client.post(
        f"/residents/{rid}/repayments",
        json={"repayment_code": "R-1", "month": "February 2024", "due_date": "2024-02-01", "rent_amount": "1000"},
    )
    assert response.status_code == 201, response.text

    repayment_id = response.json()["id"]
    response = client.patch(f"/repayments/{repayment_id}/status", json={"status": "paid", "amount_paid": "1000"})
    assert response.status_code == 200
    assert response.json()["status"] == "paid"

    statement = client.get(f"/residents/{rid}/statement").json()
    assert Decimal(statement["computed"]["total_disbursed"]) == Decimal("3000")
    assert Decimal(statement["computed"]["total_collected"]) == Decimal("1000")
    assert Decimal(statement["computed"]["outstanding"]) == Decimal("2000")
    assert Decimal(statement["stored"]["total_disbursed"]) == Decimal("2500")
    assert statement["snapshot_matches"] is False

    stats = client.get("/dashboard/stats").json()
    assert stats["total_residents"] == 1
    assert Decimal(stats["total_disbursed"]) == Decimal("2500")
    assert Decimal(stats["total_collected"]) == Decimal("1000")


def test_repayment_status_update_keeps_omitted_fields(client_as, admin_session, db_session):
    client = client_as(admin_session)
    rid = _create_resident(client)["id"]
    created = client.post(
        f"/residents/{rid}/repayments",
        json={
            "repayment_code": "R-1",
            "month": "March 2024",
            "due_date": "2024-03-01",
            "rent_amount": "800",
            "amount_paid": "200",
            "actual_payment_date": "2024-03-02",
        },
    ).json()

    response = client.patch(f"/repayments/{created['id']}/status", json={"status": "failed"})

    assert response.status_code == 200
    row = db_session.get(Repayment, created["id"])
    assert row.status == "failed"
    assert row.amount_paid == Decimal("200")
    assert row.actual_payment_date == date(2024, 3, 2)


def test_dashboard_lookups(client_as, admin_session):
    client = client_as(admin_session)
    _create_property(client, "PROP-1", "Maple Court", "Pune")
    _create_property(client, "PROP-2", "Cedar Heights", "Mumbai")
    _create_property(client, "PROP-3", "Oak Villa", "Pune")

    assert client.get("/dashboard/cities").json() == ["Mumbai", "Pune"]
    assert client.get("/dashboard/property-names").json() == ["Cedar Heights", "Maple Court", "Oak Villa"]


def test_ticket_lifecycle(client_as, admin_session):
    client = client_as(admin_session)
    rid = _create_resident(client)["id"]
    overdue = (date.today() - timedelta(days=2)).isoformat()

    response = client.post(f"/residents/{rid}/tickets", json={"title": "Leaking tap", "due_date": overdue})
    assert response.status_code == 201, response.text
    ticket = response.json()
    assert ticket["status"] == "lapsed"
    assert ticket["created_by"] == admin_session.email

    response = client.post(f"/tickets/{ticket['id']}/comments", json={"content": "Plumber booked"})
    assert response.status_code == 201
    assert [c["content"] for c in response.json()["comments"]] == ["Plumber booked"]

    response = client.post(f"/tickets/{ticket['id']}/resolve")
    assert response.json()["status"] == "resolved"
    assert response.json()["resolved_at"] is not None

    listed = client.get(f"/residents/{rid}/tickets").json()
    assert [t["status"] for t in listed] == ["resolved"]


def test_notes_crud(client_as, admin_session):
    client = client_as(admin_session)
    rid = _create_resident(client)["id"]

    note = client.post(f"/residents/{rid}/notes", json={"content": "Called about rent"}).json()
    assert note["created_by"] == admin_session.email

    response = client.put(f"/notes/{note['id']}", json={"content": "Rent received"})
    assert response.json()["content"] == "Rent received"

    assert client.delete(f"/notes/{note['id']}").status_code == 204
    assert client.get(f"/residents/{rid}/notes").json() == []


def test_viewer_cannot_add_note(client_as, admin_session, viewer_session):
    rid = _create_resident(client_as(admin_session))["id"]
    viewer = client_as(viewer_session)
    response = viewer.post(f"/residents/{rid}/notes", json={"content": "hello"})
    assert response.status_code == 403


def test_document_upload_download_and_delete(client_as, admin_session):
    client = client_as(admin_session)
    rid = _create_resident(client)["id"]

    response = client.post(
        f"/residents/{rid}/documents",
        files={"file": ("lease.pdf", b"%PDF-1.4 lease", "application/pdf")},
    )
    assert response.status_code == 201, response.text
    document = response.json()
    assert document["file_size"] == len(b"%PDF-1.4 lease")
    assert document["download_url"] == f"/documents/{document['id']}/download"

    download = client.get(document["download_url"])
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 lease"
    assert "lease.pdf" in download.headers["content-disposition"]

    assert client.delete(f"/documents/{document['id']}").status_code == 204
    assert client.get(f"/residents/{rid}/documents").json() == []


def test_deleting_resident_removes_stored_documents(client_as, admin_session):
    client = client_as(admin_session)
    rid = _create_resident(client)["id"]
    response = client.post(
        f"/residents/{rid}/documents",
        files={"file": ("lease.pdf", b"%PDF-1.4 lease", "application/pdf")},
    )
    assert response.status_code == 201, response.text
    stored = [path for path in storage_service.upload_root.rglob("*") if path.is_file()]
    assert len(stored) == 1

    assert client.delete(f"/residents/{rid}").status_code == 204

    assert not stored[0].exists()
    assert [path for path in storage_service.upload_root.rglob("*") if path.is_file()] == []


def test_oversized_document_is_rejected(client_as, admin_session, monkeypatch):
    client = client_as(admin_session)
    rid = _create_resident(client)["id"]
    monkeypatch.setattr(settings, "max_upload_bytes", 8)

    response = client.post(
        f"/residents/{rid}/documents",
        files={"file": ("big.bin", b"0123456789", "application/octet-stream")},
    )

    assert response.status_code == 413
    assert client.get(f"/residents/{rid}/documents").json() == []


def test_residents_csv_export(client_as, admin_session):
    client = client_as(admin_session)
    rid = _create_resident(client, name="Asha", repayment_status="advance_paid")["id"]

    response = client.get("/reports/residents.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Resident ID,Name,Property")
    assert "Advance Paid" in lines[1]

    statement = client.get(f"/reports/residents/{rid}/statement.csv")
    assert statement.status_code == 200
    assert "Total Disbursed" in statement.text
