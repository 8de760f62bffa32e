import pytest
from fastapi.testclient import TestClient

from backend.app.core.security import get_password_hash
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.user import ROLE_ADMIN, User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def admin_token(client: TestClient) -> dict:
    db = SessionLocal()
    try:
        db.add(User(email="admin@example.com", hashed_password=get_password_hash("secret1"), role=ROLE_ADMIN))
        db.commit()
    finally:
        db.close()
    resp = client.post("/auth/login", json={"email": "admin@example.com", "password": "secret1"})
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def create_package(client: TestClient, headers: dict, name: str, kind: str = "group_training") -> dict:
    resp = client.post("/packages", json={"name": name, "kind": kind}, headers=headers)
    assert resp.status_code == 201
    return resp.json()


def test_student_crud_and_balance():
    client = TestClient(app)
    headers = admin_token(client)
    package = create_package(client, headers, "Group")

    created = client.post(
        "/students",
        json={
            "name": "Morgan",
            "email": "morgan@example.com",
            "package_id": package["id"],
            "total_training_fee": "5000",
            "downpayment": "1000",
        },
        headers=headers,
    )
    assert created.status_code == 201
    data = created.json()
    # Falls back to the configured default package size
    assert float(data["sessions"]) == 8.0
    assert float(data["remaining_sessions"]) == 8.0
    assert float(data["remaining_balance"]) == 4000.0
    assert data["package_type"] == "Group"

    duplicate = client.post("/students", json={"name": "M", "email": "morgan@example.com"}, headers=headers)
    assert duplicate.status_code == 400

    updated = client.put(f"/students/{data['id']}", json={"downpayment": "2000"}, headers=headers)
    assert float(updated.json()["remaining_balance"]) == 3000.0

    found = client.get("/students", params={"search": "morg"}, headers=headers).json()
    assert [s["id"] for s in found] == [data["id"]]

    assert client.delete(f"/students/{data['id']}", headers=headers).status_code == 200
    assert client.get(f"/students/{data['id']}", headers=headers).status_code == 404


def test_unknown_package_on_create_returns_404():
    client = TestClient(app)
    headers = admin_token(client)
    resp = client.post("/students", json={"name": "X", "email": "x@example.com", "package_id": 42}, headers=headers)
    assert resp.status_code == 404


def test_renewal_and_package_history_endpoints():
    client = TestClient(app)
    headers = admin_token(client)
    group = create_package(client, headers, "Group")
    personal = create_package(client, headers, "Personal", kind="personal_training")
    student = client.post(
        "/students",
        json={"name": "Riley", "email": "riley@example.com", "package_id": group["id"], "sessions": "4"},
        headers=headers,
    ).json()

    renewed = client.post(
        f"/students/{student['id']}/renew",
        json={"package_id": personal["id"], "sessions": "10"},
        headers=headers,
    )
    assert renewed.status_code == 200
    assert renewed.json()["package_type"] == "Personal"
    assert float(renewed.json()["remaining_sessions"]) == 10.0

    history = client.get(f"/students/{student['id']}/package-history", headers=headers).json()
    assert len(history) == 1
    assert history[0]["package_type"] == "Group"
    assert history[0]["reason"] == "renewal - early"

    usage = client.get(f"/students/{student['id']}/package-usage", headers=headers).json()
    assert usage["current_cycle"] == 2
    assert usage["status"] == "ongoing"

    deleted = client.delete(f"/students/{student['id']}/package-history/{history[0]['id']}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/students/{student['id']}/package-history", headers=headers).json() == []


def test_inactive_package_cannot_be_renewed_into():
    client = TestClient(app)
    headers = admin_token(client)
    package = create_package(client, headers, "Camp", kind="camp_training")
    client.put(f"/packages/{package['id']}", json={"is_active": False}, headers=headers)
    student = client.post("/students", json={"name": "Sky", "email": "sky@example.com"}, headers=headers).json()
    resp = client.post(f"/students/{student['id']}/renew", json={"package_id": package["id"], "sessions": "5"}, headers=headers)
    assert resp.status_code == 400

    active = client.get("/packages", params={"active_only": True}, headers=headers).json()
    assert active == []


def test_payment_endpoints_and_receipt():
    client = TestClient(app)
    headers = admin_token(client)
    student = client.post(
        "/students",
        json={"name": "Dana", "email": "dana@example.com", "total_training_fee": "3000", "downpayment": "500"},
        headers=headers,
    ).json()

    payment = client.post("/payments", json={"student_id": student["id"], "payment_amount": "700"}, headers=headers)
    assert payment.status_code == 201
    assert client.post("/payments", json={"student_id": student["id"], "payment_amount": "0"}, headers=headers).status_code == 422

    refreshed = client.get(f"/students/{student['id']}", headers=headers).json()
    assert float(refreshed["remaining_balance"]) == 1800.0

    receipt = client.get(f"/payments/{payment.json()['id']}/receipt", headers=headers).json()
    assert receipt["receipt_number"].startswith("PR-")
    assert float(receipt["total_paid"]) == 700.0

    listed = client.get("/payments", params={"student_id": student["id"]}, headers=headers).json()
    assert len(listed) == 1

    assert client.delete(f"/payments/{payment.json()['id']}", headers=headers).status_code == 200
    refreshed = client.get(f"/students/{student['id']}", headers=headers).json()
    assert float(refreshed["remaining_balance"]) == 2500.0
