from datetime import datetime

from conftest import auth, days, make_qr, make_user, utcnow
from models.payment import PaymentRecord
from models.qr_analytics import QRAnalyticsEvent
from models.qr_design import QRDesign
from models.qrcode import QRCode, QRStatus, QRType
from utils.config import FREE_STATIC_LIMIT


def _create(client, key, **overrides):
    payload = {"name": "Menu", "type": "dynamic", "destination_url": "example.com/menu"}
    payload.update(overrides)
    return client.post("/api/v1/qrs", json=payload, headers=auth(key))


def test_me_returns_caller(client, session_local):
    _, key = make_user(session_local, email="me@example.com")
    response = client.get("/api/v1/me", headers=auth(key))
    assert response.status_code == 200
    assert response.json()["email"] == "me@example.com"


def test_revoked_key_is_rejected(client, session_local):
    from models.api_key import APIKey

    _, key = make_user(session_local)
    with session_local() as db:
        row = db.query(APIKey).one()
        row.revoked_at = utcnow()
        db.commit()

    assert client.get("/api/v1/me", headers=auth(key)).status_code == 401


def test_create_dynamic_code_starts_trial(client, session_local):
    _, key = make_user(session_local)

    response = _create(client, key, design={"dot_color": "#ff0000", "frame_text": "Scan me"})

    assert response.status_code == 201
    body = response.json()
    assert body["type"] == QRType.DYNAMIC
    assert body["status"] == QRStatus.TRIAL
    assert body["destination_url"] == "https://example.com/menu"
    assert len(body["short_url"]) == 6
    assert body["redirect_url"].endswith("/" + body["short_url"])
    assert body["design"]["dot_color"] == "#ff0000"
    assert body["design"]["frame_text"] == "Scan me"

    expires_at = datetime.fromisoformat(body["expires_at"])
    assert abs((expires_at - (utcnow() + days(30))).total_seconds()) < 10
    assert body["days_remaining"] in (29, 30)


def test_create_static_code_has_no_short_code(client, session_local):
    _, key = make_user(session_local)

    response = _create(client, key, type="static", destination_url="https://example.com/static")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == QRStatus.ACTIVE
    assert body["short_url"] is None
    assert body["redirect_url"] is None
    assert body["expires_at"] is None


def test_create_rejects_unknown_type_and_missing_url(client, session_local):
    _, key = make_user(session_local)
    assert _create(client, key, type="animated").status_code == 400
    assert _create(client, key, destination_url="   ").status_code == 400


def test_one_unpaid_dynamic_code_per_user(client, session_local):
    _, key = make_user(session_local)

    assert _create(client, key).status_code == 201
    second = _create(client, key)

    assert second.status_code == 409
    assert "error" in second.json()


def test_paid_dynamic_codes_do_not_count_against_limit(client, session_local):
    user_id, key = make_user(session_local)
    qr_id = make_qr(session_local, user_id, status=QRStatus.ACTIVE)
    with session_local() as db:
        db.add(
            PaymentRecord(
                qr_code_id=qr_id, user_id=user_id, amount=10, currency="USD",
                gateway="razorpay", payment_id="pay_1", order_id="order_1",
            )
        )
        db.commit()

    assert _create(client, key).status_code == 201


def test_static_limit(client, session_local):
    user_id, key = make_user(session_local)
    for i in range(FREE_STATIC_LIMIT):
        make_qr(session_local, user_id, qr_type=QRType.STATIC, name=f"S{i}")

    response = _create(client, key, type="static")

    assert response.status_code == 409


def test_list_is_scoped_to_owner(client, session_local):
    owner_id, owner_key = make_user(session_local, email="owner@example.com")
    other_id, _ = make_user(session_local, email="other@example.com")
    mine = make_qr(session_local, owner_id, short_url="Mine01")
    make_qr(session_local, other_id, short_url="Other1")

    response = client.get("/api/v1/qrs", headers=auth(owner_key))

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["items"]] == [mine]


def test_foreign_code_is_not_found(client, session_local):
    owner_id, _ = make_user(session_local, email="owner@example.com")
    _, other_key = make_user(session_local, email="other@example.com")
    qr_id = make_qr(session_local, owner_id)

    assert client.get(f"/api/v1/qrs/{qr_id}", headers=auth(other_key)).status_code == 404
    assert client.delete(f"/api/v1/qrs/{qr_id}", headers=auth(other_key)).status_code == 404


def test_patch_updates_destination_but_never_status(client, session_local):
    user_id, key = make_user(session_local)
    qr_id = make_qr(session_local, user_id, status=QRStatus.TRIAL_EXPIRED, expires_at=utcnow() - days(1))

    response = client.patch(
        f"/api/v1/qrs/{qr_id}",
        json={"destination_url": "new.example.com", "name": "Renamed", "status": "active"},
        headers=auth(key),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["destination_url"] == "https://new.example.com"
    assert body["name"] == "Renamed"
    assert body["status"] == QRStatus.TRIAL_EXPIRED
    assert body["short_url"] == "Abc123"
    assert body["grace_ends_at"] is not None


def test_duplicate_copies_design_with_fresh_short_code(client, session_local):
    _, key = make_user(session_local)
    source = _create(client, key, type="static", design={"background_color": "#eeeeee"}).json()

    response = client.post(f"/api/v1/qrs/{source['id']}/duplicate", headers=auth(key))

    assert response.status_code == 201
    copy = response.json()
    assert copy["id"] != source["id"]
    assert copy["name"] == "Menu (Copy)"
    assert copy["destination_url"] == source["destination_url"]
    assert copy["design"]["background_color"] == "#eeeeee"


def test_duplicate_dynamic_respects_limit(client, session_local):
    _, key = make_user(session_local)
    source = _create(client, key).json()

    response = client.post(f"/api/v1/qrs/{source['id']}/duplicate", headers=auth(key))

    assert response.status_code == 409


def test_delete_removes_design_and_analytics_but_keeps_payments(client, session_local):
    user_id, key = make_user(session_local)
    created = _create(client, key, design={"dot_color": "#123456"}).json()
    client.get(f"/{created['short_url']}", follow_redirects=False)
    with session_local() as db:
        db.add(
            PaymentRecord(
                qr_code_id=created["id"], user_id=user_id, amount=10, currency="USD",
                gateway="razorpay", payment_id="pay_del", order_id="order_del",
            )
        )
        db.commit()

    response = client.delete(f"/api/v1/qrs/{created['id']}", headers=auth(key))

    assert response.status_code == 200
    with session_local() as db:
        assert db.query(QRCode).count() == 0
        assert db.query(QRDesign).count() == 0
        assert db.query(QRAnalyticsEvent).count() == 0
        payment = db.query(PaymentRecord).one()
        assert payment.qr_code_id is None


def test_analytics_summary(client, session_local):
    _, key = make_user(session_local)
    created = _create(client, key).json()
    short = created["short_url"]

    client.get(f"/{short}", headers={"user-agent": "iPhone Mobile", "cf-ipcountry": "DE"}, follow_redirects=False)
    client.get(f"/{short}", headers={"user-agent": "iPhone Mobile", "cf-ipcountry": "DE"}, follow_redirects=False)
    client.get(f"/{short}", headers={"user-agent": "Windows NT", "cf-ipcountry": "US"}, follow_redirects=False)

    response = client.get(f"/api/v1/qrs/{created['id']}/analytics", headers=auth(key))

    assert response.status_code == 200
    body = response.json()
    assert body["total_scans"] == 3
    assert body["by_country"][0] == {"country": "DE", "count": 2}
    assert {row["device_type"]: row["count"] for row in body["by_device"]} == {"mobile": 2, "desktop": 1}
    assert sum(row["count"] for row in body["per_day"]) == 3
    assert len(body["recent"]) == 3


def test_analytics_for_static_code_is_400(client, session_local):
    _, key = make_user(session_local)
    created = _create(client, key, type="static").json()

    response = client.get(f"/api/v1/qrs/{created['id']}/analytics", headers=auth(key))

    assert response.status_code == 400
