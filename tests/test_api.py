"""HTTP API tests: public RSVP flow and admin endpoints."""

import csv
import io
from datetime import datetime, timedelta, timezone

from evite.config import settings
from evite.utils.security import create_admin_token

API = "/api/v1"


def _create(client, headers, name="Ana", phone="0721 234 567", **extra):
    r = client.post(f"{API}/admin/invitations", json={"guest_name": name, "phone": phone, **extra}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _rsvp(client, **fields):
    body = {"guest_name": "Ana", "phone": "0721234567", "attending": True}
    body.update(fields)
    return client.post(f"{API}/rsvp", json=body)


# --- Health ---

def test_health(client):
    assert client.get(f"{API}/health").json() == {"status": "ok"}
    assert client.get("/").json()["status"] == "running"


# --- Admin auth ---

def test_admin_requires_token(client):
    r = client.get(f"{API}/admin/invitations")
    assert r.status_code in (401, 403)


def test_admin_rejects_garbage_token(client):
    r = client.get(f"{API}/admin/invitations", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


def test_admin_rejects_unlisted_email(client):
    token = create_admin_token("intruder@example.com")
    r = client.get(f"{API}/admin/invitations", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


def test_admin_email_match_is_case_insensitive(client):
    token = create_admin_token("second@example.com")
    r = client.get(f"{API}/admin/invitations", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200


# --- Admin invitations ---

def test_create_invitation_normalizes_phone_and_finalizes_message(client, admin_headers):
    inv = _create(client, admin_headers, invite_message="Hi {{GUEST_NAME}}, see {{RSVP_LINK}}")
    assert inv["phone"] == "+40721234567"
    assert inv["rsvp_link"] == f"https://rsvp.example.com/rsvp/{inv['token']}"
    assert inv["invite_message"] == f"Hi Ana, see {inv['rsvp_link']}"


def test_create_invitation_with_default_template(client, admin_headers):
    inv = _create(client, admin_headers)
    assert "{{" not in inv["invite_message"]
    assert inv["rsvp_link"] in inv["invite_message"]


def test_create_invitation_invalid_phone(client, admin_headers):
    r = client.post(f"{API}/admin/invitations", json={"guest_name": "Ana", "phone": "abc"}, headers=admin_headers)
    assert r.status_code == 400


def test_create_invitation_duplicate_phone(client, admin_headers):
    _create(client, admin_headers, phone="+40721234567")
    r = client.post(
        f"{API}/admin/invitations",
        json={"guest_name": "Other", "phone": "0721-234-567"},
        headers=admin_headers,
    )
    assert r.status_code == 409
    assert len(client.get(f"{API}/admin/invitations", headers=admin_headers).json()) == 1


def test_invitation_names_must_not_be_blank(client, admin_headers):
    r = client.post(f"{API}/admin/invitations", json={"guest_name": "   ", "phone": "0721234567"}, headers=admin_headers)
    assert r.status_code == 422

    inv = _create(client, admin_headers, name="  Ana  ")
    assert inv["guest_name"] == "Ana"

    r = client.put(f"{API}/admin/invitations/{inv['id']}", json={"guest_name": "\t ", "phone": "0721234567"}, headers=admin_headers)
    assert r.status_code == 422
    detail = client.get(f"{API}/admin/invitations/{inv['id']}", headers=admin_headers).json()
    assert detail["invitation"]["guest_name"] == "Ana"


def test_update_and_delete_invitation(client, admin_headers):
    ana = _create(client, admin_headers)
    bob = _create(client, admin_headers, name="Bob", phone="0721234568")

    r = client.put(f"{API}/admin/invitations/{bob['id']}", json={"guest_name": "Bob", "phone": "0721234567"}, headers=admin_headers)
    assert r.status_code == 409

    r = client.put(f"{API}/admin/invitations/{bob['id']}", json={"guest_name": "Robert", "phone": "0721234569"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["guest_name"] == "Robert"
    assert r.json()["phone"] == "+40721234569"

    assert client.delete(f"{API}/admin/invitations/{ana['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"{API}/admin/invitations/{ana['id']}", headers=admin_headers).status_code == 404
    assert client.delete(f"{API}/admin/invitations/{ana['id']}", headers=admin_headers).status_code == 404


def test_mark_sent_keeps_first_timestamp(client, admin_headers):
    inv = _create(client, admin_headers)
    first = client.post(f"{API}/admin/invitations/{inv['id']}/sent", headers=admin_headers).json()["sent_at"]
    second = client.post(f"{API}/admin/invitations/{inv['id']}/sent", headers=admin_headers).json()["sent_at"]
    assert first is not None
    assert first == second
    assert client.post(f"{API}/admin/invitations/9999/sent", headers=admin_headers).status_code == 404


# --- Public RSVP ---

def test_event_info(client, monkeypatch):
    monkeypatch.setattr(settings, "event_name", "Christening")
    monkeypatch.setattr(settings, "rsvp_deadline", None)
    data = client.get(f"{API}/event").json()
    assert data["name"] == "Christening"
    assert data["rsvp_closed"] is False


def test_open_invitation_marks_opened(client, admin_headers):
    inv = _create(client, admin_headers)
    r = client.get(f"{API}/rsvp/{inv['token']}")
    assert r.status_code == 200
    assert r.json()["guest_name"] == "Ana"
    assert r.json()["response"] is None
    assert "phone" not in r.json()

    opened = client.get(f"{API}/admin/invitations/{inv['id']}", headers=admin_headers).json()
    first_opened = opened["invitation"]["opened_at"]
    assert first_opened is not None

    client.get(f"{API}/rsvp/{inv['token']}")
    again = client.get(f"{API}/admin/invitations/{inv['id']}", headers=admin_headers).json()
    assert again["invitation"]["opened_at"] == first_opened


def test_open_unknown_token(client):
    assert client.get(f"{API}/rsvp/{'0' * 32}").status_code == 404


def test_open_invitation_survives_failed_open_mark(client, admin_headers, fail_statement):
    inv = _create(client, admin_headers)
    fail_statement("UPDATE invitations SET opened_at")

    r = client.get(f"{API}/rsvp/{inv['token']}")
    assert r.status_code == 200
    assert r.json()["guest_name"] == "Ana"

    detail = client.get(f"{API}/admin/invitations/{inv['id']}", headers=admin_headers).json()
    assert detail["invitation"]["opened_at"] is None


def test_rsvp_with_token_builds_history(client, admin_headers, open_rsvp):
    inv = _create(client, admin_headers)

    r = _rsvp(client, token=inv["token"], attending=True, plus_one=True, kids_count=1)
    assert r.status_code == 201, r.text
    assert r.json()["response"]["plus_one_name"] == "Partner"

    r = _rsvp(client, token=inv["token"], attending=False)
    assert r.status_code == 201

    detail = client.get(f"{API}/admin/invitations/{inv['id']}", headers=admin_headers).json()
    assert detail["invitation"]["responded_at"] is not None
    assert [resp["attending"] for resp in detail["responses"]] == [False, True]
    assert [resp["is_latest"] for resp in detail["responses"]] == [True, False]

    public = client.get(f"{API}/rsvp/{inv['token']}").json()
    assert public["response"]["attending"] is False


def test_rsvp_without_token_matches_phone(client, admin_headers, open_rsvp):
    inv = _create(client, admin_headers)
    r = _rsvp(client, phone="+40 721 234 567")
    assert r.status_code == 201
    assert r.json()["token"] == inv["token"]


def test_rsvp_without_token_creates_invitation(client, admin_headers, open_rsvp):
    r = _rsvp(client, guest_name="Walk In", phone="0721234599")
    assert r.status_code == 201
    rows = client.get(f"{API}/admin/invitations", headers=admin_headers).json()
    assert len(rows) == 1
    assert rows[0]["invitation"]["phone"] == "+40721234599"
    assert rows[0]["response"]["guest_name_tag"] == "Walk In"


def test_rsvp_rejections(client, open_rsvp):
    assert _rsvp(client, phone="abcdefghij").status_code == 400
    assert _rsvp(client, token="f" * 32).status_code == 404
    assert _rsvp(client, kids_count=-1).status_code == 422
    assert _rsvp(client, guest_name="   ").status_code == 422
    assert _rsvp(client, phone="").status_code == 422


def test_rsvp_after_deadline(client, monkeypatch):
    monkeypatch.setattr(settings, "rsvp_deadline", datetime.now(timezone.utc) - timedelta(days=1))
    assert _rsvp(client).status_code == 403
    assert client.get(f"{API}/event").json()["rsvp_closed"] is True


# --- Dashboard ---

def test_stats_and_csv_export(client, admin_headers, open_rsvp):
    ana = _create(client, admin_headers)
    _create(client, admin_headers, name="Bob", phone="0721234568")
    _rsvp(client, token=ana["token"], plus_one=True, kids_count=2, comment="line one\nline two")

    stats = client.get(f"{API}/admin/stats", headers=admin_headers).json()
    assert stats["invitations"] == 2
    assert stats["responded"] == 1
    assert stats["attending"] == 1
    assert stats["headcount"] == 4

    r = client.get(f"{API}/admin/export.csv", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows[0][0] == "Name"
    by_name = {row[0]: row for row in rows[1:]}
    assert by_name["Ana"][5:8] == ["yes", "yes", "2"]
    assert by_name["Ana"][10] == "line one line two"
    assert by_name["Bob"][5:] == ["-"] * 6


def test_renormalize_endpoint(client, admin_headers):
    _create(client, admin_headers)
    r = client.post(f"{API}/admin/phones/renormalize", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"total": 1, "updated": 0, "failed": 0, "unchanged": 1}
