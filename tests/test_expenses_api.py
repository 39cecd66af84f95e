"""HTTP tests for expense submission, edits and listings."""

from __future__ import annotations

import json
from datetime import date

from conftest import auth, expense_payload


def upload(client, user_id, name="ticket.pdf", content_type="application/pdf"):
    resp = client.post(
        "/uploads",
        headers=auth(user_id),
        files={"file": (name, b"%PDF-1.4 fake", content_type)},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_submit_base_currency_expense(client, user_id):
    resp = client.post("/expenses", json=expense_payload(amount=50), headers=auth(user_id))
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["owner_user_id"] == user_id
    assert body["amount_in_base_currency"] == 50
    assert body["total_payable"] == 50
    assert body["exchange_rate"] is None
    assert body["payment_channel"] == {"kind": "in_person", "store_name": "La Farola"}


def test_submit_foreign_currency_with_installments(client, user_id):
    payload = expense_payload(
        amount=100,
        currency="usd",
        exchange_rate=1000,
        has_installments=True,
        installment_count=3,
        channel={"kind": "web", "url": "https://tienda.example"},
    )
    resp = client.post("/expenses", json=payload, headers=auth(user_id))
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["currency"] == "USD"
    assert body["amount_in_base_currency"] == 100000
    assert body["total_payable"] == 300000
    assert body["installment_count"] == 3

    listed = client.get("/expenses", headers=auth(user_id)).json()
    assert [e["id"] for e in listed] == [body["id"]]
    assert listed[0]["total_payable"] == 300000


def test_missing_exchange_rate_is_rejected(client, user_id):
    resp = client.post(
        "/expenses", json=expense_payload(amount=10, currency="USD"), headers=auth(user_id)
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "invalid_exchange_rate"
    assert client.get("/expenses", headers=auth(user_id)).json() == []


def test_single_installment_is_rejected(client, user_id):
    resp = client.post(
        "/expenses",
        json=expense_payload(has_installments=True, installment_count=1),
        headers=auth(user_id),
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "invalid_installment_count"


def test_unsupported_currency(client, user_id):
    resp = client.post(
        "/expenses",
        json=expense_payload(currency="JPY", exchange_rate=7),
        headers=auth(user_id),
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "unsupported_currency"


def test_non_positive_amount_fails_validation(client, user_id):
    resp = client.post("/expenses", json=expense_payload(amount=0), headers=auth(user_id))
    assert resp.status_code == 422
    assert resp.json()["error"] == "validation_error"


def test_unknown_caller_is_unauthenticated(client):
    resp = client.post("/expenses", json=expense_payload(), headers=auth(4242))
    assert resp.status_code == 401
    resp = client.get("/expenses")
    assert resp.status_code == 401


def test_list_is_newest_first(client, user_id):
    for day in (date(2024, 6, 1), date(2024, 6, 20), date(2024, 6, 10)):
        client.post(
            "/expenses", json=expense_payload(expense_date=day), headers=auth(user_id)
        )
    dates = [e["expense_date"] for e in client.get("/expenses", headers=auth(user_id)).json()]
    assert dates == ["2024-06-20", "2024-06-10", "2024-06-01"]


def test_list_all_requires_admin(client, user_id, admin_id):
    client.post("/expenses", json=expense_payload(), headers=auth(user_id))

    denied = client.get("/expenses/all", headers=auth(user_id))
    assert denied.status_code == 403
    assert denied.json() == {"error": "unauthorized", "detail": "Not authorized."}

    allowed = client.get("/expenses/all", headers=auth(admin_id))
    assert allowed.status_code == 200
    rows = allowed.json()
    assert len(rows) == 1
    assert rows[0]["owner"]["email"] == "ana@pueblaequipo.com.ar"
    assert rows[0]["owner"]["card_last4"] == "1234"


def test_document_attachment(client, user_id):
    doc = upload(client, user_id)
    assert doc["url"].startswith("/uploads/")
    resp = client.post(
        "/expenses", json=expense_payload(document=doc), headers=auth(user_id)
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["document"] == doc
    assert client.get(doc["url"]).status_code == 200


def test_unresolvable_document_is_rejected(client, user_id):
    doc = {
        "url": "/uploads/1/missing.pdf",
        "filename": "missing.pdf",
        "content_type": "application/pdf",
    }
    resp = client.post(
        "/expenses", json=expense_payload(document=doc), headers=auth(user_id)
    )
    assert resp.status_code == 422
    assert resp.json()["error"] == "document_not_found"


def test_edit_recomputes_derived_amounts(client, user_id):
    created = client.post(
        "/expenses", json=expense_payload(amount=50), headers=auth(user_id)
    ).json()
    payload = expense_payload(
        amount=10, currency="EUR", exchange_rate=1200, has_installments=True, installment_count=2
    )
    resp = client.put(f"/expenses/{created['id']}", json=payload, headers=auth(user_id))
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["id"] == created["id"]
    assert body["owner_user_id"] == user_id
    assert body["amount_in_base_currency"] == 12000
    assert body["total_payable"] == 24000


def test_edit_by_non_owner_reads_as_missing(client, user_id, other_user_id):
    created = client.post("/expenses", json=expense_payload(), headers=auth(user_id)).json()
    resp = client.put(
        f"/expenses/{created['id']}", json=expense_payload(amount=1), headers=auth(other_user_id)
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "expense_not_found"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def post_raw(client, user_id, payload, **literals):
    """POST a body where ``literals`` replace placeholders with raw JSON tokens."""
    body = json.dumps(payload)
    for placeholder, token in literals.items():
        body = body.replace(f'"{placeholder}"', token)
    return client.post(
        "/expenses",
        content=body,
        headers={**auth(user_id), "Content-Type": "application/json"},
    )


def test_infinite_amount_is_a_validation_error(client, user_id):
    resp = post_raw(client, user_id, expense_payload(amount="@AMOUNT@"), **{"@AMOUNT@": "Infinity"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation_error"
    assert any("amount" in err["loc"] for err in body["detail"])
    assert client.get("/expenses", headers=auth(user_id)).json() == []


def test_nan_exchange_rate_is_a_validation_error(client, user_id):
    payload = expense_payload(amount=10, currency="USD", exchange_rate="@RATE@")
    resp = post_raw(client, user_id, payload, **{"@RATE@": "NaN"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation_error"
    assert any("exchange_rate" in err["loc"] for err in body["detail"])


def test_web_channel_requires_url_on_submission(client, user_id):
    resp = client.post(
        "/expenses",
        json=expense_payload(channel={"kind": "web"}),
        headers=auth(user_id),
    )
    assert resp.status_code == 422
    resp = client.post(
        "/expenses",
        json=expense_payload(channel={"kind": "in_person", "store_name": ""}),
        headers=auth(user_id),
    )
    assert resp.status_code == 422
