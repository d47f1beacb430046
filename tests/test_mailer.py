import asyncio
import json

import httpx
import pytest

from app.api.errors import EmailDeliveryError
from app.services import mailer
from app.services.mailer import EmailMessage, PostmarkClient, build_cc_list, text_to_html

from conftest import OWNER

COMPANY = {"company_name": "Studio North", "email": "Owner@Example.com"}


def test_cc_owner_first_deduplicated_and_capped():
    cc = build_cc_list(
        "Owner@Example.com",
        [" PM@acme.test", "pm@acme.test", "owner@example.com", "cfo@acme.test", "ceo@acme.test"],
    )
    assert cc == ["Owner@Example.com", "pm@acme.test", "cfo@acme.test"]


def test_cc_without_owner_keeps_three_extras():
    assert build_cc_list(None, ["a@x.test", "b@x.test", "c@x.test", "d@x.test"]) == ["a@x.test", "b@x.test", "c@x.test"]


def test_text_to_html_escapes_and_breaks_lines():
    assert text_to_html("Hi <Bob>,\nThanks & bye") == "Hi &lt;Bob&gt;,<br>Thanks &amp; bye"


def _message():
    return EmailMessage(
        to="ap@acme.test",
        cc=["owner@example.com"],
        from_address="billing@ledger.test",
        subject="Invoice INV-2026-0001",
        html_body="<p>Hi</p>",
        text_body="Hi",
        attachment_name="INV-2026-0001.pdf",
        attachment_base64="JVBERg==",
    )


def test_postmark_client_posts_message():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["token"] = request.headers["X-Postmark-Server-Token"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"MessageID": "pm-123", "ErrorCode": 0})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            sender = PostmarkClient("token-1", http_client, "https://api.postmarkapp.com/email")
            return await sender.send(_message())

    assert asyncio.run(run()) == "pm-123"
    assert captured["token"] == "token-1"
    assert captured["body"]["Cc"] == "owner@example.com"
    assert captured["body"]["Attachments"][0]["Name"] == "INV-2026-0001.pdf"


def test_postmark_rejection_raises_delivery_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"ErrorCode": 300, "Message": "Invalid 'To' address"})

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            sender = PostmarkClient("token-1", http_client, "https://api.postmarkapp.com/email")
            await sender.send(_message())

    with pytest.raises(EmailDeliveryError) as caught:
        asyncio.run(run())
    assert caught.value.status_code == 502
    assert caught.value.details == {"status_code": 422, "error_code": 300}


@pytest.fixture
def invoice(client):
    created = client.post(
        "/v1/clients",
        json={"name": "Acme", "email": "ap@acme.test", "invoice_cc_emails": ["pm@acme.test"]},
        headers=OWNER,
    ).json()
    response = client.post(
        "/v1/invoices",
        json={"client_id": created["id"], "line_items": [{"description": "Build", "hours": 3, "rate": 100}]},
        headers=OWNER,
    )
    return response.json()


def test_send_requires_company_email(client, email_client, invoice):
    response = client.post(f"/v1/invoices/{invoice['id']}/send", json={}, headers=OWNER)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "COMPANY_SETTINGS_MISSING"
    assert email_client.sent == []


def test_send_without_email_provider(client, invoice):
    client.put("/v1/settings/company", json=COMPANY, headers=OWNER)
    response = client.post(f"/v1/invoices/{invoice['id']}/send", json={}, headers=OWNER)
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "EMAIL_NOT_CONFIGURED"


def test_send_marks_draft_as_sent(client, email_client, invoice):
    client.put("/v1/settings/company", json=COMPANY, headers=OWNER)

    response = client.post(f"/v1/invoices/{invoice['id']}/send", json={}, headers=OWNER)
    assert response.status_code == 200
    body = response.json()
    assert body["message_id"] == "msg-1"
    assert body["cc"] == ["Owner@Example.com", "pm@acme.test"]
    assert body["invoice"]["status"] == "sent"
    assert body["invoice"]["date_sent"].startswith("2026-03-15")

    message = email_client.sent[0]
    assert message.to == "ap@acme.test"
    assert message.subject == "Invoice INV-2026-0001"
    assert message.attachment_name == "INV-2026-0001.pdf"
    assert message.text_body.startswith("Hi Acme,")
    assert "Studio North" in message.text_body
    assert "<br>" in message.html_body


def test_send_keeps_paid_status(client, email_client, invoice):
    client.put("/v1/settings/company", json=COMPANY, headers=OWNER)
    client.post(f"/v1/invoices/{invoice['id']}/pay", headers=OWNER)

    body = client.post(f"/v1/invoices/{invoice['id']}/send", json={"body": "Receipt attached"}, headers=OWNER).json()
    assert body["invoice"]["status"] == "paid"
    assert body["invoice"]["date_sent"] is not None
    assert email_client.sent[0].text_body == "Receipt attached"


def test_requested_cc_list_is_saved_on_the_client(client, email_client, invoice):
    client.put("/v1/settings/company", json=COMPANY, headers=OWNER)

    response = client.post(
        f"/v1/invoices/{invoice['id']}/send",
        json={"cc_emails": ["CFO@acme.test", "owner@example.com"]},
        headers=OWNER,
    )
    assert response.json()["cc"] == ["Owner@Example.com", "cfo@acme.test"]

    saved = client.get(f"/v1/clients/{invoice['client_id']}", headers=OWNER).json()
    assert saved["invoice_cc_emails"] == ["cfo@acme.test"]


def test_failed_delivery_leaves_invoice_untouched(client, email_client, invoice):
    client.put("/v1/settings/company", json=COMPANY, headers=OWNER)
    email_client.fail = True

    response = client.post(f"/v1/invoices/{invoice['id']}/send", json={}, headers=OWNER)
    assert response.status_code == 502
    assert response.json()["error"]["code"] == "EMAIL_DELIVERY_FAILED"

    current = client.get(f"/v1/invoices/{invoice['id']}", headers=OWNER).json()
    assert current["status"] == "draft"
    assert current["date_sent"] is None


def _send_with(handler):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            sender = PostmarkClient("token-1", http_client, "https://api.postmarkapp.com/email")
            return await sender.send(_message())

    return asyncio.run(run())


def test_postmark_rejection_with_non_object_body():
    with pytest.raises(EmailDeliveryError) as caught:
        _send_with(lambda request: httpx.Response(422, json=["bad", "request"]))
    assert caught.value.details == {"status_code": 422, "error_code": None}
    assert "provider rejected the message" in caught.value.message


def test_postmark_accepted_with_unreadable_body():
    assert _send_with(lambda request: httpx.Response(200, text="OK")) == ""
    assert _send_with(lambda request: httpx.Response(200, json=["queued"])) == ""


def test_send_renders_and_queries_off_the_event_loop(client, email_client, invoice, monkeypatch):
    threads = []
    render = mailer.render_invoice_pdf

    def spy(*args):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            threads.append("worker")
        else:
            threads.append("loop")
        return render(*args)

    monkeypatch.setattr(mailer, "render_invoice_pdf", spy)
    client.put("/v1/settings/company", json=COMPANY, headers=OWNER)

    response = client.post(f"/v1/invoices/{invoice['id']}/send", json={}, headers=OWNER)
    assert response.status_code == 200
    assert threads == ["worker"]
    assert response.json()["invoice"]["status"] == "sent"
