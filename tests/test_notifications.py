"""
Tests for discrepancy notifications. Delivery clients are mocked.
"""

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

from fastapi import BackgroundTasks

from audit_service.app.helpers import notification_helper
from audit_service.app.helpers.notification_helper import (
    notify_client,
    notify_staff,
    send_decision_notification,
    send_discrepancy_notification,
)
from shared.helpers.email_helper import EmailHelper
from shared.utils.whatsapp_client import WhatsAppClient

ENTRY = {
    "id": "e-1",
    "item_id": "12",
    "location": "Aisle 1",
    "audit_result": "Excess",
    "discrepancy": 8.004,
    "client_name": "Alpha Client",
    "staff_name": "Sam Staff",
}


def test_discrepancy_notification_sends_email_and_whatsapp(monkeypatch):
    email = MagicMock()
    whatsapp = MagicMock()
    monkeypatch.setattr(notification_helper, "EmailHelper", lambda: email)
    monkeypatch.setattr(notification_helper, "get_whatsapp_client", lambda: whatsapp)

    send_discrepancy_notification(ENTRY, "client@example.com", "+15550001")

    kwargs = email.send_email.call_args.kwargs
    assert kwargs["template_code"] == "discrepancy_review"
    assert kwargs["recipients"] == ["client@example.com"]
    assert kwargs["context"]["discrepancy"] == 8.0
    to_number, body = whatsapp.send_message.call_args.args
    assert to_number == "+15550001"
    assert "Aisle 1" in body


def test_missing_contacts_send_nothing(monkeypatch):
    email = MagicMock()
    whatsapp = MagicMock()
    monkeypatch.setattr(notification_helper, "EmailHelper", lambda: email)
    monkeypatch.setattr(notification_helper, "get_whatsapp_client", lambda: whatsapp)

    send_discrepancy_notification(ENTRY, None, None)

    email.send_email.assert_not_called()
    whatsapp.send_message.assert_not_called()


def test_delivery_failure_is_logged_not_raised(monkeypatch, caplog):
    email = MagicMock()
    email.send_email.side_effect = RuntimeError("smtp down")
    monkeypatch.setattr(notification_helper, "EmailHelper", lambda: email)

    with caplog.at_level(logging.ERROR):
        send_decision_notification(
            {**ENTRY, "decision": "approved", "comment": None}, "staff@example.com", None)

    assert "Decision notification failed for entry e-1" in caplog.text


def test_notify_client_queues_plain_payload():
    background_tasks = BackgroundTasks()
    entry = SimpleNamespace(id="e-1", item_id="12", location="Aisle 1",
                            audit_result="Excess", discrepancy=8)
    client = SimpleNamespace(name="Alpha Client", email="client@example.com", phone=None)

    notify_client(background_tasks, entry, client, "Sam Staff")

    task = background_tasks.tasks[0]
    assert task.func is send_discrepancy_notification
    payload, client_email, client_phone = task.args
    assert payload["client_name"] == "Alpha Client"
    assert payload["staff_name"] == "Sam Staff"
    assert client_email == "client@example.com"


def test_notify_staff_without_staff_queues_nothing():
    background_tasks = BackgroundTasks()
    entry = SimpleNamespace(id="e-1", item_id="12", location="Aisle 1",
                            client_action="approved", client_comment=None)

    notify_staff(background_tasks, entry, None, "Alpha Client")

    assert background_tasks.tasks == []


def test_email_helper_renders_template():
    mailer = MagicMock()
    mailer.send_email.return_value = True
    helper = EmailHelper(mailer=mailer)

    sent = helper.send_email(
        template_code="entry_decision",
        recipients=["staff@example.com"],
        subject="Inventory Entry Update",
        context={"staff_name": "Sam", "item_id": "12", "location": "Aisle 1",
                 "decision": "approved", "client_name": "Alpha", "comment": "-"},
    )

    assert sent is True
    kwargs = mailer.send_email.call_args.kwargs
    assert "was approved by Alpha" in kwargs["html_body"]
    assert "<p>" not in kwargs["text_body"]


def test_email_helper_escapes_user_text():
    mailer = MagicMock()
    helper = EmailHelper(mailer=mailer)

    helper.send_email(
        template_code="entry_decision",
        recipients=["staff@example.com"],
        subject="Inventory Entry Update",
        context={"staff_name": "Sam", "item_id": "12", "location": "Aisle 1",
                 "decision": "rejected", "client_name": "Alpha", "comment": "<b>recount</b> & retry"},
    )

    kwargs = mailer.send_email.call_args.kwargs
    assert "&lt;b&gt;recount&lt;/b&gt; &amp; retry" in kwargs["html_body"]
    assert "<b>" not in kwargs["html_body"]
    assert "<b>recount</b> & retry" in kwargs["text_body"]


def test_email_helper_disabled_without_smtp():
    helper = EmailHelper()

    assert helper.enabled is False
    assert helper.send_email("entry_decision", ["a@example.com"], "s", {}) is False


def test_whatsapp_address_prefix():
    assert WhatsAppClient._address(" +15550001 ") == "whatsapp:+15550001"
    assert WhatsAppClient._address("whatsapp:+15550001") == "whatsapp:+15550001"
