"""Best-effort discrepancy notifications (email + WhatsApp).

Tasks are queued on FastAPI BackgroundTasks so they run after the response
has been sent; any failure is logged and swallowed.
"""
import logging
from typing import Optional

from fastapi import BackgroundTasks

from shared.core.config import settings
from shared.helpers.email_helper import EmailHelper
from shared.utils.whatsapp_client import WhatsAppClient
from .audit_engine import display_quantity

logger = logging.getLogger(__name__)


def get_whatsapp_client() -> Optional[WhatsAppClient]:
    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_WHATSAPP_FROM):
        return None
    return WhatsAppClient(
        settings.TWILIO_ACCOUNT_SID,
        settings.TWILIO_AUTH_TOKEN,
        settings.TWILIO_WHATSAPP_FROM,
    )


def _review_context(entry: dict) -> dict:
    return {
        "client_name": entry["client_name"],
        "item_id": entry["item_id"],
        "location": entry["location"],
        "audit_result": entry["audit_result"],
        "discrepancy": display_quantity(entry["discrepancy"]),
        "staff_name": entry["staff_name"],
    }


def send_discrepancy_notification(entry: dict, client_email: Optional[str], client_phone: Optional[str]):
    """Tell the assigned client a discrepant entry is waiting for review."""
    try:
        context = _review_context(entry)
        if client_email:
            EmailHelper().send_email(
                template_code="discrepancy_review",
                recipients=[client_email],
                subject="New Inventory Entry Requires Review",
                context=context,
            )
        whatsapp = get_whatsapp_client()
        if whatsapp and client_phone:
            whatsapp.send_message(
                client_phone,
                f"New inventory entry requires review. Item: {context['item_id']}, "
                f"Location: {context['location']}, Gap: {context['audit_result']} {context['discrepancy']}",
            )
    except Exception:
        logger.exception(
            f"Discrepancy notification failed for entry {entry.get('id')}")


def send_decision_notification(entry: dict, staff_email: Optional[str], staff_phone: Optional[str]):
    """Tell the submitting staff member how the client answered."""
    try:
        context = {
            "staff_name": entry["staff_name"],
            "item_id": entry["item_id"],
            "location": entry["location"],
            "decision": entry["decision"],
            "client_name": entry["client_name"],
            "comment": entry.get("comment") or "-",
        }
        if staff_email:
            EmailHelper().send_email(
                template_code="entry_decision",
                recipients=[staff_email],
                subject="Inventory Entry Update",
                context=context,
            )
        whatsapp = get_whatsapp_client()
        if whatsapp and staff_phone:
            whatsapp.send_message(
                staff_phone,
                f"Inventory entry {context['decision']} by {context['client_name']}. "
                f"Item: {context['item_id']}, Location: {context['location']}",
            )
    except Exception:
        logger.exception(
            f"Decision notification failed for entry {entry.get('id')}")


def notify_client(background_tasks: BackgroundTasks, entry, client, staff_name: str):
    # plain values only: the ORM session is closed by the time the task runs
    payload = {
        "id": str(entry.id),
        "item_id": entry.item_id,
        "location": entry.location,
        "audit_result": entry.audit_result,
        "discrepancy": entry.discrepancy,
        "client_name": client.name,
        "staff_name": staff_name,
    }
    background_tasks.add_task(
        send_discrepancy_notification, payload, client.email, client.phone)


def notify_staff(background_tasks: BackgroundTasks, entry, staff, client_name: str):
    payload = {
        "id": str(entry.id),
        "item_id": entry.item_id,
        "location": entry.location,
        "decision": entry.client_action,
        "comment": entry.client_comment,
        "client_name": client_name,
        "staff_name": staff.name if staff else "",
    }
    if staff:
        background_tasks.add_task(
            send_decision_notification, payload, staff.email, staff.phone)
