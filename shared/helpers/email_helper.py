import html
import logging
import re
from typing import List, Optional

from ..utils.email_client import EmailClient
from ..core.config import settings

logger = logging.getLogger(__name__)

DISCREPANCY_REVIEW_TEMPLATE = """
<p>Hello {client_name},</p>
<p>A new inventory entry requires your review:</p>
<ul>
  <li>Item: {item_id}</li>
  <li>Location: {location}</li>
  <li>Result: {audit_result} ({discrepancy})</li>
  <li>Counted by: {staff_name}</li>
</ul>
<p>Please log in to the portal to approve or reject this entry.</p>
"""

ENTRY_DECISION_TEMPLATE = """
<p>Hello {staff_name},</p>
<p>Your inventory entry for {item_id} at {location} was {decision} by {client_name}.</p>
<p>Comment: {comment}</p>
<p>Please log in to the portal for more details.</p>
"""

TEMPLATES = {
    "discrepancy_review": DISCREPANCY_REVIEW_TEMPLATE,
    "entry_decision": ENTRY_DECISION_TEMPLATE,
}


class EmailHelper:
    """Renders the audit email templates and sends them via EmailClient."""

    def __init__(self, mailer: Optional[EmailClient] = None):
        self.mailer = mailer
        if self.mailer is None and settings.SMTP_HOST:
            self.mailer = EmailClient(
                smtp_host=settings.SMTP_HOST,
                smtp_port=settings.SMTP_PORT,
                username=settings.SMTP_USERNAME,
                password=settings.SMTP_PASSWORD,
                use_ssl=settings.SMTP_USE_SSL,
            )

    @property
    def enabled(self) -> bool:
        return self.mailer is not None

    def send_email(
        self,
        template_code: str,
        recipients: List[str],
        subject: str,
        context: dict,
    ) -> bool:
        """Send email with template and context replacement."""
        if not self.enabled:
            logger.info("Email disabled, skipping '%s'", template_code)
            return False
        if not recipients:
            return False

        safe_context = {k: html.escape(str(v)) for k, v in context.items()}
        html_body = TEMPLATES[template_code].format(**safe_context)
        text_body = self._strip_html_tags(html_body)

        return self.mailer.send_email(
            sender=settings.EMAIL_SENDER,
            recipients=recipients,
            subject=subject,
            text_body=text_body,
            html_body=html_body,
        )

    @staticmethod
    def _strip_html_tags(body: str) -> str:
        """Basic HTML to plain text converter."""
        return html.unescape(re.sub("<.*?>", "", body or ""))
