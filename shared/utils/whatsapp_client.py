import logging
from twilio.rest import Client
from twilio.base.exceptions import TwilioException

logger = logging.getLogger(__name__)


class WhatsAppClient:
    """Sends WhatsApp messages through the Twilio messaging API."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.client = Client(account_sid, auth_token)
        self.from_number = from_number

    @staticmethod
    def _address(number: str) -> str:
        number = number.strip()
        return number if number.startswith("whatsapp:") else f"whatsapp:{number}"

    def send_message(self, to_number: str, body: str) -> bool:
        try:
            message = self.client.messages.create(
                body=body,
                from_=self._address(self.from_number),
                to=self._address(to_number),
            )
            logger.info(f"WhatsApp message {message.sid} sent to {to_number}")
            return True
        except TwilioException as e:
            logger.error(f"WhatsApp send to {to_number} failed: {e}")
            return False
