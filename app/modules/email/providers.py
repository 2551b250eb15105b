"""
Transactional email providers.

Each provider sends one HTML email and reports the outcome as an EmailResult;
network and HTTP errors become failed results instead of exceptions.
"""
import logging
from dataclasses import dataclass
from typing import Optional
import httpx
from app.config import settings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"
SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass
class EmailResult:
    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


class EmailProvider:
    name = "base"

    def __init__(self, api_key: Optional[str], from_email: Optional[str] = None,
                 from_name: Optional[str] = None, client: Optional[httpx.Client] = None):
        self.api_key = api_key
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.from_name
        self.client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, html: str) -> EmailResult:
        if not self.configured:
            logger.warning(f"{self.name} API key not configured, email to {to} not sent")
            return EmailResult(success=False, error=f"{self.name} not configured")
        try:
            response = self._post(to, subject, html)
        except httpx.HTTPError as e:
            logger.error(f"Error sending email via {self.name}: {e}")
            return EmailResult(success=False, error=str(e))
        return self._result(response, to)

    def _post(self, to: str, subject: str, html: str) -> httpx.Response:
        raise NotImplementedError

    def _result(self, response: httpx.Response, to: str) -> EmailResult:
        raise NotImplementedError

    def _request(self, url: str, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        if self.client is not None:
            return self.client.post(url, json=payload, headers=headers)
        with httpx.Client(timeout=settings.email_timeout_seconds) as client:
            return client.post(url, json=payload, headers=headers)


class ResendProvider(EmailProvider):
    name = "Resend"

    def _post(self, to, subject, html):
        return self._request(RESEND_URL, {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": to,
            "subject": subject,
            "html": html,
        })

    def _result(self, response, to):
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.status_code >= 400:
            logger.error(f"Resend error {response.status_code}: {data}")
            return EmailResult(success=False, error=f"Resend: {data.get('message') or response.status_code}")
        logger.info(f"Email sent via Resend to {to}")
        return EmailResult(success=True, message_id=data.get("id"))


class SendGridProvider(EmailProvider):
    name = "SendGrid"

    def _post(self, to, subject, html):
        return self._request(SENDGRID_URL, {
            "personalizations": [{"to": [{"email": to}], "subject": subject}],
            "from": {"email": self.from_email, "name": self.from_name},
            "content": [{"type": "text/html", "value": html}],
        })

    def _result(self, response, to):
        if response.status_code >= 400:
            logger.error(f"SendGrid error {response.status_code}: {response.text}")
            return EmailResult(success=False, error=f"SendGrid: {response.status_code}")
        logger.info(f"Email sent via SendGrid to {to}")
        return EmailResult(success=True, message_id=response.headers.get("X-Message-Id"))


class NullProvider(EmailProvider):
    """Drops every email; used when email_provider is "none"."""
    name = "Email"

    def __init__(self):
        super().__init__(api_key=None)


def get_email_provider(client: Optional[httpx.Client] = None) -> EmailProvider:
    """Provider selected by settings.email_provider"""
    provider = (settings.email_provider or "").lower()
    if provider == "sendgrid":
        return SendGridProvider(settings.sendgrid_api_key, client=client)
    if provider == "resend":
        return ResendProvider(settings.resend_api_key, client=client)
    return NullProvider()
