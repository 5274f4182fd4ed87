"""Email Service - Outbound email via Microsoft Graph

Sends HTML email from the service mailbox. Used by the SEND_EMAIL automation
action; one call per recipient.
"""
from datetime import datetime, timedelta
from typing import Optional
import httpx

from ..config.settings import Settings, settings as default_settings
from ..domain.errors import EmailSendError
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class EmailService:
    """Service for sending email through the Graph API"""

    GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
    LOGIN_BASE_URL = "https://login.microsoftonline.com"

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.config = config or default_settings
        self._transport = transport
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.config.email_timeout_seconds,
            transport=self._transport
        )

    def send_email(self, to: str, subject: str, html_body: str) -> bool:
        """
        Send a single HTML email

        Returns:
            True if Graph accepted the message, False if email is disabled,
            unconfigured or Graph rejected the request

        Raises:
            EmailSendError: On token or transport failure
        """
        if not self.config.email_enabled:
            logger.warning("Email disabled; message not sent", extra={"recipient": to})
            return False

        if not self.config.graph_configured:
            logger.warning("Graph credentials missing; message not sent", extra={"recipient": to})
            return False

        access_token = self._get_access_token()

        message = {
            "message": {
                "subject": subject,
                "body": {
                    "contentType": "HTML",
                    "content": html_body
                },
                "toRecipients": [
                    {"emailAddress": {"address": to}}
                ]
            },
            "saveToSentItems": False
        }

        try:
            with self._client() as client:
                response = client.post(
                    f"{self.GRAPH_BASE_URL}/me/sendMail",
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Content-Type": "application/json"
                    },
                    json=message
                )
        except httpx.HTTPError as e:
            raise EmailSendError(
                f"Graph sendMail request failed: {e}",
                details={"recipient": to, "error_type": type(e).__name__}
            ) from e

        if response.status_code not in (200, 202):
            logger.error(
                f"Graph API rejected email: {response.status_code}",
                extra={"recipient": to, "error": response.text[:500]}
            )
            return False

        logger.info(f"Email sent: {subject}", extra={"recipient": to})
        return True

    def _get_access_token(self) -> str:
        """
        Get access token for service mailbox using ROPC

        Token is cached until shortly before expiry.
        """
        if self._access_token and self._token_expiry:
            if utc_now() < self._token_expiry:
                return self._access_token

        token_url = f"{self.LOGIN_BASE_URL}/{self.config.aad_tenant_id}/oauth2/v2.0/token"

        try:
            with self._client() as client:
                response = client.post(
                    token_url,
                    data={
                        "client_id": self.config.aad_client_id,
                        "client_secret": self.config.aad_client_secret,
                        "scope": "https://graph.microsoft.com/.default",
                        "username": self.config.service_mailbox_email,
                        "password": self.config.service_mailbox_password,
                        "grant_type": "password"
                    }
                )
        except httpx.HTTPError as e:
            raise EmailSendError(
                f"Token request failed: {e}",
                details={"error_type": type(e).__name__}
            ) from e

        if response.status_code != 200:
            raise EmailSendError(
                f"Failed to get access token: {response.status_code}",
                details={"response": response.text}
            )

        token_data = response.json()
        self._access_token = token_data["access_token"]

        expires_in = token_data.get("expires_in", 3600)
        self._token_expiry = utc_now() + timedelta(seconds=expires_in - 300)

        return self._access_token
