"""LINE Messaging API client for webhook replies."""

from __future__ import annotations

from linebot.v3.messaging import (
    ApiClient,
    Configuration,
    MessagingApi,
    ReplyMessageRequest,
    TextMessage,
)
from linebot.v3.webhook import SignatureValidator

from .config import config

logger = config.get_logger(__name__)

MAX_TEXT_LENGTH = 5000


class LineMessagingClient:
    """Replies to LINE events and verifies webhook signatures."""

    def __init__(
        self,
        channel_access_token: str | None = None,
        channel_secret: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            channel_access_token: Token for the reply API. If None, reads
                LINE_CHANNEL_ACCESS_TOKEN.
            channel_secret: Secret used for signature checks. If None, reads
                LINE_CHANNEL_SECRET.
            timeout: Request timeout in seconds. If None, uses config.LINE_TIMEOUT.
        """
        self.channel_access_token = (
            channel_access_token or config.get_line_channel_access_token()
        )
        self.channel_secret = channel_secret or config.get_line_channel_secret()
        self.timeout = timeout if timeout is not None else config.LINE_TIMEOUT

        self.validator: SignatureValidator | None = None
        if self.channel_secret:
            self.validator = SignatureValidator(self.channel_secret)

        self.api: MessagingApi | None = None
        if self.channel_access_token:
            configuration = Configuration(access_token=self.channel_access_token)
            self.api = MessagingApi(ApiClient(configuration))

    def verify_signature(self, body: bytes, signature: str | None) -> bool:
        """Check the X-Line-Signature header against the raw request body.

        Without a configured channel secret every request is accepted.

        Returns:
            True if the signature matches or no secret is configured.
        """
        if self.validator is None:
            return True
        if not signature:
            return False
        try:
            return self.validator.validate(body.decode("utf-8"), signature)
        except UnicodeDecodeError:
            return False

    def reply_text(self, reply_token: str, text: str) -> None:
        """Send a single text message in reply to an event.

        Raises:
            linebot.v3.messaging.ApiException: If the LINE API rejects the reply.
        """
        if self.api is None:
            logger.error("Cannot reply: LINE_CHANNEL_ACCESS_TOKEN is missing")
            return

        request = ReplyMessageRequest(
            reply_token=reply_token,
            messages=[TextMessage(text=text[:MAX_TEXT_LENGTH])],
        )
        self.api.reply_message(request, _request_timeout=self.timeout)
