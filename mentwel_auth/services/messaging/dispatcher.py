"""
Message dispatchers: SMTP delivery through fastapi-mail, a logging transport
for environments without SMTP, and a best-effort wrapper that sends in the
background without ever failing the caller.
"""
import asyncio
from typing import Optional, Set
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.schemas import MultipartSubtypeEnum
import structlog

from ...core.config import Settings
from ...interfaces.messaging_interface import IMessageDispatcher
from .email_templates import OutgoingMessage

logger = structlog.get_logger()


def _mask_address(address: str) -> str:
    local, _, domain = address.partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"


class SMTPMessageDispatcher(IMessageDispatcher):
    """Deliver messages over SMTP with fastapi-mail."""

    def __init__(self, settings: Settings):
        self._config = ConnectionConfig(
            MAIL_USERNAME=settings.SMTP_USER,
            MAIL_PASSWORD=settings.SMTP_PASSWORD,
            MAIL_FROM=settings.EMAILS_FROM_EMAIL,
            MAIL_FROM_NAME=settings.EMAILS_FROM_NAME,
            MAIL_SERVER=settings.SMTP_HOST,
            MAIL_PORT=settings.SMTP_PORT,
            MAIL_STARTTLS=settings.SMTP_TLS,
            MAIL_SSL_TLS=False,
            USE_CREDENTIALS=True,
            VALIDATE_CERTS=True,
        )
        self._fast_mail = FastMail(self._config)

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        message_kwargs = {
            "subject": subject,
            "recipients": [to],
            "body": html_body,
            "subtype": MessageType.html,
        }
        if text_body:
            message_kwargs["alternative_body"] = text_body
            message_kwargs["multipart_subtype"] = MultipartSubtypeEnum.alternative

        try:
            await self._fast_mail.send_message(MessageSchema(**message_kwargs))
        except Exception as e:
            logger.error("Email delivery failed", recipient=_mask_address(to), subject=subject, error=str(e))
            return False

        logger.info("Email sent", recipient=_mask_address(to), subject=subject)
        return True


class LoggingMessageDispatcher(IMessageDispatcher):
    """Transport used when SMTP is not configured: the message is logged, not sent."""

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        logger.info(
            "Email delivery skipped, SMTP not configured",
            recipient=_mask_address(to),
            subject=subject,
        )
        return True


class BestEffortDispatcher:
    """
    Wraps a transport with two delivery modes.

    ``send`` awaits the transport and reports the outcome to the caller.
    ``dispatch_best_effort`` schedules delivery as a background task whose
    failure is logged and never propagated. Outstanding tasks are kept
    referenced until done and can be awaited with ``drain``.
    """

    def __init__(self, transport: IMessageDispatcher):
        self.transport = transport
        self._pending: Set[asyncio.Task] = set()

    async def send(self, message: OutgoingMessage) -> bool:
        return await self.transport.send(
            message.to, message.subject, message.html_body, message.text_body
        )

    def dispatch_best_effort(self, message: OutgoingMessage) -> asyncio.Task:
        task = asyncio.create_task(self.send(message))
        self._pending.add(task)
        task.add_done_callback(lambda t: self._on_done(t, message))
        return task

    def _on_done(self, task: asyncio.Task, message: OutgoingMessage) -> None:
        self._pending.discard(task)

        if task.cancelled():
            logger.warning("Background email cancelled", subject=message.subject)
            return

        error = task.exception()
        if error is not None:
            logger.error(
                "Background email failed",
                recipient=_mask_address(message.to),
                subject=message.subject,
                error=str(error),
            )
        elif not task.result():
            logger.warning(
                "Background email not delivered",
                recipient=_mask_address(message.to),
                subject=message.subject,
            )

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled background message to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def create_message_dispatcher(settings: Settings) -> IMessageDispatcher:
    """Pick the transport for the configured environment."""
    if settings.smtp_configured:
        logger.info("Using SMTP message dispatcher", smtp_host=settings.SMTP_HOST)
        return SMTPMessageDispatcher(settings)

    logger.warning("SMTP not configured, messages will be logged instead of sent")
    return LoggingMessageDispatcher()
