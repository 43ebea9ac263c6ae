from .dispatcher import (
    BestEffortDispatcher,
    LoggingMessageDispatcher,
    SMTPMessageDispatcher,
    create_message_dispatcher,
)
from .email_templates import OutgoingMessage

__all__ = [
    "BestEffortDispatcher",
    "LoggingMessageDispatcher",
    "SMTPMessageDispatcher",
    "create_message_dispatcher",
    "OutgoingMessage",
]
