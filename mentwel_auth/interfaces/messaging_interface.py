"""
Message dispatcher interface for outgoing email.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IMessageDispatcher(Protocol):
    """Protocol for message delivery transports."""

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> bool:
        """
        Deliver a message.

        Args:
            to: Recipient address
            subject: Message subject
            html_body: HTML body
            text_body: Plain-text alternative

        Returns:
            True if the transport accepted the message, False otherwise
        """
        ...
