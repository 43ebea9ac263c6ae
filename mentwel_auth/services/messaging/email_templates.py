"""
Email templates for account verification, password reset and account notices.
"""
from dataclasses import dataclass
from html import escape
from typing import Optional

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background-color: %(accent)s; color: white; padding: 20px; text-align: center; }
    .content { padding: 20px; background-color: #f9f9f9; }
    .button { display: inline-block; padding: 12px 24px; background-color: %(accent)s; color: white; text-decoration: none; border-radius: 4px; margin: 20px 0; }
    .footer { text-align: center; padding: 20px; font-size: 12px; color: #666; }
    .warning { background-color: #fff3cd; border-left: 4px solid #ffc107; padding: 12px; margin: 20px 0; }
"""

GREEN = "#4CAF50"
BLUE = "#2196F3"
FOOTER = "&copy; MentWel. All rights reserved."
TEXT_FOOTER = "(c) MentWel. All rights reserved."


@dataclass(frozen=True)
class OutgoingMessage:
    """A rendered message ready for a dispatcher."""
    to: str
    subject: str
    html_body: str
    text_body: str


def _layout(title: str, content: str, accent: str) -> str:
    style = _STYLE % {"accent": accent}
    return f"""<!DOCTYPE html>
<html>
  <head>
    <style>{style}</style>
  </head>
  <body>
    <div class="container">
      <div class="header">
        <h1>{title}</h1>
      </div>
      <div class="content">
        {content}
      </div>
      <div class="footer">
        <p>{FOOTER}</p>
      </div>
    </div>
  </body>
</html>
"""


def _greeting_name(first_name: Optional[str]) -> str:
    return first_name or "there"


def _link_block(url: str, label: str) -> str:
    safe_url = escape(url, quote=True)
    return (
        f'<p style="text-align: center;"><a href="{safe_url}" class="button">{label}</a></p>\n'
        f"        <p>Or copy and paste this link into your browser:</p>\n"
        f'        <p style="word-break: break-all; color: #666;">{safe_url}</p>'
    )


def verify_email_message(to: str, first_name: Optional[str], verification_url: str) -> OutgoingMessage:
    name = _greeting_name(first_name)
    content = f"""<p>Hi {escape(name)},</p>
        <p>Thank you for registering with MentWel. Please verify your email address to complete your registration.</p>
        {_link_block(verification_url, 'Verify Email')}
        <p>If you didn't create an account with MentWel, please ignore this email.</p>"""
    text = (
        f"Hi {name},\n\n"
        "Thank you for registering with MentWel. Please verify your email address by "
        f"clicking the link below:\n\n{verification_url}\n\n"
        "If you didn't create an account with MentWel, please ignore this email.\n\n"
        f"{TEXT_FOOTER}"
    )
    return OutgoingMessage(
        to=to,
        subject="Verify Your Email - MentWel",
        html_body=_layout("Welcome to MentWel", content, GREEN),
        text_body=text,
    )


def reset_password_message(
    to: str,
    first_name: Optional[str],
    reset_url: str,
    expires_minutes: int
) -> OutgoingMessage:
    name = _greeting_name(first_name)
    content = f"""<p>Hi {escape(name)},</p>
        <p>We received a request to reset your password for your MentWel account.</p>
        {_link_block(reset_url, 'Reset Password')}
        <div class="warning">
          <strong>Security Notice:</strong> This link will expire in {expires_minutes} minutes for your security.
        </div>
        <p>If you didn't request a password reset, please ignore this email or contact support if you have concerns.</p>"""
    text = (
        f"Hi {name},\n\n"
        "We received a request to reset your password for your MentWel account.\n\n"
        f"Click the link below to reset your password:\n\n{reset_url}\n\n"
        f"This link will expire in {expires_minutes} minutes for your security.\n\n"
        "If you didn't request a password reset, please ignore this email.\n\n"
        f"{TEXT_FOOTER}"
    )
    return OutgoingMessage(
        to=to,
        subject="Reset Your Password - MentWel",
        html_body=_layout("Password Reset Request", content, BLUE),
        text_body=text,
    )


def welcome_message(to: str, first_name: Optional[str]) -> OutgoingMessage:
    name = _greeting_name(first_name)
    content = f"""<p>Hi {escape(name)},</p>
        <p>Your email has been verified successfully! We're excited to have you join our community.</p>
        <h3>What's Next?</h3>
        <p><strong>Find a Therapist</strong>: browse our network of qualified mental health professionals.</p>
        <p><strong>Book Sessions</strong>: schedule appointments at your convenience.</p>
        <p><strong>Secure Messaging</strong>: communicate safely with your therapist.</p>
        <p>Your privacy and security are our top priorities. All communications are encrypted and confidential.</p>"""
    text = (
        f"Hi {name},\n\n"
        "Your email has been verified successfully! We're excited to have you join our community.\n\n"
        "What's Next?\n\n"
        "Find a Therapist - Browse our network of qualified mental health professionals.\n"
        "Book Sessions - Schedule appointments at your convenience.\n"
        "Secure Messaging - Communicate safely with your therapist.\n\n"
        "Your privacy and security are our top priorities.\n\n"
        f"{TEXT_FOOTER}"
    )
    return OutgoingMessage(
        to=to,
        subject="Welcome to MentWel - Your Mental Health Journey Starts Here",
        html_body=_layout("Welcome to MentWel!", content, GREEN),
        text_body=text,
    )


def password_changed_message(to: str, first_name: Optional[str]) -> OutgoingMessage:
    name = _greeting_name(first_name)
    content = f"""<p>Hi {escape(name)},</p>
        <p>The password for your MentWel account was just changed and all active sessions were signed out.</p>
        <div class="warning">
          <strong>Security Notice:</strong> If you did not make this change, reset your password immediately and contact support.
        </div>"""
    text = (
        f"Hi {name},\n\n"
        "The password for your MentWel account was just changed and all active sessions were signed out.\n\n"
        "If you did not make this change, reset your password immediately and contact support.\n\n"
        f"{TEXT_FOOTER}"
    )
    return OutgoingMessage(
        to=to,
        subject="Your Password Was Changed - MentWel",
        html_body=_layout("Password Changed", content, BLUE),
        text_body=text,
    )
