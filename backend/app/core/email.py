import logging
from datetime import datetime

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from jinja2 import Template

from .config import settings


# Email configuration
email_config = ConnectionConfig(
    MAIL_USERNAME=settings.MAIL_USER,
    MAIL_PASSWORD=settings.MAIL_PASSWORD,
    MAIL_FROM=settings.MAIL_FROM or settings.MAIL_USER,
    MAIL_PORT=settings.MAIL_PORT,
    MAIL_SERVER=settings.MAIL_HOST,
    MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
    MAIL_STARTTLS=settings.MAIL_SECURE,
    MAIL_SSL_TLS=False,
    USE_CREDENTIALS=bool(settings.MAIL_USER),
    VALIDATE_CERTS=True,
    SUPPRESS_SEND=int(settings.MAIL_SUPPRESS_SEND),
)

fastmail = FastMail(email_config)

logger = logging.getLogger(__name__)


# Email templates
EMAIL_LAYOUT = """
<html>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background-color: #0b1410; padding: 30px; border-radius: 10px;">
        <h1 style="color: #4ade80; text-align: center; margin-bottom: 30px;">
            &lt;/&gt; Snippet Share
        </h1>

        <h2 style="color: #e5e7eb; margin-bottom: 20px;">
            {{ heading }}
        </h2>

        <p style="color: #d1d5db; font-size: 16px; line-height: 1.6;">
            Hi {{ name }},
        </p>

        <p style="color: #d1d5db; font-size: 16px; line-height: 1.6;">
            {{ intro }}
        </p>

        <div style="text-align: center; margin: 30px 0;">
            <a href="{{ action_url }}"
               style="background-color: #16a34a; color: white; padding: 15px 30px;
                      text-decoration: none; border-radius: 5px; font-weight: bold;
                      display: inline-block;">
                {{ action_label }}
            </a>
        </div>

        <p style="color: #9ca3af; font-size: 14px; line-height: 1.6;">
            If you can't click the button, copy and paste this link into your browser:<br>
            <a href="{{ action_url }}" style="color: #4ade80; word-break: break-all;">
                {{ action_url }}
            </a>
        </p>

        <p style="color: #9ca3af; font-size: 14px; line-height: 1.6; margin-top: 30px;">
            {{ footer_note }}
        </p>

        <hr style="border: none; border-top: 1px solid #1f2937; margin: 30px 0;">

        <p style="color: #6b7280; font-size: 12px; text-align: center;">
            © {{ current_year }} Snippet Share. All rights reserved.
        </p>
    </div>
</body>
</html>
"""


def _frontend_url(path: str, token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/{path}?token={token}"


def get_password_reset_email_template(name: str, reset_token: str) -> str:
    """Generate HTML email for a password reset."""
    template = Template(EMAIL_LAYOUT, autoescape=True)
    return template.render(
        heading="Reset Your Password",
        name=name,
        intro="We received a request to reset your password. Click the button below to choose a new one.",
        action_url=_frontend_url("reset-password", reset_token),
        action_label="Reset Password",
        footer_note=(
            f"This link will expire in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes and can be used once. "
            "If you didn't ask for a password reset, you can safely ignore this email."
        ),
        current_year=datetime.utcnow().year,
    )


def get_verification_email_template(name: str, verification_token: str) -> str:
    """Generate HTML email template for verification."""
    template = Template(EMAIL_LAYOUT, autoescape=True)
    return template.render(
        heading="Verify Your Email Address",
        name=name,
        intro="Welcome to Snippet Share! Please click the button below to verify your email address.",
        action_url=_frontend_url("verify-email", verification_token),
        action_label="Verify Email Address",
        footer_note=(
            f"This verification link will expire in {settings.VERIFICATION_TOKEN_EXPIRE_HOURS} hours. "
            "If you didn't create an account with Snippet Share, you can safely ignore this email."
        ),
        current_year=datetime.utcnow().year,
    )


async def _send(recipient: str, subject: str, body: str) -> bool:
    message = MessageSchema(
        subject=subject,
        recipients=[recipient],
        body=body,
        subtype=MessageType.html,
    )
    try:
        await fastmail.send_message(message)
    except Exception as e:
        # Runs as a background task; nobody is waiting on the result
        logger.error(f"Failed to send '{subject}' email: {e}")
        return False

    logger.info(f"Sent '{subject}' email")
    return True


async def send_password_reset_email(user_email: str, name: str, reset_token: str) -> bool:
    """Send the password reset link. The token only ever leaves through here."""
    html_template = get_password_reset_email_template(name, reset_token)
    return await _send(user_email, "Reset your Snippet Share password", html_template)


async def send_verification_email(user_email: str, name: str, verification_token: str) -> bool:
    """Send email verification email to user."""
    html_template = get_verification_email_template(name, verification_token)
    return await _send(user_email, "Verify your Snippet Share account", html_template)
