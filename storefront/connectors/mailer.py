"""
SMTP Mailer
Transactional emails: account, password reset and order lifecycle
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from html import escape

from storefront.core.config import settings

logger = logging.getLogger(__name__)


def _money(value) -> str:
    return f"${float(value):,.2f}"


class Mailer:
    """
    Sends plain-text + HTML emails over SMTP

    Without SMTP_HOST messages are logged and skipped. SMTP failures
    propagate to the caller.
    """

    def __init__(
        self,
        host: str = None,
        port: int = None,
        user: str = None,
        password: str = None,
        use_tls: bool = None,
    ):
        self.host = host if host is not None else settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user if user is not None else settings.SMTP_USER
        self.password = password if password is not None else settings.SMTP_PASS
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls

    def send(self, to: str, subject: str, text: str, html: str = None) -> bool:
        """
        Send one message

        Returns:
            True if sent, False if SMTP is not configured
        """
        if not self.host:
            logger.info(f"SMTP not configured, skipping email '{subject}' to {to}")
            return False

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = formataddr((settings.EMAIL_FROM_NAME, settings.EMAIL_FROM_ADDRESS))
        message["To"] = to
        message.attach(MIMEText(text, "plain", "utf-8"))
        if html:
            message.attach(MIMEText(html, "html", "utf-8"))

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.sendmail(settings.EMAIL_FROM_ADDRESS, [to], message.as_string())

        logger.info(f"Email '{subject}' sent to {to}")
        return True

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def send_email_verification(self, user, token: str) -> bool:
        link = f"{settings.CLIENT_URL}/verify-email?token={token}"
        return self.send(
            user.email,
            "Verify your email",
            f"Hi {user.name},\n\nConfirm your email address by opening:\n{link}\n",
            f'<p>Hi {escape(user.name)},</p><p><a href="{escape(link)}">Confirm your email address</a></p>',
        )

    def send_password_reset(self, user, token: str) -> bool:
        link = f"{settings.CLIENT_URL}/reset-password?token={token}"
        minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES
        return self.send(
            user.email,
            "Password reset request",
            f"Hi {user.name},\n\nReset your password here (valid for {minutes} minutes):\n{link}\n\n"
            "If you did not request this, ignore this email.\n",
            f'<p>Hi {escape(user.name)},</p><p><a href="{escape(link)}">Reset your password</a> '
            f"(valid for {minutes} minutes).</p>",
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def send_order_confirmation(self, order) -> bool:
        lines = "\n".join(
            f"  {item.quantity} x {item.name} @ {_money(item.price)} = {_money(item.total)}"
            for item in order.items
        )
        text = (
            f"Thank you for your order {order.order_number}!\n\n{lines}\n\n"
            f"Subtotal: {_money(order.subtotal)}\n"
            f"Discount: -{_money(order.discount_amount)}\n"
            f"Shipping: {_money(order.shipping_cost)}\n"
            f"Tax: {_money(order.tax_amount)}\n"
            f"Total: {_money(order.total)}\n"
        )
        return self.send(order.user.email, f"Order Confirmation - {order.order_number}", text)

    def send_order_status_update(self, order) -> bool:
        text = f"Your order {order.order_number} is now {order.status}.\n"
        return self.send(order.user.email, f"Order {order.order_number} - {order.status.title()}", text)

    def send_order_shipped(self, order) -> bool:
        text = (
            f"Your order {order.order_number} has shipped.\n\n"
            f"Carrier: {order.tracking_carrier}\n"
            f"Tracking number: {order.tracking_number}\n"
        )
        if order.tracking_url:
            text += f"Track it: {order.tracking_url}\n"
        return self.send(order.user.email, f"Order {order.order_number} has shipped", text)

    def send_order_cancelled(self, order) -> bool:
        text = f"Your order {order.order_number} has been cancelled.\n"
        return self.send(order.user.email, f"Order {order.order_number} cancelled", text)

    def send_refund_processed(self, order, refund) -> bool:
        text = (
            f"A refund of {_money(refund.amount)} for order {order.order_number} has been processed.\n\n"
            f"Reason: {refund.reason}\n"
        )
        return self.send(order.user.email, f"Refund for order {order.order_number}", text)


def get_mailer() -> Mailer:
    """FastAPI dependency; overridden in tests"""
    return Mailer()
