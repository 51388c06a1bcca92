"""Email service using SendGrid."""

import logging
from datetime import datetime

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from custozero.config import settings
from custozero.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional emails via SendGrid.

    Delivery is best effort: public senders log failures and return False,
    they never raise.
    """

    @staticmethod
    def _send_email(to_email: str, subject: str, html_content: str) -> None:
        """Send email via SendGrid.

        Raises:
            EmailDeliveryError: SendGrid rejected the message or was unreachable.
        """
        message = Mail(
            from_email=(settings.email_from_address, settings.email_from_name),
            to_emails=to_email,
            subject=subject,
            html_content=html_content,
        )

        try:
            sg = SendGridAPIClient(settings.sendgrid_api_key)
            response = sg.send(message)
        except Exception as e:
            raise EmailDeliveryError(f"SendGrid request failed for {to_email}") from e

        if response.status_code not in (200, 201, 202):
            raise EmailDeliveryError(
                f"SendGrid returned {response.status_code} for {to_email}"
            )
        logger.info(f"Email sent to {to_email}, status: {response.status_code}")

    @classmethod
    def send_welcome_email(
        cls, email: str, name: str, token: str, expires_at: datetime | None
    ) -> bool:
        """Send the access link after a confirmed payment. Returns True if sent."""
        if not settings.sendgrid_api_key:
            logger.warning("SendGrid API key not configured, skipping email send")
            return False

        diagnostic_url = f"{settings.app_url}/diagnostico?token={token}"
        if expires_at is None:
            validity = "<li>Seu acesso é <strong>vitalício</strong></li>"
        else:
            validity = (
                f"<li>O link expira em: <strong>{expires_at.strftime('%d/%m/%Y %H:%M')}"
                " (UTC)</strong></li>"
            )
        html = f"""
        <h2>Pagamento Confirmado!</h2>
        <p>Olá, <strong>{name}</strong>!</p>
        <p>Seu pagamento foi aprovado. Acesse seu diagnóstico financeiro personalizado:</p>
        <p><a href="{diagnostic_url}">Acessar Meu Diagnóstico</a></p>
        <ul>
            <li>Não compartilhe este link com outras pessoas</li>
            {validity}
        </ul>
        <p>Equipe CustoZero</p>
        """
        try:
            cls._send_email(email, "Seu diagnóstico financeiro está pronto!", html)
        except EmailDeliveryError:
            logger.exception(f"Failed to send welcome email to {email}")
            return False
        return True
