"""Transactional email delivery over SMTP."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Optional
from urllib.parse import urlencode

from errors import EmailDeliveryError

FROM_NAME = "Desbrava Provas"

_LAYOUT = """<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>{title} - Desbrava Provas</title></head>
<body style="font-family: Arial, sans-serif; background-color: #f4f4f4; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px;">
    <div style="background-color: {color}; padding: 32px; text-align: center;">
      <h1 style="margin: 0; color: #ffffff;">{heading}</h1>
    </div>
    <div style="padding: 32px; color: #4b5563; line-height: 1.6;">
      <h2 style="color: #1f2937;">Olá, {name}!</h2>
      {body}
      <p style="text-align: center;">
        <a href="{url}" style="display: inline-block; padding: 14px 28px; background-color: {color};
           color: #ffffff; text-decoration: none; border-radius: 6px;">{action}</a>
      </p>
      <p style="font-size: 12px;">Caso o botão não funcione, copie e cole o link: {url}</p>
    </div>
  </div>
</body>
</html>
"""


def redact_email(email: str) -> str:
    """Redact an email address for logging."""

    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class EmailService:
    """Send the verification, welcome and password recovery messages.

    Delivery modes:
    - ``suppress_send``: messages are appended to ``outbox`` (tests)
    - no SMTP host configured: messages are only logged (development)
    - otherwise: SMTP with optional STARTTLS
    """

    def __init__(
        self,
        *,
        app_url: str,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        use_tls: bool = True,
        from_email: Optional[str] = None,
        suppress_send: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.app_url = app_url.rstrip("/")
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.use_tls = use_tls
        self.from_email = from_email or smtp_user
        self.suppress_send = suppress_send
        self.logger = logger or logging.getLogger(__name__)
        self.outbox: list[EmailMessage] = []

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "EmailService":
        return cls(
            app_url=config.get("APP_URL", "http://localhost:5173"),
            smtp_host=config.get("MAIL_HOST"),
            smtp_port=int(config.get("MAIL_PORT", 587)),
            smtp_user=config.get("MAIL_USER"),
            smtp_password=config.get("MAIL_PASS"),
            use_tls=config.get("MAIL_USE_TLS", True),
            from_email=config.get("MAIL_FROM"),
            suppress_send=config.get("MAIL_SUPPRESS_SEND", False),
            logger=logger,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def frontend_link(self, path: str, **params: str) -> str:
        url = f"{self.app_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    def send_verification(self, to_email: str, name: str, token: str) -> None:
        url = self.frontend_link("/auth/verificar-email", token=token)
        self._send(
            to_email,
            subject="Verifique seu email - Desbrava Provas",
            text=(
                f"Olá, {name}!\n\nPara começar a usar sua conta no Desbrava Provas, "
                f"confirme seu email acessando:\n{url}\n\n"
                "Se você não criou uma conta, ignore este email."
            ),
            html=_LAYOUT.format(
                title="Verificação de Email",
                heading="Desbrava Provas",
                color="#2563eb",
                name=escape(name),
                body="<p>Bem-vindo ao <strong>Desbrava Provas</strong>! "
                "Confirme seu endereço de email para começar.</p>",
                url=url,
                action="Verificar Email",
            ),
        )

    def send_welcome(self, to_email: str, name: str) -> None:
        url = self.app_url
        self._send(
            to_email,
            subject="Boas-vindas ao Desbrava Provas!",
            text=(
                f"Olá, {name}!\n\nSeu email foi verificado com sucesso. "
                f"Acesse a plataforma em {url}"
            ),
            html=_LAYOUT.format(
                title="Boas-vindas",
                heading="Bem-vindo!",
                color="#10b981",
                name=escape(name),
                body="<p>Seu email foi verificado com sucesso! Agora você tem acesso "
                "completo à plataforma.</p>",
                url=url,
                action="Acessar Plataforma",
            ),
        )

    def send_password_recovery(self, to_email: str, name: str, token: str) -> None:
        url = self.frontend_link("/auth/redefinir-senha", token=token)
        self._send(
            to_email,
            subject="Recuperação de Senha - Desbrava Provas",
            text=(
                f"Olá, {name}!\n\nRecebemos uma solicitação para redefinir sua senha. "
                f"O link abaixo é válido por 1 hora:\n{url}\n\n"
                "Se você não pediu esta alteração, ignore este email."
            ),
            html=_LAYOUT.format(
                title="Recuperação de Senha",
                heading="Recuperação de Senha",
                color="#dc2626",
                name=escape(name),
                body="<p>Clique no botão abaixo para criar uma nova senha. "
                "Este link é válido por <strong>1 hora</strong>.</p>",
                url=url,
                action="Redefinir Senha",
            ),
        )

    def _build_message(self, to_email: str, subject: str, text: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = formataddr((FROM_NAME, self.from_email or ""))
        message["To"] = to_email
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def _send(self, to_email: str, *, subject: str, text: str, html: str) -> None:
        message = self._build_message(to_email, subject, text, html)

        if self.suppress_send:
            self.outbox.append(message)
            return

        if not self.is_configured:
            self.logger.info(
                "Email not sent (SMTP not configured): to=%s subject=%s",
                redact_email(to_email),
                subject,
            )
            return

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.smtp_user and self.smtp_password:
                    smtp.login(self.smtp_user, self.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            self.logger.error(
                "Failed to send email to %s: %s", redact_email(to_email), exc
            )
            raise EmailDeliveryError(str(exc)) from exc

        self.logger.info("Email '%s' sent to %s", subject, redact_email(to_email))
