"""
CooperLoc - Email Service
Envio de emails de recuperação de senha e aviso de aprovação de cadastro
"""
import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging

from .config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Serviço de envio de emails via SMTP"""

    def __init__(self):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME
        self.use_tls = settings.SMTP_TLS
        self.use_ssl = settings.SMTP_SSL

    def is_configured(self) -> bool:
        """Verifica se o serviço de email está configurado"""
        return bool(self.user and self.password)

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Envia um email

        Returns:
            True se enviado com sucesso, False caso contrário
        """
        if not self.is_configured():
            logger.warning("Email service not configured. Skipping email send.")
            return False

        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email

            if text_content:
                message.attach(MIMEText(text_content, "plain", "utf-8"))
            message.attach(MIMEText(html_content, "html", "utf-8"))

            if self.use_ssl:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(self.host, self.port, context=context) as server:
                    server.login(self.user, self.password)
                    server.sendmail(self.from_email, to_email, message.as_string())
            else:
                with smtplib.SMTP(self.host, self.port) as server:
                    if self.use_tls:
                        server.starttls()
                    server.login(self.user, self.password)
                    server.sendmail(self.from_email, to_email, message.as_string())

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    def send_password_reset_email(self, to_email: str, name: Optional[str], token: str) -> bool:
        """Envia link de redefinição de senha"""
        link = f"{settings.RESET_PASSWORD_URL}?token={token}"
        greeting = f"Olá, {name.split(' ')[0]}!" if name else "Olá!"
        minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES

        subject = "CooperLoc - Redefinição de senha"
        html_content = f"""
<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: 'Segoe UI', Tahoma, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #6B73FF;">{greeting}</h2>
    <p>Recebemos uma solicitação para redefinir a senha da sua conta CooperLoc.</p>
    <p><a href="{link}" style="background: #6B73FF; color: white; padding: 12px 24px;
        border-radius: 6px; text-decoration: none;">Redefinir senha</a></p>
    <p>O link expira em {minutes} minutos. Se você não fez esta solicitação, ignore este email.</p>
</body>
</html>
"""
        text_content = (
            f"{greeting}\n\n"
            f"Para redefinir sua senha acesse: {link}\n"
            f"O link expira em {minutes} minutos."
        )
        return self.send_email(to_email, subject, html_content, text_content)

    def send_account_status_email(self, to_email: str, name: Optional[str], status: str) -> bool:
        """Avisa o usuário quando o admin aprova ou bloqueia o cadastro"""
        messages = {
            "active": "Seu cadastro foi aprovado. Você já pode acessar o sistema.",
            "blocked": "Seu acesso foi bloqueado. Entre em contato com a matriz.",
            "inactive": "Sua conta foi desativada.",
        }
        body = messages.get(status)
        if not body:
            return False

        greeting = f"Olá, {name.split(' ')[0]}!" if name else "Olá!"
        subject = "CooperLoc - Atualização do seu cadastro"
        html_content = f"""
<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"></head>
<body style="font-family: 'Segoe UI', Tahoma, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #6B73FF;">{greeting}</h2>
    <p>{body}</p>
    <p><a href="{settings.APP_URL}/login">{settings.APP_URL}/login</a></p>
</body>
</html>
"""
        return self.send_email(to_email, subject, html_content, f"{greeting}\n\n{body}")


# Instância global
email_service = EmailService()
