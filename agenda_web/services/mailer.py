import html
import logging
import smtplib
import ssl
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from agenda_web.core import config

logger = logging.getLogger(__name__)


# ------------------------
# Helpers
# ------------------------
def format_day(date_string: str) -> str:
    """'2025-01-22' (ou ISO completo) -> '22/01/2025'."""
    try:
        return date.fromisoformat(date_string[:10]).strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return date_string or ""


def _abrir_conexao() -> smtplib.SMTP:
    context = ssl.create_default_context()
    server = smtplib.SMTP_SSL(config.MAIL_HOST, config.MAIL_PORT, timeout=20, context=context)
    server.login(config.MAIL_USER, config.MAIL_PASS)
    return server


def _send(to: str, subject: str, body: str, sender_name: str = "Scheduling App") -> bool:
    """Envia sem propagar erro: falha de SMTP só é registrada no log."""
    if not config.MAIL_USER or not to:
        logger.info("SMTP não configurado ou destinatário vazio; e-mail '%s' ignorado", subject)
        return False

    msg = MIMEMultipart("alternative")
    msg["From"] = f'"{sender_name}" <{config.MAIL_USER}>'
    msg["To"] = to
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "html", "utf-8"))

    try:
        server = _abrir_conexao()
        try:
            server.sendmail(config.MAIL_USER, [to], msg.as_string())
        finally:
            server.quit()
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Erro ao enviar email para %s: %s", to, e)
        return False

    logger.info("E-mail '%s' enviado para %s", subject, to)
    return True


# ------------------------
# Mensagens
# ------------------------
def send_scheduling_confirmation(user_email: str, user_name: str, date_string: str, time: str) -> bool:
    user_name, time = html.escape(user_name), html.escape(time)
    body = f"""
        <div style="font-family: sans-serif; color: #333;">
            <h1>Olá, {user_name}!</h1>
            <p>Seu agendamento foi confirmado com sucesso.</p>
            <p><strong>Data:</strong> {format_day(date_string)}</p>
            <p><strong>Horário:</strong> {time}</p>
            <p>Te aguardamos!</p>
        </div>
    """
    return _send(user_email, "🔔 Confirmação de Agendamento", body)


def send_scheduling_cancellation(
    user_email: str, user_name: str, date_string: str, time: str, is_admin: bool
) -> bool:
    # o usuário que cancela o próprio agendamento não recebe aviso
    if not is_admin:
        return False

    user_name, time = html.escape(user_name), html.escape(time)
    body = f"""
        <div style="font-family: sans-serif; color: #333;">
            <h1>Olá, {user_name}!</h1>
            <p>Seu agendamento foi cancelado por um administrador.</p>
            <p><strong>Data:</strong> {format_day(date_string)}</p>
            <p><strong>Horário:</strong> {time}</p>
        </div>
    """
    return _send(user_email, "❌ Cancelamento de Agendamento", body)


def notify_admin_new_schedule(
    admin_email: str, user_name: str, user_email: str, date_string: str, time: str
) -> bool:
    subject = f"🔔 Novo Agendamento: {user_name}"
    user_name, user_email, time = html.escape(user_name), html.escape(user_email), html.escape(time)
    body = f"""
        <div style="font-family: sans-serif; color: #333; border: 1px solid #ddd; padding: 20px; border-radius: 8px;">
            <h2 style="color: #000;">Novo Agendamento Realizado</h2>
            <p>Um usuário acabou de realizar um agendamento no sistema.</p>
            <hr style="border: 0; border-top: 1px solid #eee; margin: 20px 0;" />
            <p><strong>Usuário:</strong> {user_name} ({user_email})</p>
            <p><strong>Data:</strong> {format_day(date_string)}</p>
            <p><strong>Horário:</strong> {time}</p>
        </div>
    """
    return _send(admin_email, subject, body, sender_name="Sistema de Agendamento")
