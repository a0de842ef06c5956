"""
Deadline alert notifications over SMTP.

Sending is best-effort: every failure is returned as a NotificationResult and
logged, never raised, so a broken mail server cannot affect an analysis run.
"""

import asyncio
import html
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

import structlog

from contract_intel.config import Settings
from contract_intel.models.api import NotificationResult
from contract_intel.models.contract import ContractRecord, KeyDate

logger = structlog.get_logger(__name__)

RISK_COLORS = {
    "low": "#10b981",
    "medium": "#f59e0b",
    "high": "#ef4444",
    "critical": "#7f1d1d",
}


def _format_date(kd: KeyDate) -> str:
    return kd.date.strftime("%Y-%m-%d") if kd.date else "N/A"


class EmailNotifier:
    """Sends upcoming-deadline alerts for analyzed contracts."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.enabled = settings.email_enabled
        if not self.enabled:
            logger.info("email_disabled", reason="no credentials provided")

    def build_message(self, record: ContractRecord, deadlines: list[KeyDate]) -> EmailMessage:
        """Plain-text alert with an HTML alternative."""
        risk = record.risk_level.value if record.risk_level else "N/A"
        analyzed = (
            record.ai_analysis_date.strftime("%Y-%m-%d") if record.ai_analysis_date else "N/A"
        )

        deadline_lines = "\n".join(
            f"- {d.date_type}: {_format_date(d)} - {d.description or 'N/A'}"
            for d in deadlines
        )
        text = (
            f"Contract: {record.title}\n"
            f"Status: {record.status.value}\n"
            f"Risk Level: {risk}\n\n"
            f"Upcoming Deadlines (next {self.settings.deadline_window_days} days):\n"
            f"{deadline_lines}\n\n"
            "Please review and take appropriate action.\n\n"
            f"Contract ID: {record.id}\n"
            f"Analyzed: {analyzed}\n"
        )

        items = "".join(
            f"<li><strong>{html.escape(d.date_type)}:</strong> {_format_date(d)}<br>"
            f"<em>{html.escape(d.description or 'N/A')}</em></li>"
            for d in deadlines
        )
        body = f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #d97706;">Upcoming Contract Deadlines</h2>
  <div style="background: #f3f4f6; padding: 15px; border-radius: 5px; margin: 20px 0;">
    <h3 style="margin-top: 0;">{html.escape(record.title)}</h3>
    <p><strong>Status:</strong> {record.status.value}</p>
    <p><strong>Risk Level:</strong> <span style="color: {RISK_COLORS.get(risk, '#6b7280')}">{risk}</span></p>
  </div>
  <h3>Upcoming Deadlines (next {self.settings.deadline_window_days} days):</h3>
  <ul>{items}</ul>
  <p style="color: #6b7280; font-size: 12px;">
    Contract ID: {record.id}<br>
    Analyzed: {analyzed}
  </p>
</div>
"""

        message = EmailMessage()
        message["Subject"] = f"Upcoming Contract Deadlines - {record.title}"
        message["From"] = self.settings.email_from
        message["To"] = self.settings.email_to or self.settings.email_user
        message["Message-ID"] = make_msgid(domain="contract-intel")
        message.set_content(text)
        message.add_alternative(body, subtype="html")
        return message

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.email_host, self.settings.email_port, timeout=30) as smtp:
            smtp.starttls()
            smtp.login(self.settings.email_user, self.settings.email_password)
            smtp.send_message(message)

    async def notify(
        self, record: ContractRecord, deadlines: list[KeyDate]
    ) -> NotificationResult:
        if not self.enabled:
            logger.info("email_skipped", contract_id=record.id, reason="email not configured")
            return NotificationResult(ok=True, skipped=True)

        try:
            message = self.build_message(record, deadlines)
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_send_failed", contract_id=record.id, error=str(e))
            return NotificationResult(ok=False, error=str(e))

        logger.info(
            "deadline_alert_sent",
            contract_id=record.id,
            deadlines=len(deadlines),
        )
        return NotificationResult(ok=True, message_id=message["Message-ID"])
