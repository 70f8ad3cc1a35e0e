"""Email the good-match digest (HTML-formatted) over SMTP."""
from __future__ import annotations

import re
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from matchflow.config import get_env
from matchflow.errors import NotifyError
from matchflow.log import get_logger
from matchflow.models import MatchResult
from matchflow.report import build_match_report
from matchflow.retry import retry

log = get_logger(__name__)

SMTP_TIMEOUT = 30


class Notifier(Protocol):
    def send(self, recipient: str, matches: list[MatchResult], threshold: int) -> None:
        ...


def _md_to_html(md: str) -> str:
    """Lightweight markdown-to-HTML for the digest email."""
    html_parts: list[str] = []
    for line in md.split("\n"):
        stripped = line.strip()
        if not stripped:
            html_parts.append("<br>")
        elif stripped.startswith("## "):
            html_parts.append(f'<h2 style="margin:18px 0 6px;color:#2c3e50;border-bottom:1px solid #ddd;padding-bottom:4px">{_inline(stripped[3:])}</h2>')
        elif stripped.startswith("# "):
            html_parts.append(f'<h1 style="margin:0 0 8px;color:#2c3e50">{_inline(stripped[2:])}</h1>')
        elif stripped.startswith("- "):
            html_parts.append(f'<div style="margin:2px 0 2px 16px">• {_inline(stripped[2:])}</div>')
        else:
            html_parts.append(f"<p style='margin:4px 0'>{_inline(stripped)}</p>")
    return "\n".join(html_parts)


def _inline(text: str) -> str:
    """Convert inline markdown (bold, links) to HTML."""
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r'<a href="\2" style="color:#1a73e8">\1</a>', text)
    return text


@dataclass
class SmtpSettings:
    host: str
    port: int
    user: str
    password: str
    from_addr: str

    @classmethod
    def from_env(cls) -> "SmtpSettings":
        user = get_env("SMTP_USER")
        try:
            port = int(get_env("SMTP_PORT", "587"))
        except ValueError:
            port = 587
        return cls(
            host=get_env("SMTP_HOST"),
            port=port,
            user=user,
            password=get_env("SMTP_PASSWORD"),
            from_addr=get_env("FROM_EMAIL", user) or user,
        )

    @property
    def configured(self) -> bool:
        return all([self.host, self.user, self.password])


# SMTPException subclasses OSError; only connection-level failures are retried
@retry(
    max_attempts=3,
    base_delay=3.0,
    retryable=(smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError, ConnectionError, TimeoutError),
)
def _smtp_send(settings: SmtpSettings, to_addr: str, msg: MIMEMultipart) -> None:
    with smtplib.SMTP(settings.host, settings.port, timeout=SMTP_TIMEOUT) as server:
        server.starttls()
        server.login(settings.user, settings.password)
        server.sendmail(settings.from_addr, [to_addr], msg.as_string())


class EmailNotifier:
    def __init__(self, settings: SmtpSettings | None = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> SmtpSettings:
        # env is re-read per send unless settings were injected
        return self._settings or SmtpSettings.from_env()

    def _deliver(self, to_addr: str, subject: str, body: str) -> None:
        settings = self.settings
        if not settings.configured:
            raise NotifyError("SMTP not configured (set SMTP_HOST, SMTP_USER, SMTP_PASSWORD in .env)")
        if not to_addr:
            raise NotifyError("No recipient email configured")

        html_body = f"""<div style="font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;max-width:900px;margin:0 auto;padding:16px;color:#333">
{_md_to_html(body)}
<hr style="border:none;border-top:1px solid #e0e0e0;margin:20px 0 8px">
<p style="font-size:11px;color:#999">Sent by matchflow</p>
</div>"""

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.from_addr
        msg["To"] = to_addr
        msg.attach(MIMEText(body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            _smtp_send(settings, to_addr, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotifyError(f"Email failed: {str(exc)[:150]}") from exc
        log.info("Email sent to %s", to_addr)

    def send(self, recipient: str, matches: list[MatchResult], threshold: int) -> None:
        date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        subject = f"{len(matches)} job match(es) ≥ {threshold}/10 – {date}"
        self._deliver(recipient, subject, build_match_report(matches, threshold))

    def send_test(self, recipient: str) -> None:
        sample = MatchResult(
            job_title="Test Job",
            company="Test Company",
            employment_type="Full-time",
            remote="Yes",
            salary="$100,000",
            qualifications="Test qualifications",
            apply_links=["https://example.com"],
            match_score=5,
            match_reason="This is a test email",
        )
        self._deliver(recipient, "matchflow test email", build_match_report([sample], 0))
