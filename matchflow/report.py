"""Build the markdown digest of good matches sent to the candidate."""
from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import urlparse

from matchflow.log import get_logger
from matchflow.models import MatchResult

log = get_logger(__name__)


def _short_url_label(url: str) -> str:
    host = (urlparse(url).hostname or "").replace("www.", "")
    parts = host.split(".")
    return parts[0].capitalize() if parts and parts[0] else "Apply"


def _score_badge(score: int) -> str:
    if score >= 9:
        return "\U0001f31f"
    if score >= 7:
        return "✅"
    return "\U0001f517"


def build_match_report(matches: list[MatchResult], threshold: int) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    ranked = sorted(matches, key=lambda r: -r.match_score)
    lines: list[str] = [f"# Job Matches — {date}", ""]
    lines.append(f"**{len(ranked)}** job(s) scored **{threshold}/10** or higher against your resume.")
    lines.append("")

    for r in ranked:
        lines.append(f"## {_score_badge(r.match_score)} {r.job_title} @ {r.company}")
        lines.append(f"- **Score:** {r.match_score}/10")
        if r.employment_type:
            lines.append(f"- **Type:** {r.employment_type}")
        if r.remote:
            lines.append(f"- **Remote:** {r.remote}")
        if r.salary:
            lines.append(f"- **Salary:** {r.salary}")
        if r.qualifications:
            lines.append(f"- **Qualifications:** {r.qualifications}")
        if r.match_reason:
            lines.append(f"- **Why:** {r.match_reason}")
        if r.apply_links:
            links = " | ".join(f"[{_short_url_label(u)}]({u})" for u in r.apply_links)
            lines.append(f"- **Apply:** {links}")
        lines.append("")

    log.debug("Built match report: %d jobs at threshold %d", len(ranked), threshold)
    return "\n".join(lines)
