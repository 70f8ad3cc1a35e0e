"""Streamlit UI for matchflow: settings, resume, runs, results and history."""
from __future__ import annotations

import sys
import time
from pathlib import Path

import streamlit as st

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from matchflow.config import get_env
from matchflow.errors import ConfigError, ConfigMissing, NotifyError
from matchflow.log import get_logger
from matchflow.service import MatchService, build_service

log = get_logger(__name__)

POLL_SECONDS = 1.0


@st.cache_resource
def _service() -> MatchService:
    # One orchestrator per process so progress and the run lock are shared
    service = build_service()
    service.start()
    return service


def _check(label: str, ok: bool) -> str:
    icon = "✅" if ok else "⬜"
    return f"{icon}  {label}"


def _current_settings(service: MatchService):
    try:
        return service.config.current()
    except (ConfigMissing, ConfigError):
        return None


# ── Page: Settings ───────────────────────────────────────────────────────


def page_settings() -> None:
    service = _service()
    st.header("Settings")
    cfg = _current_settings(service)

    with st.form("settings"):
        email = st.text_input("Notification email", value=cfg.email if cfg else "")
        job_query = st.text_input("Job search query", value=cfg.job_query if cfg else "Software Engineer")
        c1, c2, c3 = st.columns(3)
        with c1:
            salary = st.number_input("Minimum salary ($/yr)", 0, 1_000_000, cfg.expected_salary if cfg else 100000, step=5000)
        with c2:
            threshold = st.slider("Match threshold", 0, 10, cfg.match_threshold if cfg else 7)
        with c3:
            job_limit = st.number_input("Jobs to analyze", 1, 500, cfg.job_limit if cfg else 30)
        auto_run = st.checkbox("Run automatically every hour", value=cfg.auto_run if cfg else False)
        saved = st.form_submit_button("Save Settings", type="primary", use_container_width=True)

    if saved:
        try:
            new_cfg = service.update_settings({
                "email": email,
                "job_query": job_query,
                "expected_salary": int(salary),
                "match_threshold": int(threshold),
                "job_limit": int(job_limit),
                "auto_run": auto_run,
            })
            st.success("Settings saved." + (" Hourly runs enabled." if new_cfg.auto_run else ""))
        except ConfigError as exc:
            st.error(str(exc))

    st.divider()
    st.subheader("Test Email")
    if st.button("Send test email", disabled=cfg is None or not cfg.email):
        try:
            service.orchestrator.notifier.send_test(cfg.email)
            st.success(f"Test email sent to {cfg.email}!")
        except NotifyError as exc:
            st.error(str(exc))


# ── Page: Resume ─────────────────────────────────────────────────────────


def page_resume() -> None:
    service = _service()
    st.header("Resume")
    uploaded = st.file_uploader("Upload your resume", type=["pdf", "docx", "txt"])
    if uploaded is not None and st.button("Save Resume", type="primary"):
        with st.spinner("Extracting and analyzing your resume…"):
            try:
                ctx = service.resumes.save_upload(uploaded.name, uploaded.getvalue())
                st.success(f"Saved `{ctx.filename}`")
            except (ValueError, RuntimeError, OSError) as exc:
                st.error(f"Upload failed: {exc}")

    latest = service.resumes.latest_path()
    if latest is None:
        st.info("No resume uploaded yet.")
        return
    st.info(f"Current resume: **{latest.name}**")
    try:
        ctx = service.resumes.get_latest()
    except Exception as exc:
        st.error(f"Could not read resume: {exc}")
        return
    with st.expander("Profile used for matching", expanded=False):
        st.text(ctx.text[:3000])


# ── Page: Dashboard ──────────────────────────────────────────────────────


def page_dashboard() -> None:
    service = _service()
    st.header("Dashboard")

    cfg = _current_settings(service)
    c1, c2, c3 = st.columns(3)
    c1.metric("Settings", "Ready" if cfg else "Missing")
    c2.metric("Resume", "Ready" if service.resumes.latest_path() else "Missing")
    c3.metric("Auto-run", "On" if service.scheduler.armed else "Off")

    st.divider()
    progress = service.progress()
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Run Now", type="primary", use_container_width=True, disabled=progress.running):
            if not service.run_in_background():
                st.warning("A workflow is already running.")
            time.sleep(0.2)
            st.rerun()
    with c2:
        if st.button("Cancel", use_container_width=True, disabled=not progress.running):
            service.cancel()
            st.rerun()

    progress = service.progress()
    if progress.running:
        frac = progress.current / progress.total if progress.total else 0.0
        st.progress(min(frac, 1.0), text=f"{progress.status} ({progress.current}/{progress.total})")
        time.sleep(POLL_SECONDS)
        st.rerun()
    elif progress.status:
        st.caption(f"Last status: {progress.status}")

    if service.last_error:
        st.error(service.last_error)
    outcome = service.last_outcome
    if outcome and not outcome.cancelled:
        c1, c2, c3 = st.columns(3)
        c1.metric("Jobs Found", outcome.jobs_found)
        c2.metric("Matched", outcome.jobs_matched)
        c3.metric("Email", "Sent" if outcome.email_sent else "Not sent")
        st.info(outcome.message)


# ── Page: Results ────────────────────────────────────────────────────────


def page_results() -> None:
    service = _service()
    st.header("Results")
    results = service.store.get_results(limit=50)
    if not results:
        st.info("No results yet. Run the workflow from the **Dashboard**.")
        return
    for r in results:
        label = f"{r.match_score}/10 — {r.job_title} @ {r.company}"
        if r.kind.value == "degraded":
            label += "  (not analyzed)"
        with st.expander(label):
            st.markdown(f"**Type:** {r.employment_type} | **Remote:** {r.remote} | **Salary:** {r.salary}")
            if r.responsibilities:
                st.markdown(f"**Responsibilities:** {r.responsibilities}")
            if r.qualifications:
                st.markdown(f"**Qualifications:** {r.qualifications}")
            if r.benefits:
                st.markdown(f"**Benefits:** {r.benefits}")
            st.markdown(f"**Why:** {r.match_reason}")
            for url in r.apply_links:
                st.markdown(f"- [Apply]({url})")


# ── Page: History ────────────────────────────────────────────────────────


def page_history() -> None:
    service = _service()
    st.header("Run History")
    records = service.store.get_history(limit=10)
    if not records:
        st.info("No runs recorded yet.")
        return
    st.dataframe(
        [
            {
                "When (UTC)": rec.timestamp,
                "Status": rec.status,
                "Found": rec.jobs_found,
                "Matched": rec.jobs_matched,
                "Email": "✅" if rec.email_sent else "",
                "Error": rec.error_message,
            }
            for rec in records
        ],
        use_container_width=True,
        hide_index=True,
    )


# ── Main ─────────────────────────────────────────────────────────────────


def _sidebar_status() -> None:
    service = _service()
    with st.sidebar:
        st.divider()
        st.markdown("**Status**")
        st.markdown(_check("Mistral API key", bool(get_env("MISTRAL_API_KEY"))))
        st.markdown(_check("JSearch API key", bool(get_env("JSEARCH_API_KEY"))))
        st.markdown(_check("SMTP configured", bool(get_env("SMTP_HOST") and get_env("SMTP_USER"))))
        st.markdown(_check("Settings saved", service.config.exists()))
        st.markdown(_check("Resume uploaded", service.resumes.latest_path() is not None))


def _wrap(page):
    def _run() -> None:
        _sidebar_status()
        page()

    _run.__name__ = page.__name__
    return _run


pages = [
    st.Page(_wrap(page_dashboard), title="Dashboard", icon="🚀", url_path="dashboard", default=True),
    st.Page(_wrap(page_settings), title="Settings", icon="⚙️", url_path="settings"),
    st.Page(_wrap(page_resume), title="Resume", icon="📄", url_path="resume"),
    st.Page(_wrap(page_results), title="Results", icon="📋", url_path="results"),
    st.Page(_wrap(page_history), title="History", icon="🕑", url_path="history"),
]

nav = st.navigation(pages)
nav.run()
