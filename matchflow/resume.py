"""Store uploaded resumes and provide the latest one as scoring context.

Supports PDF (via pypdf or pdftotext), DOCX (via stdlib zipfile), and TXT.
On upload the extracted text is condensed by the LLM into a profile
summary; if that fails the raw text is used as-is.
"""
from __future__ import annotations

import re
import shutil
import subprocess
import zipfile
from pathlib import Path
from xml.etree import ElementTree

from matchflow import llm
from matchflow.config import RESUME_DIR
from matchflow.errors import ResumeMissing
from matchflow.log import get_logger
from matchflow.models import ResumeContext
from matchflow.retry import retry

log = get_logger(__name__)

SUPPORTED_SUFFIXES = (".pdf", ".docx", ".txt")
PARSED_SUFFIX = ".parsed.txt"

# ── Text extraction ──────────────────────────────────────────────────────


def extract_text(path: Path) -> str:
    """Return plain text from a PDF, DOCX, or TXT file."""
    suffix = path.suffix.lower()
    if suffix == ".txt":
        return path.read_text(encoding="utf-8", errors="ignore")
    if suffix == ".docx":
        return _extract_docx(path)
    if suffix == ".pdf":
        return _extract_pdf(path)
    raise ValueError(f"Unsupported resume format: {suffix}")


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction merges words together."""
    if not text or len(text) < 50:
        return text
    if text.count(" ") / len(text) > 0.08:
        return text
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([a-zA-Z])(\d)", r"\1 \2", fixed)
    fixed = re.sub(r"(\d)([a-zA-Z])", r"\1 \2", fixed)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(path: Path) -> str:
    # pdftotext keeps spacing better than pypdf
    if shutil.which("pdftotext"):
        result = subprocess.run(
            ["pdftotext", "-layout", str(path), "-"],
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout

    from pypdf import PdfReader

    reader = PdfReader(str(path))
    return "\n".join(_fix_spacing(page.extract_text() or "") for page in reader.pages)


def _extract_docx(path: Path) -> str:
    ns = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
    texts: list[str] = []
    with zipfile.ZipFile(path) as zf:
        with zf.open("word/document.xml") as f:
            tree = ElementTree.parse(f)
            for para in tree.iter(f"{ns}p"):
                parts = [node.text for node in para.iter(f"{ns}t") if node.text]
                if parts:
                    texts.append("".join(parts))
    return "\n".join(texts)


# ── LLM condensation ─────────────────────────────────────────────────────

_PARSE_PROMPT = """\
You will receive text extracted from a resume. Extract the important information:

- Full name and contact (phone, email, portfolio)
- Professional summary or objective
- Work experience (titles, companies, dates, key responsibilities and achievements)
- Languages
- Education (degree, institution, graduation year)
- Skills (technical skills by area, and soft skills)
- Certificates and awards
- Projects or other relevant information

Organize the output with descriptive headings and simple lists, for easy processing by
another AI. Avoid decorative formatting or escape characters.
"""


@retry(max_attempts=2, base_delay=2.0, retryable=(Exception,))
def _llm_condense(resume_text: str) -> str:
    client = llm.make_client(timeout=60)
    resp = client.chat.completions.create(
        model=llm.model_name(),
        messages=[
            {"role": "system", "content": _PARSE_PROMPT},
            {"role": "user", "content": resume_text[:12000]},
        ],
        temperature=0.1,
    )
    return (resp.choices[0].message.content or "").strip()


def condense_resume(raw_text: str) -> str:
    """LLM profile summary, or "" when no key is set or the call fails."""
    if not llm.api_key():
        log.debug("No MISTRAL_API_KEY — storing raw resume text only")
        return ""
    try:
        return _llm_condense(raw_text)
    except Exception as exc:
        log.warning("Resume parsing failed, falling back to raw text: %s", exc)
        return ""


# ── Provider ─────────────────────────────────────────────────────────────


class ResumeProvider:
    def __init__(self, resume_dir: Path = RESUME_DIR, condense=condense_resume) -> None:
        self.resume_dir = resume_dir
        self._condense = condense

    def _candidates(self) -> list[Path]:
        if not self.resume_dir.exists():
            return []
        return [
            p for p in self.resume_dir.iterdir()
            if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES and not p.name.endswith(PARSED_SUFFIX)
        ]

    def latest_path(self) -> Path | None:
        files = self._candidates()
        return max(files, key=lambda p: p.stat().st_mtime) if files else None

    def save_upload(self, filename: str, data: bytes) -> ResumeContext:
        name = Path(filename).name
        if Path(name).suffix.lower() not in SUPPORTED_SUFFIXES:
            raise ValueError(f"Unsupported resume format: {Path(name).suffix}")
        self.resume_dir.mkdir(parents=True, exist_ok=True)
        dest = self.resume_dir / name
        dest.write_bytes(data)
        raw = extract_text(dest)
        log.info("Resume saved → %s (%d chars extracted)", dest.name, len(raw))
        parsed = self._condense(raw)
        if parsed:
            dest.with_name(dest.name + PARSED_SUFFIX).write_text(parsed, encoding="utf-8")
        return ResumeContext(filename=dest.name, raw_text=raw, parsed_text=parsed)

    def get_latest(self) -> ResumeContext:
        path = self.latest_path()
        if path is None:
            raise ResumeMissing("No resume uploaded")
        raw = extract_text(path)
        sidecar = path.with_name(path.name + PARSED_SUFFIX)
        parsed = sidecar.read_text(encoding="utf-8") if sidecar.exists() else ""
        if not (raw.strip() or parsed.strip()):
            raise ResumeMissing(f"Resume {path.name} contains no extractable text")
        return ResumeContext(filename=path.name, raw_text=raw, parsed_text=parsed)
