from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
KROKI_BASE_URL = "https://kroki.io"


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    base_url: str
    model_fast: str
    model_pro: str
    chat_model: str
    kroki_url: str
    bank_db_path: Path
    fetch_workers: int
    timeout_s: float | None
    locale: str


def _strip_quotes(value: str) -> str:
    # Users often set env vars with quotes (e.g. cmd.exe: set GEMINI_API_KEY="AIza...").
    if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
        return value[1:-1].strip()
    return value


def load_settings() -> Settings:
    api_key = (
        os.environ.get("GEMINI_API_KEY")
        or os.environ.get("GOOGLE_API_KEY")
        or os.environ.get("OPENAI_API_KEY")
        or ""
    ).strip()
    api_key = _strip_quotes(api_key) or None

    base_url = (os.environ.get("MATHDOC_BASE_URL") or GEMINI_OPENAI_BASE_URL).strip().rstrip("/")
    model_fast = (os.environ.get("MATHDOC_MODEL_FAST") or "gemini-3-flash-preview").strip()
    model_pro = (os.environ.get("MATHDOC_MODEL_PRO") or "gemini-3-pro-preview").strip()
    chat_model = (os.environ.get("MATHDOC_CHAT_MODEL") or model_pro).strip()
    kroki_url = (os.environ.get("MATHDOC_KROKI_URL") or KROKI_BASE_URL).strip().rstrip("/")

    here = Path(__file__).resolve().parent.parent
    bank_db_path = Path(os.environ.get("MATHDOC_BANK_DB", str(here / "bank.sqlite3"))).expanduser().resolve()

    try:
        fetch_workers = int(os.environ.get("MATHDOC_FETCH_WORKERS", "8"))
    except ValueError:
        fetch_workers = 8
    fetch_workers = max(1, min(32, fetch_workers))

    # No timeout unless asked for: the OpenAI client default applies.
    raw_timeout = (os.environ.get("MATHDOC_LLM_TIMEOUT_S") or "").strip()
    try:
        timeout_s = float(raw_timeout) if raw_timeout else None
    except ValueError:
        timeout_s = None
    if timeout_s is not None and timeout_s <= 0:
        timeout_s = None

    locale = (os.environ.get("MATHDOC_LOCALE") or "vi").strip().lower()
    if locale not in ("vi", "en"):
        locale = "vi"

    return Settings(
        api_key=api_key,
        base_url=base_url,
        model_fast=model_fast,
        model_pro=model_pro,
        chat_model=chat_model,
        kroki_url=kroki_url,
        bank_db_path=bank_db_path,
        fetch_workers=fetch_workers,
        timeout_s=timeout_s,
        locale=locale,
    )
