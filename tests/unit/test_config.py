from mathdoc.config import GEMINI_OPENAI_BASE_URL, KROKI_BASE_URL, load_settings

_VARS = (
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "OPENAI_API_KEY",
    "MATHDOC_BASE_URL",
    "MATHDOC_MODEL_FAST",
    "MATHDOC_MODEL_PRO",
    "MATHDOC_CHAT_MODEL",
    "MATHDOC_KROKI_URL",
    "MATHDOC_BANK_DB",
    "MATHDOC_FETCH_WORKERS",
    "MATHDOC_LLM_TIMEOUT_S",
    "MATHDOC_LOCALE",
)


def _clear(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    s = load_settings()
    assert s.api_key is None
    assert s.base_url == GEMINI_OPENAI_BASE_URL
    assert s.kroki_url == KROKI_BASE_URL
    assert s.chat_model == s.model_pro
    assert s.fetch_workers == 8
    assert s.timeout_s is None
    assert s.locale == "vi"


def test_environment_overrides(monkeypatch, tmp_path):
    _clear(monkeypatch)
    monkeypatch.setenv("GOOGLE_API_KEY", '"AIza-test"')
    monkeypatch.setenv("MATHDOC_KROKI_URL", "http://localhost:8000/")
    monkeypatch.setenv("MATHDOC_BANK_DB", str(tmp_path / "b.sqlite3"))
    monkeypatch.setenv("MATHDOC_FETCH_WORKERS", "100")
    monkeypatch.setenv("MATHDOC_LLM_TIMEOUT_S", "30")
    monkeypatch.setenv("MATHDOC_LOCALE", "EN")
    s = load_settings()
    assert s.api_key == "AIza-test"
    assert s.kroki_url == "http://localhost:8000"
    assert s.bank_db_path == (tmp_path / "b.sqlite3").resolve()
    assert s.fetch_workers == 32
    assert s.timeout_s == 30.0
    assert s.locale == "en"


def test_bad_values_fall_back(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("MATHDOC_FETCH_WORKERS", "many")
    monkeypatch.setenv("MATHDOC_LOCALE", "fr")
    monkeypatch.setenv("MATHDOC_LLM_TIMEOUT_S", "30s")
    s = load_settings()
    assert s.fetch_workers == 8
    assert s.locale == "vi"
    assert s.timeout_s is None
