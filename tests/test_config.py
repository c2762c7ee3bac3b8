"""Tests for environment-driven configuration."""

from genescreen.config import CoordinatorTimeouts, load_timeouts
from genescreen_server.config import ServerSettings, load_settings


class TestTimeouts:

    def test_default_is_no_timeout(self, monkeypatch):
        for name in ("TIMEOUT_ENCRYPT", "TIMEOUT_SUBMIT", "TIMEOUT_CONFIRMATION", "TIMEOUT_PROOF"):
            monkeypatch.delenv(name, raising=False)
        assert load_timeouts() == CoordinatorTimeouts()

    def test_reads_seconds_and_ignores_non_positive(self, monkeypatch):
        monkeypatch.setenv("TIMEOUT_ENCRYPT", "30")
        monkeypatch.setenv("TIMEOUT_PROOF", "0")
        monkeypatch.setenv("TIMEOUT_CONFIRMATION", "-5")
        monkeypatch.delenv("TIMEOUT_SUBMIT", raising=False)
        timeouts = load_timeouts()
        assert timeouts.encrypt == 30.0
        assert timeouts.proof is None
        assert timeouts.confirmation is None
        assert timeouts.submit is None


class TestServerSettings:

    def test_defaults(self, monkeypatch):
        for name in ("SCREENING_CONTRACT_ADDRESS", "SCREENING_LEDGER_BACKEND",
                     "SCREENING_FHE_BACKEND", "SCREENING_AUTO_CREATE_SCHEMA",
                     "SERVER_HOST", "SERVER_PORT", "SERVER_CORS_ORIGINS",
                     "SERVER_LOG_LEVEL", "TRUSTED_PROXY_SECRET"):
            monkeypatch.delenv(name, raising=False)
        assert load_settings() == ServerSettings()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCREENING_CONTRACT_ADDRESS", "0xabc")
        monkeypatch.setenv("SCREENING_FHE_BACKEND", "relayer_sdk:build")
        monkeypatch.setenv("SCREENING_AUTO_CREATE_SCHEMA", "yes")
        monkeypatch.setenv("SERVER_PORT", "9000")
        monkeypatch.setenv("SERVER_CORS_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("SERVER_LOG_LEVEL", "debug")
        settings = load_settings()
        assert settings.contract_address == "0xabc"
        assert settings.fhe_backend == "relayer_sdk:build"
        assert settings.auto_create_schema is True
        assert settings.port == 9000
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"
