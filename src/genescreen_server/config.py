"""Server settings, read once from the environment at startup.

Defaults target a local development setup: the PostgreSQL development
ledger, no FHE backend, and wide-open CORS.
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerSettings:
    # --- Screening backends ---
    # Contract the ciphertexts are bound to; empty means "ask the ledger"
    # (LedgerReader.get_address) during startup.
    contract_address: str = ""
    # ``module:attr`` factories, each called with this settings object.  The
    # ledger factory must return a LedgerReader + LedgerWriter, the FHE
    # factory an FheSdk.
    ledger_backend: str = "genescreen_db.ledger:build_ledger"
    fhe_backend: str | None = None
    auto_create_schema: bool = False

    # --- HTTP ---
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    # Shared with the wallet gateway that injects X-Account-Address.  When
    # set, requests must prove they came through it via X-Proxy-Secret.
    trusted_proxy_secret: str | None = None


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _csv(name: str, default: str) -> list[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


def load_settings() -> ServerSettings:
    """Build settings from ``SCREENING_*`` / ``SERVER_*`` environment variables."""
    defaults = ServerSettings()
    return ServerSettings(
        contract_address=os.getenv("SCREENING_CONTRACT_ADDRESS", defaults.contract_address),
        ledger_backend=os.getenv("SCREENING_LEDGER_BACKEND", defaults.ledger_backend),
        fhe_backend=os.getenv("SCREENING_FHE_BACKEND") or None,
        auto_create_schema=_flag("SCREENING_AUTO_CREATE_SCHEMA"),
        host=os.getenv("SERVER_HOST", defaults.host),
        port=int(os.getenv("SERVER_PORT", str(defaults.port))),
        cors_origins=_csv("SERVER_CORS_ORIGINS", "*"),
        log_level=os.getenv("SERVER_LOG_LEVEL", defaults.log_level).upper(),
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
    )
