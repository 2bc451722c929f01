"""Application settings shared by the CLIs and the storefront actions."""

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping

# Client-local storage keys
VARIANT_STORAGE_KEY = "brand_variant"
SESSION_STORAGE_KEY = "analytics_session_id"


@dataclass(frozen=True)
class AppConfig:
    db_path: str = "data/analytics.duckdb"
    log_level: str = "INFO"
    # Where the exported dashboard report is written
    report_path: str = "src/dashboard/data.json"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("BOOKSTORE_DB"):
            config = replace(config, db_path=env["BOOKSTORE_DB"])
        if env.get("BOOKSTORE_LOG_LEVEL"):
            config = replace(config, log_level=env["BOOKSTORE_LOG_LEVEL"].upper())
        return config


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
