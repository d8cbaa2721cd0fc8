from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "ERMAY_DATA_DIR"
ENV_USER = "ERMAY_USER"
ENV_LOG_LEVEL = "ERMAY_LOG_LEVEL"

DEFAULT_USER_ID = "default"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    user_id: str = DEFAULT_USER_ID
    currency: str = "TRY"
    log_level: str = "INFO"

    @property
    def archive_dir(self) -> Path:
        return self.data_dir / "archive" / self.user_id


def _default_data_dir() -> Path:
    return Path.home() / ".ermay"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logging.getLogger(__name__).warning("Ignoring unreadable settings file %s", cfg)
            return {}
    return {}


def configure_logging(level: str | None = None) -> None:
    """Root logging setup; calling it again only adjusts the level."""
    lvl = (level or os.getenv(ENV_LOG_LEVEL, "INFO")).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=lvl, format=LOG_FORMAT)
    else:
        root.setLevel(lvl)


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    # The pointer lives in the default folder; that is where get_settings() looks for it.
    default_dir = _default_data_dir()
    default_dir.mkdir(parents=True, exist_ok=True)
    cfg = default_dir / CONFIG_FILE_NAME
    payload = {"data_dir": str(data_dir)}
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # Session state wins over everything else on the next get_settings()
    st.session_state["ermay_data_dir"] = str(data_dir)


def set_active_user(user_id: str) -> None:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValueError("Kullanıcı adı boş olamaz.")
    st.session_state["ermay_user_id"] = uid


def _resolve_user_id() -> str:
    if "ermay_user_id" in st.session_state:
        return str(st.session_state["ermay_user_id"])
    return os.getenv(ENV_USER, DEFAULT_USER_ID) or DEFAULT_USER_ID


def get_settings() -> Settings:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    if "ermay_data_dir" in st.session_state:
        data_dir = Path(st.session_state["ermay_data_dir"]).expanduser().resolve()
    elif os.getenv(ENV_DATA_DIR):
        data_dir = Path(os.getenv(ENV_DATA_DIR, "")).expanduser().resolve()
    else:
        default_dir = _default_data_dir()
        persisted = _load_persisted_settings(default_dir)
        data_dir = Path(persisted.get("data_dir", default_dir)).expanduser().resolve()

    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "ermay.db"
    log_level = os.getenv(ENV_LOG_LEVEL, "INFO").upper()
    configure_logging(log_level)
    return Settings(data_dir=data_dir, db_path=db_path, user_id=_resolve_user_id(), log_level=log_level)
