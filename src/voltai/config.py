"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

ENV_PREFIX = "VOLTAI_"
DEFAULT_INDEX_NAME = "voltai_index.json"
DEFAULT_MODEL = "mistral"


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(env: Mapping[str, str], name: str) -> int | None:
    raw = env.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(slots=True)
class AppConfig:
    index_path: Path | None = None
    top_k: int = 3
    workers: int | None = None
    excerpt_chars: int = 300
    llm_command: str = "ollama"
    llm_model: str = DEFAULT_MODEL
    llm_timeout: float = 120.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.index_path is None:
            self.index_path = Path(DEFAULT_INDEX_NAME)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config with ``VOLTAI_*`` environment overrides applied."""
        env = os.environ if env is None else env
        index_path = env.get(f"{ENV_PREFIX}INDEX_PATH")
        # OLLAMA_MODEL is honoured for compatibility with existing setups
        model = env.get(f"{ENV_PREFIX}MODEL") or env.get("OLLAMA_MODEL") or DEFAULT_MODEL
        return cls(
            index_path=Path(index_path).expanduser() if index_path else None,
            workers=_env_int(env, f"{ENV_PREFIX}WORKERS"),
            llm_command=env.get(f"{ENV_PREFIX}LLM_COMMAND") or "ollama",
            llm_model=model,
            llm_timeout=_env_float(env, f"{ENV_PREFIX}LLM_TIMEOUT", 120.0),
            log_level=(env.get(f"{ENV_PREFIX}LOG_LEVEL") or "WARNING").upper(),
        )

    def resolve_index_path(self, base_dir: Path | None = None) -> Path:
        if self.index_path is None:
            self.index_path = Path(DEFAULT_INDEX_NAME)
        if Path(self.index_path).is_absolute() or base_dir is None:
            return Path(self.index_path)
        return base_dir / self.index_path
