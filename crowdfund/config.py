"""
crowdfund.config — runtime limits, chain identity and CLI defaults.

This module centralizes configuration for the local contract runtime and the
`crowdfund` CLI. It has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (CROWDFUND_*)
  2) Hardcoded safe defaults below

Key env vars:
  - CROWDFUND_CHAIN_ID                  (int)    default: 1337
  - CROWDFUND_MAX_CALL_DEPTH            (int)    default: 64
  - CROWDFUND_MAX_STORAGE_KEY_BYTES     (int)    default: 128
  - CROWDFUND_MAX_STORAGE_VALUE_BYTES   (int)    default: 65_536
  - CROWDFUND_GENESIS_TIMESTAMP         (int)    default: 1_700_000_000
  - CROWDFUND_STATE_PATH                (path)   default: .crowdfund/state.json
  - CROWDFUND_LOG_LEVEL                 (str)    default: WARNING

Usage:
    from crowdfund.config import load_config
    CFG = load_config()
    if depth > CFG.max_call_depth: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_path(name: str, default: str) -> Path:
    raw = os.getenv(name) or default
    return Path(raw).expanduser()


def _env_level(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip().upper()
    return raw if raw in _LOG_LEVELS else default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class RuntimeConfig:
    chain_id: int
    max_call_depth: int
    max_storage_key_bytes: int
    max_storage_value_bytes: int
    genesis_timestamp: int
    state_path: Path
    log_level: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "chain_id": self.chain_id,
            "max_call_depth": self.max_call_depth,
            "max_storage_key_bytes": self.max_storage_key_bytes,
            "max_storage_value_bytes": self.max_storage_value_bytes,
            "genesis_timestamp": self.genesis_timestamp,
            "state_path": str(self.state_path),
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def load_config() -> RuntimeConfig:
    """
    Build and cache a RuntimeConfig from environment + safe defaults.
    """
    return RuntimeConfig(
        chain_id=_env_int("CROWDFUND_CHAIN_ID", 1337, min_v=0, max_v=(1 << 64) - 1),
        max_call_depth=_env_int("CROWDFUND_MAX_CALL_DEPTH", 64, min_v=4, max_v=1024),
        max_storage_key_bytes=_env_int(
            "CROWDFUND_MAX_STORAGE_KEY_BYTES", 128, min_v=16, max_v=1024
        ),
        max_storage_value_bytes=_env_int(
            "CROWDFUND_MAX_STORAGE_VALUE_BYTES", 65_536, min_v=64, max_v=1_048_576
        ),
        genesis_timestamp=_env_int(
            "CROWDFUND_GENESIS_TIMESTAMP", 1_700_000_000, min_v=0, max_v=(1 << 63) - 1
        ),
        state_path=_env_path("CROWDFUND_STATE_PATH", ".crowdfund/state.json"),
        log_level=_env_level("CROWDFUND_LOG_LEVEL", "WARNING"),
    )


__all__ = ["RuntimeConfig", "load_config"]
