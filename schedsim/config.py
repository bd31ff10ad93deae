from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_QUANTUM = 2


def _int_or_none(raw: Optional[str], var: str) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{var} must be an integer, got {raw!r}") from exc


def check_log_level(name: str) -> str:
    """Return the upper-cased level name, or raise ValueError if logging does not know it."""
    level = name.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level {name!r} (use DEBUG, INFO, WARNING, ERROR or CRITICAL)")
    return level


@dataclass
class Settings:
    """
    Runtime defaults for the simulator, overridable from the environment:

    - SCHEDSIM_QUANTUM: time quantum for round robin / MLFQ (default 2)
    - SCHEDSIM_LOG_LEVEL: logging level name (default WARNING)
    - SCHEDSIM_SEED: seed for the lottery random source (default: unseeded)
    """

    default_quantum: int = DEFAULT_QUANTUM
    log_level: str = "WARNING"
    seed: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        quantum = _int_or_none(env.get("SCHEDSIM_QUANTUM"), "SCHEDSIM_QUANTUM")
        return cls(
            default_quantum=quantum if quantum is not None else DEFAULT_QUANTUM,
            log_level=check_log_level(env.get("SCHEDSIM_LOG_LEVEL") or "WARNING"),
            seed=_int_or_none(env.get("SCHEDSIM_SEED"), "SCHEDSIM_SEED"),
        )
