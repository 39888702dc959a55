"""
Engine configuration.

Values come from the environment so a host shell can tune the interpreter
without code changes:

    CARDLANG_SEED             seed for shuffle(); unset means nondeterministic
    CARDLANG_MAX_CALL_DEPTH   nesting limit for function calls (default 64)
    CARDLANG_LOG_LEVEL        level used by setup_logging() (default WARNING)
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import os

DEFAULT_MAX_CALL_DEPTH = 64
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class EngineConfig:
    """Runtime knobs for the evaluator and turn engine."""
    seed: int | None = None
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from CARDLANG_* environment variables."""
        seed = os.getenv("CARDLANG_SEED")
        return cls(
            seed=int(seed) if seed else None,
            max_call_depth=int(os.getenv("CARDLANG_MAX_CALL_DEPTH", DEFAULT_MAX_CALL_DEPTH)),
            log_level=os.getenv("CARDLANG_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )


def setup_logging(level: str = DEFAULT_LOG_LEVEL):
    """Configure root logging for command-line use."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        level=getattr(logging, level.upper(), logging.WARNING),
    )
