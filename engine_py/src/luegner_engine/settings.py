"""Process-level settings: logging and deterministic seeding."""

import logging
import os
from typing import Optional

from pydantic import BaseModel, Field

from .rules import RuleConfig, rules_from_env


class EngineSettings(BaseModel):
    log_level: str = Field(default="INFO")
    seed: Optional[int] = Field(
        default=None,
        description="Fixed shuffle seed, for reproducible games"
    )
    rules: RuleConfig = Field(default_factory=RuleConfig)

    @classmethod
    def from_env(cls) -> 'EngineSettings':
        seed = os.getenv("LUEGNER_SEED")
        return cls(
            log_level=os.getenv("LOG_LEVEL", "info").upper(),
            seed=int(seed) if seed else None,
            rules=rules_from_env(),
        )


def configure_logging(level: Optional[str] = None):
    if level is None:
        level = os.getenv("LOG_LEVEL", "info")
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
