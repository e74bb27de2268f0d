from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field


ENV_PREFIX = "REPLAY_CHESS_"


class Settings(BaseModel):
    """Runtime configuration.

    Recognized keys (environment variable ``REPLAY_CHESS_<KEY>``):
    - host: HTTP bind host
    - port: HTTP bind port
    - log_level: root logging level
    - max_perft_depth: deepest perft accepted from requests
    - strike_limit: wrong moves that end computer replay of a puzzle
    """

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    max_perft_depth: int = Field(default=5, ge=0, le=8)
    strike_limit: int = Field(default=3, ge=1)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``REPLAY_CHESS_*`` variables; unset keys keep defaults.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw.upper() if name == "log_level" else raw
        return cls.model_validate(values)
