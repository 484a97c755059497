from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_OPENTOPO_URL = "https://api.opentopodata.org/v1/aster30m"


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw!r}") from None


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    elevation_provider: str = "opentopo"
    opentopo_url: str = DEFAULT_OPENTOPO_URL
    opentopo_batch_size: int = 100          # API limit: locations per request
    opentopo_min_interval_s: float = 1.0    # API limit: one request per second
    opentopo_timeout_s: float = 30.0
    static_elevation_m: float = 0.0
    log_file: str = "flexi_profile.log"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        batch = _env_int(env, "OPENTOPO_BATCH_SIZE", cls.opentopo_batch_size)
        if batch < 1:
            raise ValueError(f"OPENTOPO_BATCH_SIZE must be at least 1, got: {batch}")
        return cls(
            elevation_provider=(env.get("ELEVATION_PROVIDER") or cls.elevation_provider).strip().lower(),
            opentopo_url=env.get("OPENTOPO_URL") or cls.opentopo_url,
            opentopo_batch_size=batch,
            opentopo_min_interval_s=_env_float(env, "OPENTOPO_MIN_INTERVAL_S", cls.opentopo_min_interval_s),
            opentopo_timeout_s=_env_float(env, "OPENTOPO_TIMEOUT_S", cls.opentopo_timeout_s),
            static_elevation_m=_env_float(env, "STATIC_ELEVATION_M", cls.static_elevation_m),
            log_file=env.get("FLEXI_LOG_FILE") or cls.log_file,
            log_level=(env.get("FLEXI_LOG_LEVEL") or cls.log_level).upper(),
        )
