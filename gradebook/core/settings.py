"""
Configuración de la aplicación leída desde variables de entorno.

Variables:
- GRADEBOOK_APP_NAME / GRADEBOOK_APP_VERSION
- GRADEBOOK_LOG_LEVEL (INFO por defecto)
- GRADEBOOK_DEFAULT_RISK_THRESHOLD (3.0)
- GRADEBOOK_TERM_CACHE_ENABLED (false) / GRADEBOOK_TERM_CACHE_MAX_SIZE
- GRADEBOOK_CORS_ORIGINS (lista separada por comas, "*" por defecto)
"""
import os
from functools import lru_cache
from typing import List

from .. import __version__
from .constants import DEFAULT_RISK_THRESHOLD, DEFAULT_TERM_CACHE_MAX_SIZE


def env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in ("1", "true", "yes", "on")


class AppSettings:
    """Settings snapshot; build a new instance to re-read the environment"""

    def __init__(self):
        self.app_name: str = os.getenv("GRADEBOOK_APP_NAME", "Gradebook Engine API")
        self.app_version: str = os.getenv("GRADEBOOK_APP_VERSION", __version__)
        self.log_level: str = os.getenv("GRADEBOOK_LOG_LEVEL", "INFO").upper()
        self.default_risk_threshold: float = float(
            os.getenv("GRADEBOOK_DEFAULT_RISK_THRESHOLD", str(DEFAULT_RISK_THRESHOLD))
        )
        self.term_cache_enabled: bool = env_bool("GRADEBOOK_TERM_CACHE_ENABLED", False)
        self.term_cache_max_size: int = int(
            os.getenv("GRADEBOOK_TERM_CACHE_MAX_SIZE", str(DEFAULT_TERM_CACHE_MAX_SIZE))
        )
        self.cors_origins: List[str] = [
            o.strip()
            for o in os.getenv("GRADEBOOK_CORS_ORIGINS", "*").split(",")
            if o.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()
