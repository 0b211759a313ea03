"""Config module - 설정 관리."""

from .config import ENV_PREFIX, Config
from .defaults import DEFAULT_CONFIG

__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
]
