"""설정 관리 클래스."""

import json
import os
from pathlib import Path
from typing import Any

from .defaults import DEFAULT_CONFIG

ENV_PREFIX = "MARKUP_AGENT_"
GLOBAL_CONFIG_PATH = Path.home() / ".markup_agent" / "config.json"
PROJECT_CONFIG_NAME = ".markup_agent.json"


class Config:
    """
    계층적 설정 로더.
    우선순위: CLI 오버라이드 > 환경변수 > 프로젝트 설정 > 글로벌 설정 > 기본값
    """

    def __init__(self, overrides: dict[str, Any] | None = None) -> None:
        self._config: dict[str, Any] = {}
        self._load_defaults()
        self._load_global()
        self._load_project()
        self._load_env()
        for key, value in (overrides or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """설정값 조회."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """CLI 오버라이드용 설정."""
        self._config[key] = value

    def __getitem__(self, key: str) -> Any:
        """딕셔너리 스타일 접근."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """key in config 지원."""
        return key in self._config

    def _load_defaults(self) -> None:
        """기본값 로드."""
        self._config.update(DEFAULT_CONFIG)

    def _load_global(self) -> None:
        """글로벌 설정 파일 로드 (~/.markup_agent/config.json)."""
        self._load_file(GLOBAL_CONFIG_PATH)

    def _load_project(self) -> None:
        """프로젝트 설정 파일 로드 (.markup_agent.json)."""
        self._load_file(Path.cwd() / PROJECT_CONFIG_NAME)

    def _load_file(self, path: Path) -> None:
        if not path.exists():
            return
        try:
            with open(path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            return  # 잘못된 설정 파일은 무시
        if isinstance(data, dict):
            self._config.update(data)

    def _load_env(self) -> None:
        """환경변수 로드 (MARKUP_AGENT_*)."""
        for key, value in os.environ.items():
            if key.startswith(ENV_PREFIX):
                config_key = key[len(ENV_PREFIX):].lower()
                self._config[config_key] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """환경변수 값을 적절한 타입으로 파싱."""
        # Boolean
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        # Integer
        try:
            return int(value)
        except ValueError:
            pass

        # Float
        try:
            return float(value)
        except ValueError:
            pass

        # String
        return value

    def to_dict(self) -> dict[str, Any]:
        """설정을 딕셔너리로 반환."""
        return self._config.copy()
