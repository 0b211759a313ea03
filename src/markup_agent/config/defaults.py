"""기본 설정값 정의."""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    # 모델 설정
    "provider": "claude",
    "model": "claude-sonnet-4-20250514",
    "base_url": "https://api.openai.com/v1",
    "api_key": None,
    "temperature": 0.7,
    "max_tokens": 16384,
    "request_timeout": 120,

    # 에이전트 설정
    "max_turns": 20,
    "max_output_length": 10_000,
    "tool_output_role": "user",  # "user" 또는 "system"

    # 작업 공간 설정
    "workspace_root": ".",
    "command_timeout": 120,

    # 기록 저장 (None이면 메모리)
    "history_db": None,

    # 기능 설정
    "debug": False,
}
