"""Parser module - streaming tool markup scanner."""

from .tag_parser import (
    BLOCK_TAG,
    CLOSE_BLOCK,
    OPEN_BLOCK,
    TOOL_TAG,
    ParserState,
    TagParser,
    coalesce_tokens,
)

__all__ = [
    "TagParser",
    "ParserState",
    "coalesce_tokens",
    "OPEN_BLOCK",
    "CLOSE_BLOCK",
    "BLOCK_TAG",
    "TOOL_TAG",
]
