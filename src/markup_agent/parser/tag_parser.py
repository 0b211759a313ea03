"""Incremental tool-markup parser.

Turns the raw text of one model response, delivered as arbitrary chunks,
into stream events. Recognized markup::

    <tool_code>
      <tool name="read_file">
        <file_path>src/main.py</file_path>
      </tool>
    </tool_code>

Text outside ``<tool_code>`` is emitted as ``TokenEvent`` as soon as it is
known not to be the start of a block. Tool events of a block are held back
until the block's ``</tool_code>`` arrives, so a malformed or unterminated
block produces exactly one ``ErrorEvent`` and no tool events.
"""

import re
from enum import Enum, auto

from markup_agent.core.errors import ParseError
from markup_agent.core.events import (
    Event,
    TokenEvent,
    ToolStartEvent,
    ToolArgEvent,
    ToolEndEvent,
    ErrorEvent,
    DoneEvent,
)

OPEN_BLOCK = "<tool_code>"
CLOSE_BLOCK = "</tool_code>"
BLOCK_TAG = "tool_code"
TOOL_TAG = "tool"

_TAG_RE = re.compile(
    r"^<(?P<close>/)?(?P<name>[A-Za-z_][\w.\-]*)(?P<attrs>\s[^>]*)?>$",
    re.DOTALL,
)
_NAME_ATTR_RE = re.compile(r"""(?:^|\s)name\s*=\s*(?:"([^"]*)"|'([^']*)')""")


class ParserState(Enum):
    """Scanner states."""

    TEXT = auto()           # thought text
    POSSIBLE_TAG = auto()   # holding a prefix of <tool_code>
    IN_TOOL_CODE = auto()   # between <tool> elements
    IN_TOOL = auto()        # between argument elements
    IN_ARG = auto()         # inside an argument value
    SKIP_BLOCK = auto()     # discarding a malformed block


_BLOCK_STATES = (ParserState.IN_TOOL_CODE, ParserState.IN_TOOL, ParserState.IN_ARG)


def _partial_suffix(text: str, token: str) -> int:
    """Length of the longest suffix of text that is a proper prefix of token."""
    for size in range(min(len(text), len(token) - 1), 0, -1):
        if text.endswith(token[:size]):
            return size
    return 0


def _find_tag_end(buf: str) -> tuple[str, int]:
    """Locate the end of the tag starting at buf[0] == '<'.

    Returns:
        ("end", i)     - buf[i] is the closing '>'
        ("restart", i) - another unquoted '<' at i; buf[:i] is not a tag
        ("more", -1)   - need more input
    """
    quote: str | None = None
    prev = ""
    for i in range(1, len(buf)):
        ch = buf[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'" and prev == "=":
            quote = ch
        elif ch == ">":
            return "end", i
        elif ch == "<":
            return "restart", i
        if not ch.isspace():
            prev = ch
    return "more", -1


def coalesce_tokens(events: list[Event]) -> list[Event]:
    """Merge adjacent TokenEvents and drop empty ones.

    Token granularity follows chunk boundaries; coalescing gives a canonical
    form for comparing two parses of the same text.
    """
    result: list[Event] = []
    for event in events:
        if isinstance(event, TokenEvent):
            if not event.text:
                continue
            if result and isinstance(result[-1], TokenEvent):
                result[-1] = TokenEvent(result[-1].text + event.text)
                continue
        result.append(event)
    return result


class TagParser:
    """Incremental scanner for ``<tool_code>`` markup.

    Usage:
        parser = TagParser()
        for chunk in stream:
            events.extend(parser.feed(chunk))
        events.extend(parser.finish())

    Duplicate argument names inside one ``<tool>`` keep the first value; the
    later ones are parsed and dropped.
    """

    def __init__(self) -> None:
        self.errors: list[ParseError] = []
        self._reset()

    def _reset(self) -> None:
        self._state = ParserState.TEXT
        self._buf = ""
        self._block_events: list[Event] = []
        self._seen_args: set[str] = set()
        self._arg_name = ""
        self._arg_value: list[str] = []
        self._arg_ignored = False

    @property
    def state(self) -> ParserState:
        return self._state

    def feed(self, chunk: str) -> list[Event]:
        """Consume one chunk and return the events it completes."""
        if not chunk:
            return []
        self._buf += chunk
        return self._drain(final=False)

    def finish(self) -> list[Event]:
        """Flush buffered state at end of stream. Always ends with DoneEvent."""
        out = self._drain(final=True)

        if self._state in _BLOCK_STATES:
            self._report(out, "unterminated <tool_code> block")
        elif self._state in (ParserState.TEXT, ParserState.POSSIBLE_TAG) and self._buf:
            out.append(TokenEvent(self._buf))

        out.append(DoneEvent())
        self._reset()
        return out

    # -------------------------------------------------------------------------
    # Scanner
    # -------------------------------------------------------------------------

    def _drain(self, final: bool) -> list[Event]:
        out: list[Event] = []
        handlers = {
            ParserState.TEXT: self._scan_text,
            ParserState.POSSIBLE_TAG: self._scan_text,
            ParserState.IN_TOOL_CODE: self._scan_block,
            ParserState.IN_TOOL: self._scan_tool,
            ParserState.IN_ARG: self._scan_arg,
            ParserState.SKIP_BLOCK: self._scan_skip,
        }
        while handlers[self._state](out, final):
            pass
        return out

    def _scan_text(self, out: list[Event], final: bool) -> bool:
        buf = self._buf
        if not buf:
            self._state = ParserState.TEXT
            return False

        idx = buf.find("<")
        if idx == -1:
            out.append(TokenEvent(buf))
            self._buf = ""
            self._state = ParserState.TEXT
            return False
        if idx > 0:
            out.append(TokenEvent(buf[:idx]))
            self._buf = buf[idx:]
            return True

        if buf.startswith(OPEN_BLOCK):
            self._buf = buf[len(OPEN_BLOCK):]
            self._state = ParserState.IN_TOOL_CODE
            self._block_events = []
            return True

        if OPEN_BLOCK.startswith(buf) and not final:
            # Could still become <tool_code>
            self._state = ParserState.POSSIBLE_TAG
            return False

        # Not a block opener: literal text up to the next '<'
        nxt = buf.find("<", 1)
        text = buf if nxt == -1 else buf[:nxt]
        out.append(TokenEvent(text))
        self._buf = buf[len(text):]
        self._state = ParserState.TEXT
        return bool(self._buf)

    def _next_tag(self) -> tuple[str, re.Match[str] | None, str] | None:
        """Pull the next tag (or ignorable text) off the buffer inside a block.

        Returns None when more input is needed, otherwise
        (raw_text, match_or_None, rest) where a None match means literal text.
        """
        buf = self._buf.lstrip()
        self._buf = buf
        if not buf:
            return None

        if buf[0] != "<":
            nxt = buf.find("<")
            if nxt == -1:
                return buf, None, ""
            return buf[:nxt], None, buf[nxt:]

        kind, end = _find_tag_end(buf)
        if kind == "more":
            return None
        if kind == "restart":
            return buf[:end], None, buf[end:]

        raw = buf[: end + 1]
        return raw, _TAG_RE.match(raw), buf[end + 1:]

    def _scan_block(self, out: list[Event], final: bool) -> bool:
        pulled = self._next_tag()
        if pulled is None:
            return False
        raw, match, rest = pulled
        self._buf = rest

        if match is None:
            # Stray text and unknown markup between elements is ignored
            return True

        name = match.group("name")
        closing = bool(match.group("close"))

        if closing and name == BLOCK_TAG:
            out.extend(self._block_events)
            self._block_events = []
            self._state = ParserState.TEXT
            return True

        if closing and name == TOOL_TAG:
            self._malformed(out, raw, "unexpected </tool> outside a <tool> element")
            return True

        if not closing and name == TOOL_TAG:
            attr = _NAME_ATTR_RE.search(match.group("attrs") or "")
            tool_name = ""
            if attr:
                tool_name = attr.group(1) if attr.group(1) is not None else attr.group(2)
                tool_name = tool_name.strip()
            if not tool_name:
                self._malformed(out, raw, "<tool> element is missing a name attribute")
                return True
            self._block_events.append(ToolStartEvent(tool_name))
            self._seen_args = set()
            self._state = ParserState.IN_TOOL
            return True

        # Unknown element (including a nested <tool_code>): literal text
        return True

    def _scan_tool(self, out: list[Event], final: bool) -> bool:
        pulled = self._next_tag()
        if pulled is None:
            return False
        raw, match, rest = pulled
        self._buf = rest

        if match is None:
            return True

        name = match.group("name")
        closing = bool(match.group("close"))
        attrs = (match.group("attrs") or "").strip()

        if closing:
            if name == TOOL_TAG:
                self._block_events.append(ToolEndEvent())
                self._state = ParserState.IN_TOOL_CODE
            elif name == BLOCK_TAG:
                self._malformed(out, raw, "<tool> element not closed before </tool_code>")
            else:
                self._malformed(out, raw, f"unexpected closing tag </{name}>")
            return True

        if name == TOOL_TAG:
            self._malformed(out, raw, "nested <tool> element")
            return True

        if name == BLOCK_TAG or attrs.endswith("/"):
            return True

        # An element with attributes is not an argument; its content is skipped
        self._arg_name = name
        self._arg_value = []
        self._arg_ignored = bool(attrs)
        self._state = ParserState.IN_ARG
        return True

    def _scan_arg(self, out: list[Event], final: bool) -> bool:
        closing = f"</{self._arg_name}>"
        buf = self._buf
        idx = buf.find(closing)
        if idx == -1:
            keep = _partial_suffix(buf, closing)
            self._arg_value.append(buf[: len(buf) - keep])
            self._buf = buf[len(buf) - keep:]
            return False

        self._arg_value.append(buf[:idx])
        self._buf = buf[idx + len(closing):]
        if not self._arg_ignored and self._arg_name not in self._seen_args:
            self._seen_args.add(self._arg_name)
            self._block_events.append(ToolArgEvent(self._arg_name, "".join(self._arg_value)))
        self._arg_name = ""
        self._arg_value = []
        self._arg_ignored = False
        self._state = ParserState.IN_TOOL
        return True

    def _scan_skip(self, out: list[Event], final: bool) -> bool:
        buf = self._buf
        idx = buf.find(CLOSE_BLOCK)
        if idx == -1:
            keep = _partial_suffix(buf, CLOSE_BLOCK)
            self._buf = buf[len(buf) - keep:]
            return False
        self._buf = buf[idx + len(CLOSE_BLOCK):]
        self._state = ParserState.TEXT
        return True

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def _report(self, out: list[Event], message: str) -> None:
        error = ParseError(message)
        self.errors.append(error)
        out.append(ErrorEvent(f"Malformed tool_code block: {message}"))
        self._block_events = []
        self._seen_args = set()
        self._arg_name = ""
        self._arg_value = []
        self._arg_ignored = False

    def _malformed(self, out: list[Event], raw: str, message: str) -> None:
        """Drop the current block and skip to its </tool_code>."""
        self._report(out, message)
        match = _TAG_RE.match(raw)
        if match and match.group("close") and match.group("name") == BLOCK_TAG:
            # The offending tag already closed the block
            self._state = ParserState.TEXT
            return
        # Rescan from just after the offending '<' so its text can't hide </tool_code>
        self._buf = raw[1:] + self._buf
        self._state = ParserState.SKIP_BLOCK
