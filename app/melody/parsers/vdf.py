"""Parser for Valve's KeyValues text format (VDF/ACF).

Steam describes installed games in ``appmanifest_<id>.acf`` files and its
library locations in ``libraryfolders.vdf``. Both use the same grammar::

    "AppState"
    {
        "appid"     "440"
        "name"      "Team Fortress 2"
        "UserConfig"
        {
            "language"  "english"
        }
    }

Only the text variant is supported. Nested blocks become dictionaries and
every leaf value stays a string.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32

_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}


class VdfParseError(ValueError):
    """Raised when VDF text cannot be parsed."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"{message} (line {line})")
        self.line = line


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str  # "string", "open" or "close"
    value: str
    line: int


def _tokenize(text: str) -> Iterator[_Token]:
    pos = 0
    line = 1
    length = len(text)

    while pos < length:
        char = text[pos]

        if char == "\n":
            line += 1
            pos += 1
        elif char.isspace():
            pos += 1
        elif text.startswith("//", pos):
            end = text.find("\n", pos)
            pos = length if end == -1 else end
        elif char == "{":
            yield _Token("open", char, line)
            pos += 1
        elif char == "}":
            yield _Token("close", char, line)
            pos += 1
        elif char == "[":
            # Platform conditionals such as [$WIN32] are ignored
            end = text.find("]", pos)
            if end == -1:
                raise VdfParseError("Unterminated conditional", line)
            pos = end + 1
        elif char == '"':
            start_line = line
            pos += 1
            chars: list[str] = []
            while True:
                if pos >= length:
                    raise VdfParseError("Unterminated string", start_line)
                char = text[pos]
                if char == "\\" and pos + 1 < length and text[pos + 1] in _ESCAPES:
                    chars.append(_ESCAPES[text[pos + 1]])
                    pos += 2
                    continue
                if char == '"':
                    pos += 1
                    break
                if char == "\n":
                    line += 1
                chars.append(char)
                pos += 1
            yield _Token("string", "".join(chars), start_line)
        else:
            start = pos
            while pos < length and not text[pos].isspace() and text[pos] not in '{}"':
                pos += 1
            yield _Token("string", text[start:pos], line)


class _Parser:
    def __init__(self, text: str, max_depth: int) -> None:
        self._tokens = list(_tokenize(text))
        self._pos = 0
        self._max_depth = max_depth

    def _next(self) -> _Token | None:
        if self._pos >= len(self._tokens):
            return None
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def parse_object(self, depth: int, closing: bool) -> dict[str, Any]:
        if depth > self._max_depth:
            line = self._tokens[self._pos - 1].line if self._pos else 1
            raise VdfParseError(f"Nesting deeper than {self._max_depth} levels", line)

        result: dict[str, Any] = {}
        while True:
            token = self._next()
            if token is None:
                if closing:
                    last_line = self._tokens[-1].line if self._tokens else 1
                    raise VdfParseError("Missing closing brace", last_line)
                return result
            if token.kind == "close":
                if not closing:
                    raise VdfParseError("Unexpected closing brace", token.line)
                return result
            if token.kind == "open":
                raise VdfParseError("Block without a key", token.line)

            key = token.value
            value_token = self._next()
            if value_token is None or value_token.kind == "close":
                raise VdfParseError(f"Key {key!r} has no value", token.line)
            if value_token.kind == "open":
                result[key] = self.parse_object(depth + 1, closing=True)
            else:
                result[key] = value_token.value


def loads(text: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> dict[str, Any]:
    """Parse VDF text into nested dictionaries.

    Args:
        text: VDF/ACF document.
        max_depth: Maximum block nesting accepted before giving up.

    Returns:
        Top-level mapping. Duplicate keys keep the last value.

    Raises:
        VdfParseError: On unterminated strings, unbalanced braces, a key
            without a value, or nesting beyond ``max_depth``.
    """
    return _Parser(text, max_depth).parse_object(depth=0, closing=False)


def load(path: Path, *, max_depth: int = DEFAULT_MAX_DEPTH) -> dict[str, Any]:
    """Read and parse a VDF file.

    Raises:
        OSError: If the file cannot be read.
        VdfParseError: If the content is malformed.
    """
    text = path.read_text(encoding="utf-8", errors="replace")
    return loads(text, max_depth=max_depth)


def find_key(mapping: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Look up a key case-insensitively.

    Steam is inconsistent about casing (``appid`` vs ``AppID``), so lookups
    by callers go through this helper.
    """
    if key in mapping:
        return mapping[key]
    lowered = key.lower()
    for candidate, value in mapping.items():
        if candidate.lower() == lowered:
            return value
    return default
