"""
Relaxed-JSON reader.

A regex lexer feeds a small recursive-descent parser. On top of plain JSON
it accepts unquoted identifier keys and single-quoted strings, both switched
by a ``ParseOptions`` value passed to each call. With ``coerce_keys`` every
object key, at any depth, goes through ``coerce_key``; array elements and
string values are never coerced.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Tuple

from dsvload.errors import MalformedConfigSyntax
from dsvload.relaxed.coerce import coerce_key
from dsvload.relaxed.value import NO_VALUE, RelaxedMap

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseOptions:
    allow_unquoted_keys: bool = True
    allow_single_quotes: bool = True
    max_depth: int = 200


RELAXED = ParseOptions()
STRICT = ParseOptions(allow_unquoted_keys=False, allow_single_quotes=False)

# under the default int() digit cap of current interpreters
MAX_INT_DIGITS = 4000


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

# identifier chars plus the @ # * + - that unquoted keys may carry
_NAME_CHARS = r"[\w$@#*+\-]"
_WORD_CHARS = r"[A-Za-z0-9_$]"

_TOKEN_RE = re.compile(
    r"(?P<WS>\s+)|"
    r'(?P<STRING>"(?:[^"\\\x00-\x1F]|\\.)*")|'
    r"(?P<SQSTRING>'(?:[^'\\\x00-\x1F]|\\.)*')|"
    # a bare word directly followed by ':' can only be an unquoted key
    rf"(?P<NAME>{_NAME_CHARS}+)(?=\s*:)|"
    r"(?P<NUMBER>-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?)(?![A-Za-z0-9_$.])|"
    rf"(?P<LITERAL>true|false|null)(?!{_WORD_CHARS})|"
    r"(?P<PUNCT>[{}\[\],:])|"
    r"(?P<BAD>.)",
    re.DOTALL,
)

Token = Tuple[str, str, int]

_LITERALS = {"true": True, "false": False, "null": None}


def _lex(text: str) -> List[Token]:
    tokens: List[Token] = []
    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup
        if kind == "WS":
            continue
        if kind == "BAD":
            ch = m.group()
            if ch in "\"'":
                raise MalformedConfigSyntax("unterminated string", m.start(), text)
            raise MalformedConfigSyntax(f"unexpected character {ch!r}", m.start(), text)
        tokens.append((kind, m.group(), m.start()))
    return tokens


def _decode_double_quoted(raw: str, start: int, text: str) -> str:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedConfigSyntax(f"bad string escape: {e.msg}", start + e.pos, text) from None


def _decode_single_quoted(raw: str, start: int, text: str) -> str:
    # rewrite as a double-quoted literal and let json do the unescaping
    body = raw[1:-1]
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append("'" if nxt == "'" else ch + nxt)
            i += 2
            continue
        out.append('\\"' if ch == '"' else ch)
        i += 1
    return _decode_double_quoted('"' + "".join(out) + '"', start, text)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class _Parser:
    def __init__(self, text: str, coerce_keys: bool, options: ParseOptions):
        self.text = text
        self.coerce_keys = coerce_keys
        self.options = options
        self.tokens = _lex(text)
        self.pos = 0

    def error(self, message: str, offset: int = None):
        if offset is None:
            offset = self.tokens[self.pos][2] if self.pos < len(self.tokens) else len(self.text)
        return MalformedConfigSyntax(message, offset, self.text)

    def next(self) -> Token:
        if self.pos >= len(self.tokens):
            raise self.error("unexpected end of input")
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def peek(self) -> Token:
        if self.pos >= len(self.tokens):
            raise self.error("unexpected end of input")
        return self.tokens[self.pos]

    def expect(self, punct: str) -> None:
        kind, value, offset = self.next()
        if kind != "PUNCT" or value != punct:
            raise self.error(f"expected '{punct}', got {value!r}", offset)

    def string(self, kind: str, raw: str, offset: int) -> str:
        if kind == "SQSTRING":
            if not self.options.allow_single_quotes:
                raise self.error("single-quoted strings are not allowed", offset)
            return _decode_single_quoted(raw, offset, self.text)
        return _decode_double_quoted(raw, offset, self.text)

    def value(self, depth: int) -> Any:
        if depth > self.options.max_depth:
            raise self.error("maximum nesting depth exceeded")
        kind, raw, offset = self.next()
        if kind in ("STRING", "SQSTRING"):
            return self.string(kind, raw, offset)
        if kind == "NUMBER":
            if any(c in raw for c in ".eE"):
                return float(raw)
            if len(raw) > MAX_INT_DIGITS:
                raise self.error("number too large", offset)
            return int(raw)
        if kind == "LITERAL":
            return _LITERALS[raw]
        if kind == "PUNCT" and raw == "{":
            return self.obj(depth + 1)
        if kind == "PUNCT" and raw == "[":
            return self.array(depth + 1)
        raise self.error(f"unexpected {raw!r}, expected a value", offset)

    def array(self, depth: int) -> tuple:
        items = []
        if self.peek()[:2] == ("PUNCT", "]"):
            self.next()
            return tuple(items)
        while True:
            items.append(self.value(depth))
            kind, raw, offset = self.next()
            if kind == "PUNCT" and raw == "]":
                return tuple(items)
            if kind != "PUNCT" or raw != ",":
                raise self.error(f"expected ',' or ']', got {raw!r}", offset)

    def key(self) -> Any:
        kind, raw, offset = self.next()
        if kind in ("STRING", "SQSTRING"):
            name = self.string(kind, raw, offset)
        elif kind == "NAME":
            if not self.options.allow_unquoted_keys:
                raise self.error(f"unquoted key {raw!r} is not allowed", offset)
            name = raw
        else:
            raise self.error(f"expected an object key, got {raw!r}", offset)
        return coerce_key(name) if self.coerce_keys else name

    def obj(self, depth: int) -> RelaxedMap:
        pairs = []
        if self.peek()[:2] == ("PUNCT", "}"):
            self.next()
            return RelaxedMap(pairs)
        while True:
            key = self.key()
            self.expect(":")
            pairs.append((key, self.value(depth)))
            kind, raw, offset = self.next()
            if kind == "PUNCT" and raw == "}":
                return RelaxedMap(pairs)
            if kind != "PUNCT" or raw != ",":
                raise self.error(f"expected ',' or '}}', got {raw!r}", offset)

    def document(self) -> Any:
        if not self.tokens:
            return NO_VALUE
        result = self.value(0)
        if self.pos < len(self.tokens):
            raise self.error("extra data after the document value")
        return result


def parse(text: str, coerce_keys: bool = False, *, options: ParseOptions = RELAXED) -> Any:
    """
    Parse a relaxed-JSON document into a value tree.

    Returns ``NO_VALUE`` for an empty or whitespace-only document; whether
    that is acceptable is up to the caller. Raises ``MalformedConfigSyntax``
    with a line/column position on bad input.
    """
    return _Parser(text, coerce_keys, options).document()
