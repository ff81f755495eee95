from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

QUOTE = '"'
DEFAULT_DELIMITER = ","


def tokenize(line: Optional[str], delimiter: str = DEFAULT_DELIMITER) -> Optional[List[str]]:
    """
    Split one DSV line into raw column strings.

    Single left-to-right pass. A ``"`` opens a quoted span only at the start
    of a column; inside it the delimiter is plain text and the next ``"``
    closes it. A ``"`` in the middle of unquoted text is kept literally.
    The delimiter may be several characters long; a partial match that
    breaks is put back into the column as text. Whitespace right after a
    delimiter is skipped and every column is trimmed.

    Returns None for a None or blank line. Never raises on content: an
    unterminated quote just runs to the end of the line.
    """
    if not delimiter:
        raise ValueError("delimiter must be a non-empty string")
    if line is None:
        return None
    line = line.rstrip("\r\n")
    if not line.strip():
        return None

    columns: List[str] = []
    buf: List[str] = []
    in_quotes = False
    after_delimiter = False
    matched = 0
    last = len(delimiter) - 1

    for ch in line:
        if after_delimiter:
            if ch.isspace():
                continue
            after_delimiter = False

        if in_quotes:
            if ch == QUOTE:
                in_quotes = False
            else:
                buf.append(ch)
            continue

        if matched and ch != delimiter[matched]:
            # broken partial match: the consumed part was data after all
            buf.append(delimiter[:matched])
            matched = 0

        if ch == delimiter[matched]:
            if matched == last:
                columns.append("".join(buf).strip())
                buf = []
                matched = 0
                after_delimiter = True
            else:
                matched += 1
            continue

        if ch == QUOTE:
            if buf:
                buf.append(QUOTE)
            else:
                in_quotes = True
            continue

        buf.append(ch)

    if matched:
        buf.append(delimiter[:matched])
    columns.append("".join(buf).strip())
    return columns


class DsvTokenizer:
    """Tokenizer bound to one delimiter; safe to share between threads."""

    __slots__ = ("_delimiter",)

    def __init__(self, delimiter: str = DEFAULT_DELIMITER):
        if not delimiter:
            raise ValueError("delimiter must be a non-empty string")
        self._delimiter = delimiter

    @property
    def delimiter(self) -> str:
        return self._delimiter

    def __call__(self, line: Optional[str]) -> Optional[List[str]]:
        return tokenize(line, self._delimiter)

    def iter_rows(self, lines: Iterable[str]) -> Iterator[List[str]]:
        """Tokenize each line, skipping blank ones."""
        for line in lines:
            columns = tokenize(line, self._delimiter)
            if columns is not None:
                yield columns

    def __repr__(self) -> str:
        return f"DsvTokenizer(delimiter={self._delimiter!r})"
