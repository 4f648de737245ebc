from __future__ import annotations

import io
from typing import Iterable, Iterator, List, Union

from .errors import ParseError


class LineReader:
    """
    Line cursor over a serialized record.

    Every `parse` in the package pulls its input through one of these so that
    errors carry the line they happened on and so that premature end of
    input is reported the same way everywhere.
    """

    def __init__(self, source: Union[str, Iterable[str]]):
        if isinstance(source, str):
            source = io.StringIO(source)
        self._lines: Iterator[str] = iter(source)
        self.lineno = 0

    def next_line(self, what: str = "line") -> str:
        try:
            line = next(self._lines)
        except StopIteration:
            raise ParseError(f"unexpected end of input, expected {what}", self.lineno + 1) from None
        self.lineno += 1
        return line.rstrip("\r\n")

    def read_int(self, what: str) -> int:
        line = self.next_line(what)
        try:
            return int(line.strip())
        except ValueError:
            raise self.error(f"expected {what}, got {line!r}") from None

    def read_ints(self, count: int, what: str) -> List[int]:
        line = self.next_line(what)
        try:
            values = [int(tok) for tok in line.split()]
        except ValueError:
            raise self.error(f"malformed {what} list {line!r}") from None
        if len(values) != count:
            raise self.error(f"expected {count} {what} entries, got {len(values)}")
        return values

    def expect_eof(self) -> None:
        for line in self._lines:
            self.lineno += 1
            if line.strip():
                raise self.error("trailing data after record")

    def error(self, message: str) -> ParseError:
        return ParseError(message, self.lineno)


def join_ints(values: Iterable[int]) -> str:
    return " ".join(str(v) for v in values)
