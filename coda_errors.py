"""Errors raised while decoding CODA statements.

Every failure is fatal to the statement being parsed; callers that process
several files decide on their own whether to continue with the next one.
"""

from __future__ import annotations

from typing import List, Optional


class ParseError(RuntimeError):
    pass


class FieldDecodeError(ParseError):
    """A single field could not be converted.

    ``line_number`` and ``record`` stay ``None`` while the error travels out of
    a record decoder; the assembler fills them in through :meth:`located`.
    """

    def __init__(
        self,
        field: str,
        raw: Optional[str],
        reason: str,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
        record: Optional[str] = None,
    ) -> None:
        self.field = field
        self.raw = raw
        self.reason = reason
        self.line = line
        self.line_number = line_number
        self.record = record
        super().__init__(self._render())

    def _render(self) -> str:
        location = ""
        if self.line_number is not None:
            location = f"line {self.line_number}"
            if self.record:
                location += f" ({self.record})"
            location += ": "
        return f"{location}Could not parse {self.field}: {self.reason}"

    def located(self, line_number: int, record: str) -> "FieldDecodeError":
        return type(self)(
            field=self.field,
            raw=self.raw,
            reason=self.reason,
            line=self.line,
            line_number=line_number,
            record=record,
        )


class InvalidEnumValueError(FieldDecodeError):
    pass


class DanglingContinuationError(ParseError):
    def __init__(self, line_number: int, record: str, expected: str) -> None:
        self.line_number = line_number
        self.record = record
        self.expected = expected
        super().__init__(
            f"line {line_number} ({record}): continuation without a preceding {expected}"
        )


class IncompleteStatementError(ParseError):
    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Incomplete statement, missing: {', '.join(self.missing)}")
