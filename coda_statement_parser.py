#!/usr/bin/env python3
"""Assemble CODA lines into a ``Statement``.

Lines are classified one at a time, in file order, by their first character
and, where the format needs it, by the second character or the detail
sequence. Continuation lines extend the last open movement, information or
free communication. The parse is strict (fast-fail): the first decode error
aborts it and no partial statement is returned.
"""

from __future__ import annotations

import logging
from dataclasses import fields, is_dataclass
from datetime import date
from enum import Enum
from os import PathLike
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, TypeVar, Union

from coda_errors import DanglingContinuationError, FieldDecodeError, IncompleteStatementError
from coda_fields import AccountStructure, to_major
from coda_logging import get_logger
from coda_records import (
    FreeCommunication,
    Header,
    Information,
    Movement,
    NewBalance,
    OldBalance,
    Statement,
    Trailer,
    decode_free_communication,
    decode_header,
    decode_information,
    decode_movement,
    decode_new_balance,
    decode_old_balance,
    decode_trailer,
    extend_free_communication,
    extend_information,
    extend_movement_type2,
    extend_movement_type3,
)

__version__ = "0.1.0"

logger = get_logger("coda.parser")

R = TypeVar("R")

FREE_COMMUNICATION_OPENING_DETAIL = "0000"


class LineKind(Enum):
    HEADER = "header"
    OLD_BALANCE = "old_balance"
    MOVEMENT = "movement1"
    MOVEMENT_TYPE2 = "movement2"
    MOVEMENT_TYPE3 = "movement3"
    INFORMATION = "information1"
    INFORMATION_TYPE2 = "information2"
    INFORMATION_TYPE3 = "information3"
    FREE_COMMUNICATION = "free_communication"
    FREE_COMMUNICATION_CONTINUATION = "free_communication_continuation"
    NEW_BALANCE = "new_balance"
    TRAILER = "trailer"
    UNKNOWN = "unknown"


_SINGLE_CHAR_KINDS = {
    "0": LineKind.HEADER,
    "1": LineKind.OLD_BALANCE,
    "8": LineKind.NEW_BALANCE,
    "9": LineKind.TRAILER,
}
_TWO_CHAR_KINDS = {
    "21": LineKind.MOVEMENT,
    "22": LineKind.MOVEMENT_TYPE2,
    "23": LineKind.MOVEMENT_TYPE3,
    "31": LineKind.INFORMATION,
    "32": LineKind.INFORMATION_TYPE2,
    "33": LineKind.INFORMATION_TYPE3,
}


def classify_line(line: str) -> LineKind:
    kind = _SINGLE_CHAR_KINDS.get(line[:1])
    if kind is not None:
        return kind
    if line[:1] == "4":
        if line[6:10] == FREE_COMMUNICATION_OPENING_DETAIL:
            return LineKind.FREE_COMMUNICATION
        return LineKind.FREE_COMMUNICATION_CONTINUATION
    return _TWO_CHAR_KINDS.get(line[:2], LineKind.UNKNOWN)


class StatementAccumulator:
    """In-progress statement owned by a single ``parse_statement`` call."""

    def __init__(self) -> None:
        self.header: Optional[Header] = None
        self.old_balance: Optional[OldBalance] = None
        self.movements: List[Movement] = []
        self.information: List[Information] = []
        self.free_communications: List[FreeCommunication] = []
        self.new_balance: Optional[NewBalance] = None
        self.trailer: Optional[Trailer] = None

    def apply(self, line_number: int, line: str) -> LineKind:
        kind = classify_line(line)
        try:
            self._dispatch(kind, line_number, line)
        except FieldDecodeError as exc:
            raise exc.located(line_number, kind.value) from exc
        return kind

    def _dispatch(self, kind: LineKind, line_number: int, line: str) -> None:
        if kind is LineKind.HEADER:
            if self.header is not None:
                logger.warning("line %d: second header record replaces the first one", line_number)
            self.header = decode_header(line)
        elif kind is LineKind.OLD_BALANCE:
            self.old_balance = decode_old_balance(line)
        elif kind is LineKind.MOVEMENT:
            self.movements.append(decode_movement(line))
        elif kind is LineKind.MOVEMENT_TYPE2:
            self._extend_last(self.movements, extend_movement_type2, kind, line_number, line, "movement")
        elif kind is LineKind.MOVEMENT_TYPE3:
            self._extend_last(self.movements, extend_movement_type3, kind, line_number, line, "movement")
        elif kind is LineKind.INFORMATION:
            self.information.append(decode_information(line))
        elif kind in (LineKind.INFORMATION_TYPE2, LineKind.INFORMATION_TYPE3):
            self._extend_last(self.information, extend_information, kind, line_number, line, "information")
        elif kind is LineKind.FREE_COMMUNICATION:
            self.free_communications.append(decode_free_communication(line))
        elif kind is LineKind.FREE_COMMUNICATION_CONTINUATION:
            self._extend_last(
                self.free_communications,
                extend_free_communication,
                kind,
                line_number,
                line,
                "free communication",
            )
        elif kind is LineKind.NEW_BALANCE:
            self.new_balance = decode_new_balance(line)
        elif kind is LineKind.TRAILER:
            self.trailer = decode_trailer(line)
        else:
            logger.debug("line %d: ignoring unknown record type %r", line_number, line[:2])

    @staticmethod
    def _extend_last(
        records: List[R],
        extend: Callable[[R, str], R],
        kind: LineKind,
        line_number: int,
        line: str,
        expected: str,
    ) -> None:
        if not records:
            raise DanglingContinuationError(line_number, kind.value, expected)
        records[-1] = extend(records[-1], line)

    def finish(self) -> Statement:
        required = (
            ("header", self.header),
            ("old_balance", self.old_balance),
            ("new_balance", self.new_balance),
            ("trailer", self.trailer),
        )
        missing = [name for name, value in required if value is None]
        if missing:
            raise IncompleteStatementError(missing)
        return Statement(
            header=self.header,
            old_balance=self.old_balance,
            movements=tuple(self.movements),
            information=tuple(self.information),
            free_communications=tuple(self.free_communications),
            new_balance=self.new_balance,
            trailer=self.trailer,
        )


def parse_statement(lines: Iterable[str]) -> Statement:
    accumulator = StatementAccumulator()
    line_count = 0
    for line_number, line in enumerate(lines, start=1):
        accumulator.apply(line_number, line)
        line_count = line_number
    statement = accumulator.finish()
    logger.debug(
        "parsed %d lines: %d movements, %d information, %d free communications",
        line_count,
        len(statement.movements),
        len(statement.information),
        len(statement.free_communications),
    )
    if logger.isEnabledFor(logging.DEBUG):
        records = [statement.header, statement.old_balance]
        records += [*statement.movements, *statement.information, *statement.free_communications]
        records += [statement.new_balance, statement.trailer]
        for record in records:
            logger.debug("%s: %s", type(record).__name__, record_to_dict(record))
    return statement


def decode_lines(content: bytes, encoding: str = "utf-8") -> List[str]:
    """Decode raw CODA bytes and split them into lines without terminators.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a line; other Unicode line
    separators are kept as field content so offsets stay aligned.
    """
    text = content.decode(encoding)
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def load_lines(path: Union[str, PathLike], encoding: str = "utf-8") -> List[str]:
    return decode_lines(Path(path).read_bytes(), encoding)


def parse_file(path: Union[str, PathLike], encoding: str = "utf-8") -> Statement:
    logger.info("Parsing file: %s", path)
    return parse_statement(load_lines(path, encoding))


def money_to_json(minor: int) -> str:
    return format(to_major(minor), "f")


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name.lower()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, tuple):
        return [_json_value(item) for item in value]
    if is_dataclass(value):
        return record_to_dict(value)
    return value


def record_to_dict(record: Any) -> dict:
    out = {f.name: _json_value(getattr(record, f.name)) for f in fields(record)}
    structure = getattr(type(record), "structure", None)
    if isinstance(structure, AccountStructure):
        out = {"structure": structure.name.lower(), **out}
    return out


def statement_to_dict(statement: Statement) -> dict:
    """Plain dict/list form of ``statement``, ready for ``json.dumps``."""
    data = record_to_dict(statement)
    data["old_balance"]["signed_amount"] = money_to_json(statement.old_balance.signed_amount)
    data["new_balance"]["signed_amount"] = money_to_json(statement.new_balance.signed_amount)
    for item, movement in zip(data["movements"], statement.movements):
        item["signed_amount"] = money_to_json(movement.signed_amount)
    data["trailer"]["total_debit_amount"] = money_to_json(statement.trailer.total_debit)
    data["trailer"]["total_credit_amount"] = money_to_json(statement.trailer.total_credit)
    return data
