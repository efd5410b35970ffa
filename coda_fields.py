"""Fixed-offset field decoding for CODA lines.

Offsets are character offsets into an already decoded ``str``; a multi-byte
character in the source file counts as one position. Every converter is a pure
function of the raw slice.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, TypeVar

from coda_errors import FieldDecodeError, InvalidEnumValueError

T = TypeVar("T")

# Two-digit years at or above the pivot belong to the 1900s.
CENTURY_PIVOT = 69
MINOR_UNITS = Decimal(1000)

DIGITS_RE = re.compile(r"[0-9]+")
DATE_RE = re.compile(r"[0-9]{6}")


class ConversionError(ValueError):
    pass


class EnumConversionError(ConversionError):
    pass


class Sign(Enum):
    CREDIT = "0"
    DEBIT = "1"

    @property
    def symbol(self) -> str:
        return "+" if self is Sign.CREDIT else "-"

    def apply(self, amount: int) -> int:
        return amount if self is Sign.CREDIT else -amount


class AccountStructure(Enum):
    BELGIAN = "0"
    FOREIGN = "1"
    IBAN_BELGIAN = "2"
    IBAN_FOREIGN = "3"


class CommunicationStructure(Enum):
    UNSTRUCTURED = "0"
    STRUCTURED = "1"


def to_major(minor: int) -> Decimal:
    """Scale a minor-unit amount (three implied decimals) to major units."""
    return (Decimal(minor) / MINOR_UNITS).quantize(Decimal("0.001"))


def parse_str(raw: str) -> str:
    return raw


def parse_str_trim(raw: str) -> str:
    return raw.rstrip(" ")


def parse_str_append(raw: str) -> str:
    return "\n" + raw.rstrip(" ")


def _parse_unsigned(raw: str, bits: int) -> int:
    if not DIGITS_RE.fullmatch(raw):
        raise ConversionError(f"Invalid unsigned integer {raw!r}")
    value = int(raw)
    if value >= 1 << bits:
        raise ConversionError(f"Value {raw!r} does not fit in {bits} bits")
    return value


def parse_u8(raw: str) -> int:
    return _parse_unsigned(raw, 8)


def parse_u32(raw: str) -> int:
    return _parse_unsigned(raw, 32)


def parse_u64(raw: str) -> int:
    return _parse_unsigned(raw, 64)


def parse_date(raw: str) -> date:
    if not DATE_RE.fullmatch(raw):
        raise ConversionError(f"Invalid date token {raw!r}, expected DDMMYY")
    day, month, short_year = int(raw[0:2]), int(raw[2:4]), int(raw[4:6])
    year = 1900 + short_year if short_year >= CENTURY_PIVOT else 2000 + short_year
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ConversionError(f"Invalid calendar date {raw!r}") from exc


def _parse_enum(enum_cls: type, raw: str, label: str):
    try:
        return enum_cls(raw)
    except ValueError:
        raise EnumConversionError(f"Invalid {label} value [{raw}]") from None


def parse_sign(raw: str) -> Sign:
    return _parse_enum(Sign, raw, "Sign")


def parse_account_structure(raw: str) -> AccountStructure:
    return _parse_enum(AccountStructure, raw, "AccountStructure")


def parse_communication_structure(raw: str) -> CommunicationStructure:
    return _parse_enum(CommunicationStructure, raw, "CommunicationStructure")


def parse_duplicate(raw: str) -> bool:
    if raw == "D":
        return True
    if raw == " ":
        return False
    raise EnumConversionError(f"Invalid duplicate value [{raw}]")


def decode_field(line: str, start: int, end: int, convert: Callable[[str], T], name: str) -> T:
    """Convert ``line[start:end]`` or raise a ``FieldDecodeError`` naming ``name``."""
    if end > len(line):
        raise FieldDecodeError(
            field=name,
            raw=None,
            reason=f"range {start}..{end} exceeds line length {len(line)}",
            line=line,
        )
    raw = line[start:end]
    try:
        return convert(raw)
    except EnumConversionError as exc:
        raise InvalidEnumValueError(field=name, raw=raw, reason=str(exc), line=line) from exc
    except ConversionError as exc:
        raise FieldDecodeError(field=name, raw=raw, reason=str(exc), line=line) from exc
