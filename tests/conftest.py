"""Shared fixtures: 128-column CODA lines and logging isolation.

``build_line`` places text at fixed 0-based offsets on a blank 128-character
line, which keeps the record layouts readable in tests.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import pytest

import coda_logging

LINE_WIDTH = 128

HEADER_LINE = (
    "0000029031872505        00099449  Testgebruiker21           KREDBEBB   "
    "00630366277 00000                                       2"
)
OLD_BALANCE_LINE = (
    "10001435000000080 EUR0BE                  0000000000000000061206Testgebruiker21"
    "           KBC-Bedrijfsrekening               001"
)
MOVEMENT_LINE = (
    "2100010000EPIB00048 AWIUBTKAPUO1000000002578250061206007990000BORDEREAU DE "
    "DECOMPTE AVANCES    015 NUMERO D'OPERATI06120600111 0"
)


def build_line(*fields: Tuple[int, str], width: int = LINE_WIDTH) -> str:
    chars = [" "] * width
    for start, text in fields:
        assert start + len(text) <= width, f"field at {start} overflows the line"
        chars[start : start + len(text)] = list(text)
    return "".join(chars)


MOVEMENT_TYPE2_LINE = build_line(
    (0, "2200010000"),
    (10, "FACTUUR 2018/0012"),
    (63, "CUSTREF-778"),
    (98, "GKCCBEBB"),
    (112, "1"),
    (113, "R001"),
    (117, "CBFF"),
    (121, "SALA"),
)
MOVEMENT_TYPE3_LINE = build_line(
    (0, "2300010000"),
    (10, "BE68539007547034"),
    (47, "JANSSENS PIETER"),
    (82, "REF. 1234"),
)
INFORMATION_LINE = build_line(
    (0, "3100010001"),
    (10, "EPIB00048 AWIUBTKAPUO"),
    (31, "00799001"),
    (39, "1"),
    (40, "KBC-BEDRIJFSREKENING"),
)
INFORMATION_TYPE2_LINE = build_line((0, "3200010001"), (10, "RUE DE LA LOI 16"))
INFORMATION_TYPE3_LINE = build_line((0, "3300010001"), (10, "1000 BRUXELLES"))
FREE_COMMUNICATION_LINE = build_line((0, "4 00010000"), (32, "BERICHT VAN DE BANK"))
FREE_COMMUNICATION_NEXT_LINE = build_line((0, "4 00010001"), (32, "TWEEDE LIJN"))
NEW_BALANCE_LINE = build_line(
    (0, "8001"),
    (4, "435000000080 EUR0BE"),
    (41, "1"),
    (42, "000000002578250"),
    (57, "061206"),
)
TRAILER_LINE = build_line(
    (0, "9"),
    (16, "000010"),
    (22, "000000002578250"),
    (37, "000000000000000"),
)


@pytest.fixture
def make_line():
    return build_line


@pytest.fixture
def statement_lines() -> List[str]:
    return [
        HEADER_LINE,
        OLD_BALANCE_LINE,
        MOVEMENT_LINE,
        MOVEMENT_TYPE2_LINE,
        MOVEMENT_TYPE3_LINE,
        INFORMATION_LINE,
        INFORMATION_TYPE2_LINE,
        INFORMATION_TYPE3_LINE,
        FREE_COMMUNICATION_LINE,
        FREE_COMMUNICATION_NEXT_LINE,
        NEW_BALANCE_LINE,
        TRAILER_LINE,
    ]


@pytest.fixture(autouse=True)
def _isolate_logging(monkeypatch: pytest.MonkeyPatch):
    """Undo ``configure_logging`` between tests so ``caplog`` keeps working."""

    monkeypatch.setattr(coda_logging, "_CONFIGURED", False)
    yield
    logger = logging.getLogger("coda")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
