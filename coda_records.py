"""CODA record types and their line decoders.

Each ``decode_*`` function maps one 128-character line to a record using the
fixed offsets of the CODA 2 layout. ``extend_*`` functions take the record a
continuation line belongs to and return the extended copy; records themselves
are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import ClassVar, Optional, Tuple, Union

from coda_fields import (
    AccountStructure,
    CommunicationStructure,
    Sign,
    decode_field,
    parse_account_structure,
    parse_communication_structure,
    parse_date,
    parse_duplicate,
    parse_sign,
    parse_str,
    parse_str_append,
    parse_str_trim,
    parse_u8,
    parse_u32,
    parse_u64,
)


@dataclass(frozen=True)
class Header:
    creation_date: date
    bank_id: str
    duplicate: bool
    file_reference: str
    name_addressee: str
    bic: str
    company_id: str
    reference: str
    related_reference: str
    version: int


@dataclass(frozen=True)
class BelgianAccount:
    structure: ClassVar[AccountStructure] = AccountStructure.BELGIAN

    number: str
    currency: str
    country_code: str


@dataclass(frozen=True)
class ForeignAccount:
    structure: ClassVar[AccountStructure] = AccountStructure.FOREIGN

    number: str
    currency: str


@dataclass(frozen=True)
class IbanBelgianAccount:
    structure: ClassVar[AccountStructure] = AccountStructure.IBAN_BELGIAN

    number: str
    currency: str


@dataclass(frozen=True)
class IbanForeignAccount:
    structure: ClassVar[AccountStructure] = AccountStructure.IBAN_FOREIGN

    number: str
    currency: str


Account = Union[BelgianAccount, ForeignAccount, IbanBelgianAccount, IbanForeignAccount]


@dataclass(frozen=True)
class OldBalance:
    account: Account
    old_sequence: str
    old_balance_sign: Sign
    old_balance: int
    old_balance_date: date
    account_holder_name: str
    account_description: str
    coda_sequence: str

    @property
    def signed_amount(self) -> int:
        return self.old_balance_sign.apply(self.old_balance)


@dataclass(frozen=True)
class Movement:
    sequence: str
    detail_sequence: str
    bank_reference: str
    amount_sign: Sign
    amount: int
    value_date: date
    transaction_code: str
    communication: str
    entry_date: date
    statement_number: str
    # Set by a type 2 continuation.
    customer_reference: Optional[str] = None
    counterparty_bic: Optional[str] = None
    r_transaction: Optional[str] = None
    r_reason: Optional[str] = None
    category_purpose: Optional[str] = None
    purpose: Optional[str] = None
    # Set by a type 3 continuation.
    counterparty_account: Optional[str] = None
    counterparty_name: Optional[str] = None

    @property
    def signed_amount(self) -> int:
        return self.amount_sign.apply(self.amount)


@dataclass(frozen=True)
class Information:
    sequence: str
    detail_sequence: str
    bank_reference: str
    transaction_code: str
    communication_structure: CommunicationStructure
    communication: str


@dataclass(frozen=True)
class FreeCommunication:
    sequence: str
    detail_sequence: str
    text: str


@dataclass(frozen=True)
class NewBalance:
    new_sequence: str
    account_currency: str
    new_balance_sign: Sign
    new_balance: int
    new_balance_date: date

    @property
    def signed_amount(self) -> int:
        return self.new_balance_sign.apply(self.new_balance)


@dataclass(frozen=True)
class Trailer:
    number_records: int
    total_debit: int
    total_credit: int


@dataclass(frozen=True)
class Statement:
    header: Header
    old_balance: OldBalance
    movements: Tuple[Movement, ...]
    information: Tuple[Information, ...]
    free_communications: Tuple[FreeCommunication, ...]
    new_balance: NewBalance
    trailer: Trailer


def decode_header(line: str) -> Header:
    return Header(
        creation_date=decode_field(line, 5, 11, parse_date, "creation_date"),
        bank_id=decode_field(line, 11, 14, parse_str, "bank_id"),
        duplicate=decode_field(line, 16, 17, parse_duplicate, "duplicate"),
        file_reference=decode_field(line, 24, 34, parse_str_trim, "file_reference"),
        name_addressee=decode_field(line, 34, 60, parse_str_trim, "name_addressee"),
        bic=decode_field(line, 60, 71, parse_str_trim, "bic"),
        company_id=decode_field(line, 71, 82, parse_str_trim, "company_id"),
        reference=decode_field(line, 88, 104, parse_str_trim, "reference"),
        related_reference=decode_field(line, 105, 120, parse_str_trim, "related_reference"),
        version=decode_field(line, 127, 128, parse_u8, "version"),
    )


# Number ranges of the non-Belgian shapes; they share the currency at 39..42.
_ACCOUNT_NUMBER_RANGES = {
    AccountStructure.FOREIGN: (ForeignAccount, 5, 39),
    AccountStructure.IBAN_BELGIAN: (IbanBelgianAccount, 5, 21),
    AccountStructure.IBAN_FOREIGN: (IbanForeignAccount, 5, 39),
}


def decode_account(line: str) -> Account:
    """Decode the 41-character account zone (1..42) of an old balance line."""
    structure = decode_field(line, 1, 2, parse_account_structure, "account_structure")
    if structure is AccountStructure.BELGIAN:
        return BelgianAccount(
            number=decode_field(line, 5, 17, parse_str_trim, "account_number"),
            currency=decode_field(line, 18, 21, parse_str_trim, "account_currency"),
            country_code=decode_field(line, 22, 24, parse_str_trim, "account_country"),
        )
    account_cls, start, end = _ACCOUNT_NUMBER_RANGES[structure]
    return account_cls(
        number=decode_field(line, start, end, parse_str_trim, "account_number"),
        currency=decode_field(line, 39, 42, parse_str_trim, "account_currency"),
    )


def decode_old_balance(line: str) -> OldBalance:
    return OldBalance(
        account=decode_account(line),
        old_sequence=decode_field(line, 2, 5, parse_str, "old_sequence"),
        old_balance_sign=decode_field(line, 42, 43, parse_sign, "old_balance_sign"),
        old_balance=decode_field(line, 43, 58, parse_u64, "old_balance"),
        old_balance_date=decode_field(line, 58, 64, parse_date, "old_balance_date"),
        account_holder_name=decode_field(line, 64, 90, parse_str_trim, "account_holder_name"),
        account_description=decode_field(line, 90, 125, parse_str_trim, "account_description"),
        coda_sequence=decode_field(line, 125, 128, parse_str, "coda_sequence"),
    )


def decode_movement(line: str) -> Movement:
    return Movement(
        sequence=decode_field(line, 2, 6, parse_str, "sequence"),
        detail_sequence=decode_field(line, 6, 10, parse_str, "detail_sequence"),
        bank_reference=decode_field(line, 10, 31, parse_str_trim, "bank_reference"),
        amount_sign=decode_field(line, 31, 32, parse_sign, "amount_sign"),
        amount=decode_field(line, 32, 47, parse_u64, "amount"),
        value_date=decode_field(line, 47, 53, parse_date, "value_date"),
        transaction_code=decode_field(line, 53, 61, parse_str, "transaction_code"),
        communication=decode_field(line, 61, 115, parse_str_trim, "communication"),
        entry_date=decode_field(line, 115, 121, parse_date, "entry_date"),
        statement_number=decode_field(line, 121, 124, parse_str, "statement_number"),
    )


def extend_movement_type2(movement: Movement, line: str) -> Movement:
    communication = decode_field(line, 10, 63, parse_str_append, "communication")
    return replace(
        movement,
        communication=movement.communication + communication,
        customer_reference=decode_field(line, 63, 98, parse_str_trim, "customer_reference"),
        counterparty_bic=decode_field(line, 98, 109, parse_str_trim, "counterparty_bic"),
        r_transaction=decode_field(line, 112, 113, parse_str_trim, "r_transaction"),
        r_reason=decode_field(line, 113, 117, parse_str_trim, "r_reason"),
        category_purpose=decode_field(line, 117, 121, parse_str_trim, "category_purpose"),
        purpose=decode_field(line, 121, 125, parse_str_trim, "purpose"),
    )


def extend_movement_type3(movement: Movement, line: str) -> Movement:
    counterparty_account = decode_field(line, 10, 47, parse_str_trim, "counterparty_account")
    counterparty_name = decode_field(line, 47, 82, parse_str_trim, "counterparty_name")
    communication = decode_field(line, 82, 125, parse_str_append, "communication")
    return replace(
        movement,
        counterparty_account=counterparty_account,
        counterparty_name=counterparty_name,
        communication=movement.communication + communication,
    )


def decode_information(line: str) -> Information:
    return Information(
        sequence=decode_field(line, 2, 6, parse_str, "sequence"),
        detail_sequence=decode_field(line, 6, 10, parse_str, "detail_sequence"),
        bank_reference=decode_field(line, 10, 31, parse_str_trim, "bank_reference"),
        transaction_code=decode_field(line, 31, 39, parse_str, "transaction_code"),
        communication_structure=decode_field(
            line, 39, 40, parse_communication_structure, "communication_structure"
        ),
        communication=decode_field(line, 40, 113, parse_str_trim, "communication"),
    )


# Communication ranges of information continuation lines, keyed by char 1.
_INFORMATION_COMMUNICATION_RANGES = {
    "2": (10, 115),
    "3": (10, 100),
}


def extend_information(information: Information, line: str) -> Information:
    start, end = _INFORMATION_COMMUNICATION_RANGES[line[1]]
    communication = decode_field(line, start, end, parse_str_append, "communication")
    return replace(information, communication=information.communication + communication)


def decode_free_communication(line: str) -> FreeCommunication:
    return FreeCommunication(
        sequence=decode_field(line, 2, 6, parse_str, "sequence"),
        detail_sequence=decode_field(line, 6, 10, parse_str, "detail_sequence"),
        text=decode_field(line, 32, 112, parse_str_trim, "text"),
    )


def extend_free_communication(free_communication: FreeCommunication, line: str) -> FreeCommunication:
    text = decode_field(line, 32, 112, parse_str_append, "text")
    return replace(free_communication, text=free_communication.text + text)


def decode_new_balance(line: str) -> NewBalance:
    return NewBalance(
        new_sequence=decode_field(line, 1, 4, parse_str, "new_sequence"),
        account_currency=decode_field(line, 4, 41, parse_str_trim, "account_currency"),
        new_balance_sign=decode_field(line, 41, 42, parse_sign, "new_balance_sign"),
        new_balance=decode_field(line, 42, 57, parse_u64, "new_balance"),
        new_balance_date=decode_field(line, 57, 63, parse_date, "new_balance_date"),
    )


def decode_trailer(line: str) -> Trailer:
    return Trailer(
        number_records=decode_field(line, 16, 22, parse_u32, "number_records"),
        total_debit=decode_field(line, 22, 37, parse_u64, "total_debit"),
        total_credit=decode_field(line, 37, 52, parse_u64, "total_credit"),
    )
