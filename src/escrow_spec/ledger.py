"""Hosting ledger collaborator (minimal subset).

Only what the escrow program consumes: rent-exempt minimums, account creation,
signed lamport transfers, balance reads and the clock. Signers are identities
asserted by the caller; programs sign for their PDAs by presenting seeds.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable, Optional

from .config import (
    ACCOUNT_STORAGE_OVERHEAD,
    EXEMPTION_THRESHOLD_YEARS,
    LAMPORTS_PER_BYTE_YEAR,
    SYSTEM_PROGRAM_ID,
    U64_MAX,
)
from .derivation import signer_address
from .errors import ErrorCode, SpecError
from .types import Account, LedgerState


def minimum_balance(data_len: int) -> int:
    return (ACCOUNT_STORAGE_OVERHEAD + data_len) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS


def current_time(state: LedgerState) -> int:
    return state.clock.unix_timestamp


def read_balance(state: LedgerState, address: bytes) -> int:
    return state.balance_of(address)


def signers_for(
    tx_signer: bytes,
    program_id: bytes,
    signer_seeds: Optional[Iterable[Iterable[bytes]]] = None,
) -> frozenset[bytes]:
    """Signer set for a program call: the tx signer plus any PDAs signed via seeds."""
    signers = {tx_signer}
    for seeds in signer_seeds or ():
        signers.add(signer_address(seeds, program_id))
    return frozenset(signers)


def create_account(
    state: LedgerState,
    funder: bytes,
    address: bytes,
    lamports: int,
    space: int,
    owner: bytes,
    signers: AbstractSet[bytes],
) -> Account:
    if funder not in signers or address not in signers:
        raise SpecError(ErrorCode.MISSING_REQUIRED_SIGNATURE, "create_account requires funder and new account signatures")

    existing = state.accounts.get(address)
    if existing is not None and (existing.lamports > 0 or existing.data or existing.owner != SYSTEM_PROGRAM_ID):
        raise SpecError(ErrorCode.ACCOUNT_ALREADY_IN_USE, "account already in use")

    source = state.accounts.get(funder)
    if source is None or source.lamports < lamports:
        raise SpecError(ErrorCode.INSUFFICIENT_LAMPORTS, "insufficient lamports to fund account")
    source.lamports -= lamports

    account = Account(address=address, lamports=lamports, owner=owner, data=bytes(space))
    state.accounts[address] = account
    return account


def transfer(
    state: LedgerState,
    source: bytes,
    destination: bytes,
    amount: int,
    signers: AbstractSet[bytes],
) -> None:
    if source not in signers:
        raise SpecError(ErrorCode.MISSING_REQUIRED_SIGNATURE, "transfer source did not sign")
    if amount < 0:
        raise SpecError(ErrorCode.INSUFFICIENT_LAMPORTS, "negative transfer amount")

    src = state.accounts.get(source)
    if src is None or src.lamports < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_LAMPORTS, "insufficient lamports for transfer")
    src.lamports -= amount

    dst = state.accounts.get(destination)
    if dst is None:
        dst = Account(address=destination)
        state.accounts[destination] = dst
    if dst.lamports + amount > U64_MAX:
        raise SpecError(ErrorCode.ARITHMETIC_OVERFLOW, "destination balance overflow")
    dst.lamports += amount


def purge_empty_accounts(state: LedgerState) -> None:
    """Drop zero-lamport accounts, as the ledger does when a transaction commits."""
    for address in [a for a, acc in state.accounts.items() if acc.lamports == 0]:
        del state.accounts[address]
