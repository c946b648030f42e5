"""Escrow/Vault account resolution and escrow record persistence."""

from __future__ import annotations

from ..config import ESCROW_ACCOUNT_SPACE
from ..derivation import escrow_address, vault_address
from ..encoding import decode_escrow, encode_escrow
from ..errors import ErrorCode, SpecError
from ..types import Escrow, LedgerState


def escrow_key(state: LedgerState) -> bytes:
    return escrow_address(state.program_id)[0]


def vault_key(state: LedgerState) -> bytes:
    return vault_address(state.program_id)[0]


def check_declared_addresses(state: LedgerState, payload: dict) -> None:
    """Caller-supplied escrow/vault addresses must match the seed derivation."""
    declared = payload.get("escrow")
    if declared is not None and bytes(declared) != escrow_key(state):
        raise SpecError(ErrorCode.CONSTRAINT_SEEDS, "escrow address does not match seeds")
    declared = payload.get("escrow_vault")
    if declared is not None and bytes(declared) != vault_key(state):
        raise SpecError(ErrorCode.CONSTRAINT_SEEDS, "vault address does not match seeds")


def escrow_exists(state: LedgerState) -> bool:
    return escrow_key(state) in state.accounts


def load_escrow(state: LedgerState) -> Escrow:
    acc = state.accounts.get(escrow_key(state))
    if acc is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_INITIALIZED, "escrow not initialized")
    if acc.owner != state.program_id:
        raise SpecError(ErrorCode.ACCOUNT_NOT_INITIALIZED, "escrow not owned by program")
    return decode_escrow(acc.data)


def store_escrow(state: LedgerState, escrow: Escrow) -> None:
    acc = state.accounts.get(escrow_key(state))
    if acc is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_INITIALIZED, "escrow not initialized")
    data = encode_escrow(escrow)
    acc.data = data + bytes(max(0, ESCROW_ACCOUNT_SPACE - len(data)))
