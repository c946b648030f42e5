"""Escrow program instruction handlers.

Each instruction is verified against the current state, then applied to a
deep copy. Account constraints (seeds, address and authority constraints) are
checked before the instruction body's own preconditions, matching how the
hosting framework validates accounts before running the handler.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Optional

from ..config import (
    DEFAULT_PUBKEY,
    ESCROW_ACCOUNT_SPACE,
    ESCROW_SEEDS,
    MAX_MARKETING_BPS,
    SYSTEM_PROGRAM_ID,
    U64_MAX,
    VAULT_SEEDS,
)
from ..derivation import escrow_address, vault_address
from ..encoding import encode_instruction_data
from ..errors import ErrorCode, SpecError
from ..events import (
    MarketingFeeSent,
    MarketingParamsUpdated,
    MessageSubmitted,
    TimerExtended,
    TimerStarted,
    emit,
)
from ..ledger import create_account, current_time, minimum_balance, read_balance, signers_for, transfer
from ..types import Escrow, Instruction, InstructionType, LedgerState
from . import authorization as auth
from .accounts import check_declared_addresses, escrow_exists, load_escrow, store_escrow
from .fee_engine import compute_split, escalate
from .settlement import settle
from .timer import TimerActionKind, evaluate_timer


def _pubkey(p: dict, name: str) -> bytes:
    value = p.get(name)
    if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
        raise SpecError(ErrorCode.INSTRUCTION_DID_NOT_DESERIALIZE, f"{name} must be a 32-byte address")
    return bytes(value)


def _check_args(ix: Instruction) -> dict:
    p = ix.payload
    if not isinstance(p, dict):
        raise SpecError(ErrorCode.INSTRUCTION_DID_NOT_DESERIALIZE, "instruction payload must be dict")
    # Encoding enforces presence and integer widths of every declared argument.
    encode_instruction_data(ix.ix_type, p)
    return p


def verify(state: LedgerState, ix: Instruction) -> None:
    p = _check_args(ix)
    check_declared_addresses(state, p)

    tt = ix.ix_type
    if tt == InstructionType.INITIALIZE:
        _verify_initialize(state, ix, p)
    elif tt == InstructionType.SUBMIT_MESSAGE:
        _verify_submit_message(state, ix, p)
    elif tt == InstructionType.CLAIM_PRIZE:
        _verify_claim_prize(state, ix, p)
    elif tt == InstructionType.APPROVE_PAYOUT:
        _verify_approve_payout(state, ix, p)
    elif tt == InstructionType.SET_FEE_PARAMS:
        _verify_set_fee_params(state, ix, p)
    elif tt == InstructionType.SET_MARKETING_PARAMS:
        _verify_set_marketing_params(state, ix, p)
    else:
        raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"unsupported instruction: {tt}")


def apply(state: LedgerState, ix: Instruction) -> tuple[LedgerState, Optional[int]]:
    """Apply a verified instruction; returns the new state and its return value.

    The return value is the fee paid for SUBMIT_MESSAGE and the payout amount
    for the two settlement instructions, otherwise None.
    """
    p = ix.payload
    tt = ix.ix_type
    if tt == InstructionType.INITIALIZE:
        return _apply_initialize(state, ix, p), None
    if tt == InstructionType.SUBMIT_MESSAGE:
        return _apply_submit_message(state, ix, p)
    if tt == InstructionType.CLAIM_PRIZE:
        return _apply_settlement(state, ix.signer)
    if tt == InstructionType.APPROVE_PAYOUT:
        return _apply_settlement(state, _pubkey(p, "winner"))
    if tt == InstructionType.SET_FEE_PARAMS:
        return _apply_set_fee_params(state, ix, p), None
    if tt == InstructionType.SET_MARKETING_PARAMS:
        return _apply_set_marketing_params(state, ix, p), None
    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"unsupported instruction: {tt}")


# --- INITIALIZE ---

def _verify_initialize(state: LedgerState, ix: Instruction, p: dict) -> None:
    _pubkey(p, "marketing_wallet")
    if escrow_exists(state):
        raise SpecError(ErrorCode.ACCOUNT_ALREADY_IN_USE, "escrow already initialized")
    # base_fee <= fee_cap and marketing_bps <= 2500 are deliberately not
    # checked here; only the parameter-update instructions enforce them.


def _apply_initialize(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    ns = deepcopy(state)
    authority = ix.signer
    escrow_pda, escrow_bump = escrow_address(ns.program_id)
    vault_pda, vault_bump = vault_address(ns.program_id)

    signers = signers_for(authority, ns.program_id, [[*ESCROW_SEEDS, bytes([escrow_bump])]])
    create_account(
        ns,
        funder=authority,
        address=escrow_pda,
        lamports=minimum_balance(ESCROW_ACCOUNT_SPACE),
        space=ESCROW_ACCOUNT_SPACE,
        owner=ns.program_id,
        signers=signers,
    )

    signers = signers_for(authority, ns.program_id, [[*VAULT_SEEDS, bytes([vault_bump])]])
    create_account(
        ns,
        funder=authority,
        address=vault_pda,
        lamports=minimum_balance(0),
        space=0,
        owner=SYSTEM_PROGRAM_ID,
        signers=signers,
    )

    store_escrow(
        ns,
        Escrow(
            authority=authority,
            base_fee=p["base_fee"],
            fee_cap=p["fee_cap"],
            current_fee=p["base_fee"],
            marketing_wallet=_pubkey(p, "marketing_wallet"),
            marketing_bps=p["marketing_bps"],
            messages_count=0,
            last_sender=DEFAULT_PUBKEY,
            timer_active=False,
            deadline=0,
            ended=False,
            bump=escrow_bump,
        ),
    )
    return ns


# --- SUBMIT_MESSAGE ---

def _verify_submit_message(state: LedgerState, ix: Instruction, p: dict) -> None:
    escrow = load_escrow(state)
    auth.require_marketing_wallet(_pubkey(p, "marketing_wallet"), escrow)
    auth.require_not_ended(escrow)

    # Uses the deadline as stored before this message is counted.
    if escrow.timer_active and current_time(state) > escrow.deadline:
        raise SpecError(ErrorCode.TIMER_EXPIRED, "timer expired")

    # Informational; the transfers below are the authoritative check.
    if read_balance(state, ix.signer) < escrow.current_fee:
        raise SpecError(ErrorCode.INSUFFICIENT_FEE, "payer cannot cover the current fee")


def _apply_submit_message(state: LedgerState, ix: Instruction, p: dict) -> tuple[LedgerState, int]:
    ns = deepcopy(state)
    escrow = load_escrow(ns)
    payer = ix.signer
    now = current_time(ns)
    fee_paid = escrow.current_fee
    vault, _ = vault_address(ns.program_id)
    signers = signers_for(payer, ns.program_id)

    split = compute_split(escrow.current_fee, escrow.marketing_bps)

    if split.prize_fee > 0:
        transfer(ns, payer, vault, split.prize_fee, signers)

    if split.marketing_fee > 0 and escrow.marketing_wallet != DEFAULT_PUBKEY:
        transfer(ns, payer, escrow.marketing_wallet, split.marketing_fee, signers)
        emit(ns, MarketingFeeSent(wallet=escrow.marketing_wallet, amount=split.marketing_fee))

    if escrow.messages_count + 1 > U64_MAX:
        raise SpecError(ErrorCode.ARITHMETIC_OVERFLOW, "messages_count overflow")
    escrow.messages_count += 1
    escrow.last_sender = payer

    action = evaluate_timer(escrow.messages_count, escrow.timer_active, escrow.deadline, now)
    if action.kind == TimerActionKind.ARMED:
        escrow.timer_active = True
        escrow.deadline = action.new_deadline
    elif action.kind == TimerActionKind.EXTENDED:
        escrow.deadline = action.new_deadline

    escrow.current_fee = escalate(escrow.current_fee, escrow.fee_cap)
    store_escrow(ns, escrow)

    emit(
        ns,
        MessageSubmitted(
            sender=payer,
            msg_hash=bytes(p["msg_hash"]),
            fee_paid=fee_paid,
            new_fee=escrow.current_fee,
            timestamp=now,
        ),
    )
    if action.kind == TimerActionKind.ARMED:
        emit(ns, TimerStarted(deadline=escrow.deadline))
    elif action.kind == TimerActionKind.EXTENDED:
        emit(ns, TimerExtended(new_deadline=escrow.deadline))

    return ns, fee_paid


# --- CLAIM_PRIZE / JIGSAW_APPROVE_PAYOUT ---

def _verify_claim_prize(state: LedgerState, ix: Instruction, p: dict) -> None:
    escrow = load_escrow(state)
    # Checked first so a settled game always reports ALREADY_CLAIMED.
    auth.require_not_ended(escrow, ErrorCode.ALREADY_CLAIMED)
    if not escrow.timer_active:
        raise SpecError(ErrorCode.GAME_NOT_ENDED, "timer not started")
    if current_time(state) < escrow.deadline:
        raise SpecError(ErrorCode.GAME_NOT_ENDED, "deadline not reached")
    auth.require_winner(escrow)
    auth.require_last_sender(ix.signer, escrow)


def _verify_approve_payout(state: LedgerState, ix: Instruction, p: dict) -> None:
    winner = _pubkey(p, "winner")
    escrow = load_escrow(state)
    auth.require_authority(ix.signer, escrow)
    auth.require_not_ended(escrow, ErrorCode.ALREADY_CLAIMED)
    auth.require_last_sender(winner, escrow)
    auth.require_winner(escrow)


def _apply_settlement(state: LedgerState, winner: bytes) -> tuple[LedgerState, int]:
    ns = deepcopy(state)
    escrow = load_escrow(ns)
    amount = settle(ns, escrow, winner)
    return ns, amount


# --- SET_FEE_PARAMS ---

def _verify_set_fee_params(state: LedgerState, ix: Instruction, p: dict) -> None:
    escrow = load_escrow(state)
    auth.require_authority(ix.signer, escrow)
    auth.require_not_ended(escrow)
    base_fee = p["base_fee"]
    fee_cap = p["fee_cap"]
    if not (base_fee > 0 and base_fee <= fee_cap):
        raise SpecError(ErrorCode.BAD_PARAMS, "require 0 < base_fee <= fee_cap")


def _apply_set_fee_params(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    ns = deepcopy(state)
    escrow = load_escrow(ns)
    escrow.base_fee = p["base_fee"]
    escrow.fee_cap = p["fee_cap"]
    if escrow.current_fee < escrow.base_fee:
        escrow.current_fee = escrow.base_fee
    if escrow.current_fee > escrow.fee_cap:
        escrow.current_fee = escrow.fee_cap
    store_escrow(ns, escrow)
    return ns


# --- SET_MARKETING_PARAMS ---

def _verify_set_marketing_params(state: LedgerState, ix: Instruction, p: dict) -> None:
    escrow = load_escrow(state)
    auth.require_authority(ix.signer, escrow)
    auth.require_not_ended(escrow)
    if p["bps"] > MAX_MARKETING_BPS:
        raise SpecError(ErrorCode.BPS_TOO_HIGH, "marketing bps above 2500")


def _apply_set_marketing_params(state: LedgerState, ix: Instruction, p: dict) -> LedgerState:
    ns = deepcopy(state)
    escrow = load_escrow(ns)
    escrow.marketing_wallet = bytes(p["wallet"])
    escrow.marketing_bps = p["bps"]
    store_escrow(ns, escrow)
    emit(ns, MarketingParamsUpdated(wallet=escrow.marketing_wallet, bps=escrow.marketing_bps))
    return ns
