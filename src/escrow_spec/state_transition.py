"""State transition entrypoints for the treasury escrow spec."""

from __future__ import annotations

import logging
from typing import Optional

from .errors import ErrorCode, SpecError
from .ledger import purge_empty_accounts
from .program import escrow as program_escrow
from .types import Instruction, InstructionType, LedgerState

logger = logging.getLogger(__name__)

_SETTLEMENT_TYPES = frozenset({
    InstructionType.CLAIM_PRIZE,
    InstructionType.APPROVE_PAYOUT,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(
        self,
        ok: bool,
        error: Optional[SpecError] = None,
        fee_paid: Optional[int] = None,
        payout: Optional[int] = None,
    ):
        self.ok = ok
        self.error = error
        self.fee_paid = fee_paid
        self.payout = payout

    @classmethod
    def success(cls, fee_paid: Optional[int] = None, payout: Optional[int] = None) -> "TransitionResult":
        return cls(True, None, fee_paid=fee_paid, payout=payout)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)

    def __repr__(self) -> str:
        if self.ok:
            return f"TransitionResult(ok, fee_paid={self.fee_paid}, payout={self.payout})"
        return f"TransitionResult(failed, {self.error})"


def _dispatch_verify(state: LedgerState, ix: Instruction) -> None:
    if isinstance(ix.ix_type, InstructionType):
        return program_escrow.verify(state, ix)
    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {ix.ix_type}")


def _dispatch_apply(state: LedgerState, ix: Instruction) -> tuple[LedgerState, Optional[int]]:
    if isinstance(ix.ix_type, InstructionType):
        return program_escrow.apply(state, ix)
    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {ix.ix_type}")


def verify_ix(state: LedgerState, ix: Instruction) -> TransitionResult:
    """Check every precondition of ``ix`` without touching ``state``."""
    try:
        _dispatch_verify(state, ix)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def _execute(state: LedgerState, ix: Instruction) -> tuple[LedgerState, TransitionResult]:
    _dispatch_verify(state, ix)
    working, value = _dispatch_apply(state, ix)
    if ix.ix_type == InstructionType.SUBMIT_MESSAGE:
        return working, TransitionResult.success(fee_paid=value)
    if ix.ix_type in _SETTLEMENT_TYPES:
        logger.info("escrow settled by %s: %d lamports paid out", ix.ix_type.value, value)
        return working, TransitionResult.success(payout=value)
    return working, TransitionResult.success()


def apply_ix(state: LedgerState, ix: Instruction) -> tuple[LedgerState, TransitionResult]:
    """Apply a single instruction as its own ledger transaction.

    Failed-instruction semantics: the original ``state`` is returned unchanged;
    no transfer, record update or event from the failed instruction survives.
    """
    try:
        working, result = _execute(state, ix)
    except SpecError as exc:
        logger.debug("%s rejected: %s", ix.ix_type.value, exc)
        return state, TransitionResult.failure(exc)

    purge_empty_accounts(working)
    return working, result


def apply_batch(state: LedgerState, ixs: list[Instruction]) -> tuple[LedgerState, list[TransitionResult]]:
    """Apply several instructions as one ledger transaction (all-or-nothing).

    If any instruction fails, the returned state is the original one and the
    result list ends with that failure.
    """
    working = state
    results: list[TransitionResult] = []
    for ix in ixs:
        try:
            working, result = _execute(working, ix)
        except SpecError as exc:
            logger.debug("batch rejected at %s: %s", ix.ix_type.value, exc)
            results.append(TransitionResult.failure(exc))
            return state, results
        results.append(result)

    if working is not state:
        purge_empty_accounts(working)
    return working, results
