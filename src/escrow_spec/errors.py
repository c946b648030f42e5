"""Treasury escrow spec error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    LEDGER = 0x01
    FRAMEWORK = 0x02
    PROGRAM = 0x03
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Ledger (system program / runtime)
    ACCOUNT_ALREADY_IN_USE = 0x0001
    INSUFFICIENT_LAMPORTS = 0x0002
    MISSING_REQUIRED_SIGNATURE = 0x0003
    INVALID_SEEDS = 0x0004
    MAX_SEED_LENGTH_EXCEEDED = 0x0005

    # Framework (instruction / account validation)
    INSTRUCTION_FALLBACK_NOT_FOUND = 101
    INSTRUCTION_DID_NOT_DESERIALIZE = 102
    CONSTRAINT_SEEDS = 2006
    ACCOUNT_DISCRIMINATOR_MISMATCH = 3002
    ACCOUNT_DID_NOT_DESERIALIZE = 3003
    ACCOUNT_NOT_INITIALIZED = 3012

    # Program
    GAME_ENDED = 6000
    TIMER_EXPIRED = 6001
    INSUFFICIENT_FEE = 6002
    GAME_NOT_ENDED = 6003
    ALREADY_CLAIMED = 6004
    NOT_THE_WINNER = 6005
    NO_WINNER = 6006
    BAD_PARAMS = 6007
    BPS_TOO_HIGH = 6008
    UNAUTHORIZED = 6009
    ARITHMETIC_OVERFLOW = 6010

    # Internal
    NOT_IMPLEMENTED = 0xFF01


PROGRAM_ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.GAME_ENDED: "Game ended",
    ErrorCode.TIMER_EXPIRED: "Timer expired",
    ErrorCode.INSUFFICIENT_FEE: "Insufficient fee",
    ErrorCode.GAME_NOT_ENDED: "Game not ended",
    ErrorCode.ALREADY_CLAIMED: "Already claimed",
    ErrorCode.NOT_THE_WINNER: "Not the winner",
    ErrorCode.NO_WINNER: "No winner",
    ErrorCode.BAD_PARAMS: "Bad params",
    ErrorCode.BPS_TOO_HIGH: "Bps too high",
    ErrorCode.UNAUTHORIZED: "Unauthorized",
    ErrorCode.ARITHMETIC_OVERFLOW: "Arithmetic overflow",
}


def category_of(code: ErrorCode) -> ErrorCategory:
    if code == ErrorCode.SUCCESS:
        return ErrorCategory.SUCCESS
    if code < 100:
        return ErrorCategory.LEDGER
    if code < 6000:
        return ErrorCategory.FRAMEWORK
    if code < 0xFF00:
        return ErrorCategory.PROGRAM
    return ErrorCategory.INTERNAL


@dataclass(frozen=True)
class SpecError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__", "__notes__"))
_frozen_setattr = SpecError.__setattr__


def _spec_error_setattr(self: SpecError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


SpecError.__setattr__ = _spec_error_setattr  # type: ignore[method-assign]
