"""Authorization predicates against the stored escrow identities."""

from __future__ import annotations

from ..config import DEFAULT_PUBKEY
from ..errors import ErrorCode, SpecError
from ..types import Escrow


def is_authority(caller: bytes, escrow: Escrow) -> bool:
    return caller == escrow.authority


def is_declared_marketing_wallet(caller: bytes, escrow: Escrow) -> bool:
    return caller == escrow.marketing_wallet


def is_last_sender(caller: bytes, escrow: Escrow) -> bool:
    return caller == escrow.last_sender


def has_winner(escrow: Escrow) -> bool:
    return escrow.last_sender != DEFAULT_PUBKEY


def not_ended(escrow: Escrow) -> bool:
    return not escrow.ended


def require_authority(caller: bytes, escrow: Escrow) -> None:
    if not is_authority(caller, escrow):
        raise SpecError(ErrorCode.UNAUTHORIZED, "signer is not the escrow authority")


def require_marketing_wallet(wallet: bytes, escrow: Escrow) -> None:
    if not is_declared_marketing_wallet(wallet, escrow):
        raise SpecError(ErrorCode.UNAUTHORIZED, "marketing wallet does not match escrow")


def require_not_ended(escrow: Escrow, code: ErrorCode = ErrorCode.GAME_ENDED) -> None:
    """Reject a finished game; settlement paths report ALREADY_CLAIMED instead."""
    if not not_ended(escrow):
        raise SpecError(code, "game already ended")


def require_winner(escrow: Escrow) -> None:
    if not has_winner(escrow):
        raise SpecError(ErrorCode.NO_WINNER, "no message has been submitted")


def require_last_sender(caller: bytes, escrow: Escrow) -> None:
    if not is_last_sender(caller, escrow):
        raise SpecError(ErrorCode.NOT_THE_WINNER, "caller is not the last sender")
