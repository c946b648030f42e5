"""Settlement: one-shot sweep of the Vault to the winner.

Shared by ClaimPrize and the authority payout. ``ended`` is persisted before
any lamports move, so a second settlement can never observe a live game.
"""

from __future__ import annotations

from ..derivation import signer_address, vault_address, vault_signer_seeds
from ..events import PrizeClaimed, emit
from ..ledger import read_balance, transfer
from ..types import Escrow, LedgerState
from .accounts import store_escrow


def settle(state: LedgerState, escrow: Escrow, winner: bytes) -> int:
    """Mark the escrow ended, move the full Vault balance to ``winner``, return it."""
    escrow.ended = True
    store_escrow(state, escrow)

    vault, bump = vault_address(state.program_id)
    amount = read_balance(state, vault)

    # The Vault signs by re-deriving its address from seeds; the winner never signs.
    vault_signer = signer_address(vault_signer_seeds(bump), state.program_id)
    transfer(state, vault, winner, amount, frozenset({vault_signer}))

    emit(state, PrizeClaimed(winner=winner, amount=amount))
    return amount
