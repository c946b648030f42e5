"""Core types for the treasury escrow Python spec.

The ledger is modelled as a flat map of accounts. The escrow record lives in
the data of the escrow PDA account and is decoded on demand (see
``encoding.decode_escrow``); the Vault is a plain lamport-holding account.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .config import DEFAULT_PUBKEY, SYSTEM_PROGRAM_ID


class InstructionType(Enum):
    INITIALIZE = "initialize"
    SUBMIT_MESSAGE = "submit_message"
    CLAIM_PRIZE = "claim_prize"
    APPROVE_PAYOUT = "jigsaw_approve_payout"
    SET_FEE_PARAMS = "set_fee_params"
    SET_MARKETING_PARAMS = "set_marketing_params"


@dataclass
class Instruction:
    ix_type: InstructionType
    signer: bytes
    payload: dict = field(default_factory=dict)


@dataclass
class Account:
    address: bytes
    lamports: int = 0
    owner: bytes = SYSTEM_PROGRAM_ID
    data: bytes = b""


@dataclass
class Clock:
    unix_timestamp: int = 0
    slot: int = 0


@dataclass
class Escrow:
    authority: bytes = DEFAULT_PUBKEY
    base_fee: int = 0
    fee_cap: int = 0
    current_fee: int = 0
    marketing_wallet: bytes = DEFAULT_PUBKEY
    marketing_bps: int = 0
    messages_count: int = 0
    last_sender: bytes = DEFAULT_PUBKEY
    timer_active: bool = False
    deadline: int = 0
    ended: bool = False
    bump: int = 0


@dataclass
class LedgerState:
    program_id: bytes
    accounts: dict[bytes, Account] = field(default_factory=dict)
    clock: Clock = field(default_factory=Clock)
    # Append-only event log; never read back by the program.
    events: list = field(default_factory=list)

    def balance_of(self, address: bytes) -> int:
        acc = self.accounts.get(address)
        return acc.lamports if acc is not None else 0

    def account(self, address: bytes) -> Optional[Account]:
        return self.accounts.get(address)
