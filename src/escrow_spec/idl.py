"""Interface description (IDL) for the escrow program and client JSON rendering.

``build_idl`` describes instructions, the Escrow account layout, events and
errors in the JSON shape client code generators consume. ``ix_to_client_json``
renders a spec ``Instruction`` as the account list + instruction data an
external implementation executes.
"""

from __future__ import annotations

import json
from dataclasses import fields
from typing import Any

from .config import PROGRAM_ID_BASE58, SYSTEM_PROGRAM_ID
from .derivation import b58encode, escrow_address, vault_address
from .encoding import (
    ESCROW_LAYOUT,
    INSTRUCTION_ARGS,
    EVENT_FIELD_KINDS,
    encode_instruction_data,
)
from .errors import PROGRAM_ERROR_MESSAGES
from .events import EVENT_TYPES
from .types import Instruction, InstructionType

IDL_NAME = "treasury_escrow"
IDL_VERSION = "0.1.0"

# Wire kind -> IDL type.
IDL_TYPE_MAP: dict[str, Any] = {
    "pubkey": "publicKey",
    "hash": {"array": ["u8", 32]},
    "bool": "bool",
    "u8": "u8",
    "u16": "u16",
    "u64": "u64",
    "i64": "i64",
}

# (name, is_writable, is_signer) per instruction, in account order.
INSTRUCTION_ACCOUNTS: dict[InstructionType, tuple[tuple[str, bool, bool], ...]] = {
    InstructionType.INITIALIZE: (
        ("authority", True, True),
        ("escrow", True, False),
        ("escrow_vault", True, False),
        ("marketing_wallet", False, False),
        ("system_program", False, False),
    ),
    InstructionType.SUBMIT_MESSAGE: (
        ("payer", True, True),
        ("escrow", True, False),
        ("escrow_vault", True, False),
        ("marketing_wallet", True, False),
        ("system_program", False, False),
    ),
    InstructionType.CLAIM_PRIZE: (
        ("winner", True, True),
        ("escrow", True, False),
        ("escrow_vault", True, False),
        ("system_program", False, False),
    ),
    InstructionType.APPROVE_PAYOUT: (
        ("jigsaw_approver", False, True),
        ("escrow", True, False),
        ("winner", True, False),
        ("escrow_vault", True, False),
        ("system_program", False, False),
    ),
    InstructionType.SET_FEE_PARAMS: (
        ("authority", True, True),
        ("escrow", True, False),
    ),
    InstructionType.SET_MARKETING_PARAMS: (
        ("authority", True, True),
        ("escrow", True, False),
        ("marketing_wallet", False, False),
    ),
}

_SIGNER_ROLES = frozenset({"authority", "payer", "jigsaw_approver"})


def _idl_fields(layout: tuple[tuple[str, str], ...]) -> list[dict[str, Any]]:
    return [{"name": name, "type": IDL_TYPE_MAP[kind]} for name, kind in layout]


def build_idl() -> dict[str, Any]:
    instructions = []
    for ix_type in InstructionType:
        instructions.append(
            {
                "name": ix_type.value,
                "accounts": [
                    {"name": name, "isMut": mut, "isSigner": signer}
                    for name, mut, signer in INSTRUCTION_ACCOUNTS[ix_type]
                ],
                "args": _idl_fields(INSTRUCTION_ARGS[ix_type]),
            }
        )

    events = []
    for event_type in EVENT_TYPES:
        events.append(
            {
                "name": event_type.__name__,
                "fields": [
                    {"name": f.name, "type": IDL_TYPE_MAP[EVENT_FIELD_KINDS.get(f.name, "u64")], "index": False}
                    for f in fields(event_type)
                ],
            }
        )

    return {
        "version": IDL_VERSION,
        "name": IDL_NAME,
        "instructions": instructions,
        "accounts": [
            {"name": "Escrow", "type": {"kind": "struct", "fields": _idl_fields(ESCROW_LAYOUT)}},
        ],
        "events": events,
        "errors": [
            {"code": int(code), "name": _camel(code.name), "msg": msg}
            for code, msg in PROGRAM_ERROR_MESSAGES.items()
        ],
        "metadata": {"address": PROGRAM_ID_BASE58},
    }


def idl_json(indent: int = 2) -> str:
    return json.dumps(build_idl(), indent=indent)


def _camel(name: str) -> str:
    return "".join(part.capitalize() for part in name.lower().split("_"))


def _resolve_account(name: str, ix: Instruction, program_id: bytes) -> bytes:
    p = ix.payload
    if name == "escrow":
        return escrow_address(program_id)[0]
    if name == "escrow_vault":
        return vault_address(program_id)[0]
    if name == "system_program":
        return SYSTEM_PROGRAM_ID
    if name == "winner":
        return ix.signer if ix.ix_type == InstructionType.CLAIM_PRIZE else bytes(p["winner"])
    if name == "marketing_wallet":
        key = "wallet" if ix.ix_type == InstructionType.SET_MARKETING_PARAMS else "marketing_wallet"
        return bytes(p[key])
    if name in _SIGNER_ROLES:
        return ix.signer
    raise ValueError(f"Unknown account role: {name}")


def ix_to_client_json(ix: Instruction, program_id: bytes) -> dict[str, Any]:
    accounts = []
    for name, mut, signer in INSTRUCTION_ACCOUNTS[ix.ix_type]:
        accounts.append(
            {
                "name": name,
                "pubkey": b58encode(_resolve_account(name, ix, program_id)),
                "is_signer": signer,
                "is_writable": mut,
            }
        )
    return {
        "program_id": b58encode(program_id),
        "instruction": ix.ix_type.value,
        "accounts": accounts,
        "data_hex": encode_instruction_data(ix.ix_type, ix.payload).hex(),
    }
