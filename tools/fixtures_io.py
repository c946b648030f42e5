"""Helpers to serialize/deserialize fixtures for the escrow model."""

from __future__ import annotations

from typing import Any

from escrow_spec.encoding import decode_escrow
from escrow_spec.errors import SpecError
from escrow_spec.events import event_to_json
from escrow_spec.program.accounts import escrow_key
from escrow_spec.types import Account, Clock, Instruction, InstructionType, LedgerState

# Payload keys carrying 32-byte values; everything else is passed through.
_BYTES_KEYS = frozenset({"marketing_wallet", "wallet", "winner", "msg_hash", "escrow", "escrow_vault"})


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def state_to_json(state: LedgerState) -> dict[str, Any]:
    result: dict[str, Any] = {
        "program_id": _bytes_to_hex(state.program_id),
        "clock": {
            "unix_timestamp": state.clock.unix_timestamp,
            "slot": state.clock.slot,
        },
        "accounts": [
            {
                "address": _bytes_to_hex(a.address),
                "lamports": a.lamports,
                "owner": _bytes_to_hex(a.owner),
                "data": _bytes_to_hex(a.data),
            }
            for a in state.accounts.values()
        ],
    }

    # Decoded view of the escrow record, for readers; the account data is authoritative.
    acc = state.accounts.get(escrow_key(state))
    if acc is not None:
        try:
            escrow = decode_escrow(acc.data)
        except SpecError:
            escrow = None
        if escrow is not None:
            result["escrow"] = {
                k: (_bytes_to_hex(v) if isinstance(v, bytes) else v)
                for k, v in vars(escrow).items()
            }

    if state.events:
        result["events"] = [event_to_json(e) for e in state.events]

    return result


def state_from_json(data: dict[str, Any]) -> LedgerState:
    clock = data.get("clock", {})
    state = LedgerState(
        program_id=_hex_to_bytes(data["program_id"]),
        clock=Clock(
            unix_timestamp=clock.get("unix_timestamp", 0),
            slot=clock.get("slot", 0),
        ),
    )
    for a in data.get("accounts", []):
        acct = Account(
            address=_hex_to_bytes(a["address"]),
            lamports=a.get("lamports", 0),
            owner=_hex_to_bytes(a.get("owner", "00" * 32)),
            data=_hex_to_bytes(a.get("data", "")) if a.get("data") else b"",
        )
        state.accounts[acct.address] = acct
    # Events are output-only and are not restored.
    return state


def _payload_to_json(payload: Any) -> Any:
    """Recursively convert a payload value, turning bytes into hex strings."""
    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray)):
        return _bytes_to_hex(bytes(payload))
    if isinstance(payload, dict):
        return {k: _payload_to_json(v) for k, v in payload.items()}
    if isinstance(payload, list):
        return [_payload_to_json(item) for item in payload]
    return payload


def ix_to_json(ix: Instruction) -> dict[str, Any]:
    return {
        "ix_type": ix.ix_type.value,
        "signer": _bytes_to_hex(ix.signer),
        "payload": _payload_to_json(ix.payload),
    }


def ix_from_json(data: dict[str, Any]) -> Instruction:
    payload: dict[str, Any] = {}
    for k, v in (data.get("payload") or {}).items():
        if k in _BYTES_KEYS and isinstance(v, str):
            payload[k] = _hex_to_bytes(v)
        else:
            payload[k] = v
    return Instruction(
        ix_type=InstructionType(data["ix_type"]),
        signer=_hex_to_bytes(data["signer"]),
        payload=payload,
    )
