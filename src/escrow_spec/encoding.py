"""Persisted-layout and wire-format encoding.

All integers are little-endian and fixed-width. Accounts, instructions and
events are prefixed with an 8-byte discriminator: the first 8 bytes of
SHA-256 over ``"account:<Name>"``, ``"global:<name>"`` or ``"event:<Name>"``.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, fields
from typing import Any

from .config import (
    DISCRIMINATOR_LEN,
    ESCROW_ACCOUNT_SPACE,
    I64_MAX,
    I64_MIN,
    MSG_HASH_LEN,
    PUBKEY_LEN,
    U8_MAX,
    U16_MAX,
    U64_MAX,
)
from .errors import ErrorCode, SpecError
from .events import EVENT_TYPES
from .types import Escrow, InstructionType


def discriminator(namespace: str, name: str) -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode()).digest()[:DISCRIMINATOR_LEN]


ESCROW_DISCRIMINATOR = discriminator("account", "Escrow")

# Field name -> wire kind, in declaration order.
ESCROW_LAYOUT: tuple[tuple[str, str], ...] = (
    ("authority", "pubkey"),
    ("base_fee", "u64"),
    ("fee_cap", "u64"),
    ("current_fee", "u64"),
    ("marketing_wallet", "pubkey"),
    ("marketing_bps", "u16"),
    ("messages_count", "u64"),
    ("last_sender", "pubkey"),
    ("timer_active", "bool"),
    ("deadline", "i64"),
    ("ended", "bool"),
    ("bump", "u8"),
)

INSTRUCTION_ARGS: dict[InstructionType, tuple[tuple[str, str], ...]] = {
    InstructionType.INITIALIZE: (("base_fee", "u64"), ("fee_cap", "u64"), ("marketing_bps", "u16")),
    InstructionType.SUBMIT_MESSAGE: (("msg_hash", "hash"),),
    InstructionType.CLAIM_PRIZE: (),
    InstructionType.APPROVE_PAYOUT: (),
    InstructionType.SET_FEE_PARAMS: (("base_fee", "u64"), ("fee_cap", "u64")),
    InstructionType.SET_MARKETING_PARAMS: (("wallet", "pubkey"), ("bps", "u16")),
}

# Wire kind of each event field; unlisted ints are u64.
EVENT_FIELD_KINDS: dict[str, str] = {
    "sender": "pubkey",
    "wallet": "pubkey",
    "winner": "pubkey",
    "msg_hash": "hash",
    "timestamp": "i64",
    "deadline": "i64",
    "new_deadline": "i64",
    "bps": "u16",
}

_INT_RANGES: dict[str, tuple[int, int, int]] = {
    # kind -> (size, min, max)
    "u8": (1, 0, U8_MAX),
    "u16": (2, 0, U16_MAX),
    "u64": (8, 0, U64_MAX),
    "i64": (8, I64_MIN, I64_MAX),
}


@dataclass
class Writer:
    buf: bytearray

    def write_int(self, kind: str, v: int) -> None:
        size, lo, hi = _INT_RANGES[kind]
        if not isinstance(v, int) or isinstance(v, bool) or not (lo <= v <= hi):
            raise SpecError(ErrorCode.INSTRUCTION_DID_NOT_DESERIALIZE, f"value out of range for {kind}")
        self.buf.extend(int(v).to_bytes(size, "little", signed=lo < 0))

    def write_bool(self, v: bool) -> None:
        self.buf.append(1 if v else 0)

    def write_fixed(self, name: str, v: bytes, size: int) -> None:
        if not isinstance(v, (bytes, bytearray)) or len(v) != size:
            raise SpecError(ErrorCode.INSTRUCTION_DID_NOT_DESERIALIZE, f"{name} must be {size} bytes")
        self.buf.extend(v)

    def write(self, kind: str, name: str, v: Any) -> None:
        if kind == "pubkey":
            self.write_fixed(name, v, PUBKEY_LEN)
        elif kind == "hash":
            self.write_fixed(name, v, MSG_HASH_LEN)
        elif kind == "bool":
            self.write_bool(v)
        else:
            self.write_int(kind, v)


@dataclass
class Reader:
    data: bytes
    pos: int = 0
    error: ErrorCode = ErrorCode.ACCOUNT_DID_NOT_DESERIALIZE

    def _take(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise SpecError(self.error, "unexpected end of data")
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def read(self, kind: str) -> Any:
        if kind == "pubkey":
            return bytes(self._take(PUBKEY_LEN))
        if kind == "hash":
            return bytes(self._take(MSG_HASH_LEN))
        if kind == "bool":
            b = self._take(1)[0]
            if b not in (0, 1):
                raise SpecError(self.error, "invalid bool")
            return b == 1
        size, lo, _ = _INT_RANGES[kind]
        return int.from_bytes(self._take(size), "little", signed=lo < 0)

    def remaining(self) -> int:
        return len(self.data) - self.pos


# --- Escrow record ---


def encode_escrow(escrow: Escrow) -> bytes:
    w = Writer(bytearray(ESCROW_DISCRIMINATOR))
    for name, kind in ESCROW_LAYOUT:
        w.write(kind, name, getattr(escrow, name))
    return bytes(w.buf)


def decode_escrow(data: bytes) -> Escrow:
    if len(data) < DISCRIMINATOR_LEN:
        raise SpecError(ErrorCode.ACCOUNT_DID_NOT_DESERIALIZE, "escrow data too short")
    if bytes(data[:DISCRIMINATOR_LEN]) != ESCROW_DISCRIMINATOR:
        raise SpecError(ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH, "escrow discriminator mismatch")
    if len(data) < ESCROW_ACCOUNT_SPACE:
        raise SpecError(ErrorCode.ACCOUNT_DID_NOT_DESERIALIZE, "escrow data too short")
    r = Reader(bytes(data), pos=DISCRIMINATOR_LEN)
    values = {name: r.read(kind) for name, kind in ESCROW_LAYOUT}
    return Escrow(**values)


# --- Instruction data ---


def encode_instruction_data(ix_type: InstructionType, args: dict[str, Any]) -> bytes:
    w = Writer(bytearray(discriminator("global", ix_type.value)))
    for name, kind in INSTRUCTION_ARGS[ix_type]:
        if name not in args:
            raise SpecError(ErrorCode.INSTRUCTION_DID_NOT_DESERIALIZE, f"missing argument {name}")
        w.write(kind, name, args[name])
    return bytes(w.buf)


def decode_instruction_data(data: bytes) -> tuple[InstructionType, dict[str, Any]]:
    if len(data) < DISCRIMINATOR_LEN:
        raise SpecError(ErrorCode.INSTRUCTION_FALLBACK_NOT_FOUND, "instruction data too short")
    tag = bytes(data[:DISCRIMINATOR_LEN])
    for ix_type in InstructionType:
        if discriminator("global", ix_type.value) == tag:
            break
    else:
        raise SpecError(ErrorCode.INSTRUCTION_FALLBACK_NOT_FOUND, "unknown instruction discriminator")

    r = Reader(bytes(data), pos=DISCRIMINATOR_LEN, error=ErrorCode.INSTRUCTION_DID_NOT_DESERIALIZE)
    args = {name: r.read(kind) for name, kind in INSTRUCTION_ARGS[ix_type]}
    if r.remaining():
        raise SpecError(ErrorCode.INSTRUCTION_DID_NOT_DESERIALIZE, "trailing instruction data")
    return ix_type, args


# --- Events ---


def encode_event(event: object) -> bytes:
    if not isinstance(event, EVENT_TYPES):
        raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"unknown event type {type(event).__name__}")
    w = Writer(bytearray(discriminator("event", type(event).__name__)))
    for f in fields(event):
        w.write(EVENT_FIELD_KINDS.get(f.name, "u64"), f.name, getattr(event, f.name))
    return bytes(w.buf)
