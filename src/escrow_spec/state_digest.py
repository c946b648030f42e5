"""Canonical digest of a JSON-shaped ledger state.

Layout hashed with BLAKE3-256, all integers big-endian:

    program_id[32] | unix_timestamp i64 | slot u64
    then per account, sorted by address:
    address[32] | lamports u64 | owner[32] | len(data) u64 | data

Events are output only and never part of the digest.
"""
from __future__ import annotations

import struct
from typing import Any

from blake3 import blake3

_CLOCK = struct.Struct(">qQ")
_U64 = struct.Struct(">Q")
ZERO_KEY_HEX = "00" * 32


def _unhex(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError(f"expected a hex string, got {type(value).__name__}")
    return bytes.fromhex(value.removeprefix("0x").removeprefix("0X"))


def _key(value: str | None, what: str) -> bytes:
    raw = _unhex(value)
    if len(raw) != 32:
        raise ValueError(f"{what} must be 32 bytes, got {len(raw)}")
    return raw


def compute_state_digest(post_state: dict[str, Any]) -> str:
    h = blake3()
    h.update(_key(post_state.get("program_id", ""), "program_id"))

    clock = post_state.get("clock") or {}
    h.update(_CLOCK.pack(int(clock.get("unix_timestamp", 0)), int(clock.get("slot", 0))))

    keyed = [(_key(acc.get("address", ""), "address"), acc) for acc in post_state.get("accounts", [])]
    for address, acc in sorted(keyed, key=lambda item: item[0]):
        data = _unhex(acc.get("data", ""))
        h.update(address)
        h.update(_U64.pack(int(acc.get("lamports", 0))))
        h.update(_key(acc.get("owner", ZERO_KEY_HEX), "owner"))
        h.update(_U64.pack(len(data)))
        h.update(data)
    return h.hexdigest()
