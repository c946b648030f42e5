"""Program-derived address (PDA) derivation.

A PDA is SHA-256(seeds || program_id || "ProgramDerivedAddress") that does
*not* decode to an ed25519 point, so no private key can ever sign for it. Only
the owning program can authorize on its behalf, by presenting the seeds again.
"""

from __future__ import annotations

import hashlib
from typing import Iterable, Sequence

from .config import (
    ESCROW_SEEDS,
    MAX_SEED_LEN,
    MAX_SEEDS,
    PDA_MARKER,
    PROGRAM_ID_BASE58,
    VAULT_SEEDS,
)
from .errors import ErrorCode, SpecError

_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX = {ch: i for i, ch in enumerate(_B58_ALPHABET)}

# ed25519 field prime and curve constant d = -121665/121666
_P = (1 << 255) - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P


def b58encode(data: bytes) -> str:
    value = int.from_bytes(data, "big")
    encoded = ""
    while value > 0:
        value, mod = divmod(value, 58)
        encoded = _B58_ALPHABET[mod] + encoded
    # Preserve leading zeroes as "1" characters.
    padding = 0
    for byte in data:
        if byte == 0:
            padding += 1
        else:
            break
    return "1" * padding + encoded


def b58decode(text: str) -> bytes:
    value = 0
    for ch in text:
        idx = _B58_INDEX.get(ch)
        if idx is None:
            raise ValueError(f"invalid base58 character: {ch!r}")
        value = value * 58 + idx
    padding = len(text) - len(text.lstrip("1"))
    body = value.to_bytes((value.bit_length() + 7) // 8, "big") if value else b""
    return b"\x00" * padding + body


PROGRAM_ID = b58decode(PROGRAM_ID_BASE58)


def is_on_curve(point: bytes) -> bool:
    """True when ``point`` decompresses to an ed25519 curve point."""
    if len(point) != 32:
        return False
    y = int.from_bytes(point, "little") & ((1 << 255) - 1)
    y %= _P
    y2 = y * y % _P
    u = (y2 - 1) % _P
    v = (_D * y2 + 1) % _P
    if v == 0:
        return u == 0
    x2 = u * pow(v, _P - 2, _P) % _P
    if x2 == 0:
        return True
    return pow(x2, (_P - 1) // 2, _P) == 1


def _check_seeds(seeds: Sequence[bytes]) -> None:
    if len(seeds) > MAX_SEEDS:
        raise SpecError(ErrorCode.MAX_SEED_LENGTH_EXCEEDED, "too many seeds")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise SpecError(ErrorCode.MAX_SEED_LENGTH_EXCEEDED, "seed too long")


def create_program_address(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    _check_seeds(seeds)
    h = hashlib.sha256()
    for seed in seeds:
        h.update(seed)
    h.update(program_id)
    h.update(PDA_MARKER)
    address = h.digest()
    if is_on_curve(address):
        raise SpecError(ErrorCode.INVALID_SEEDS, "derived address lies on the curve")
    return address


def find_program_address(seeds: Sequence[bytes], program_id: bytes) -> tuple[bytes, int]:
    """Search bumps 255..0 and return the first off-curve address."""
    for bump in range(255, -1, -1):
        try:
            return create_program_address([*seeds, bytes([bump])], program_id), bump
        except SpecError as exc:
            if exc.code != ErrorCode.INVALID_SEEDS:
                raise
    raise SpecError(ErrorCode.INVALID_SEEDS, "unable to find a viable program address bump")


def escrow_address(program_id: bytes = PROGRAM_ID) -> tuple[bytes, int]:
    return find_program_address(ESCROW_SEEDS, program_id)


def vault_address(program_id: bytes = PROGRAM_ID) -> tuple[bytes, int]:
    return find_program_address(VAULT_SEEDS, program_id)


def vault_signer_seeds(bump: int) -> list[bytes]:
    return [*VAULT_SEEDS, bytes([bump])]


def signer_address(signer_seeds: Iterable[bytes], program_id: bytes) -> bytes:
    """Recompute the PDA a program signs for when it presents ``signer_seeds``."""
    return create_program_address(list(signer_seeds), program_id)
