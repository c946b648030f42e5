"""Shared escrow test helpers; also records every case as a JSON fixture (EEST-style)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from escrow_spec.config import LAMPORTS_PER_SOL
from escrow_spec.derivation import PROGRAM_ID
from escrow_spec.encoding import encode_instruction_data
from escrow_spec.errors import SpecError
from escrow_spec.state_transition import TransitionResult, apply_ix
from escrow_spec.test_accounts import ALICE, AUTHORITY, BOB, CAROL, DAVE, MARKETING
from escrow_spec.types import Account, Clock, Instruction, InstructionType, LedgerState
from tools.fixtures_io import ix_to_json, state_to_json

GENESIS_TIME = 1_700_000_000
BASE_FEE = 1000
FEE_CAP = 5000
MARKETING_BPS = 1000


def _try_data_hex(ix: Instruction) -> str:
    """Instruction data as hex, or empty when the arguments do not encode.

    Negative cases deliberately carry malformed arguments.
    """
    try:
        return encode_instruction_data(ix.ix_type, ix.payload).hex()
    except SpecError:
        return ""


_STATE_CASES: dict[str, list[dict[str, Any]]] = {}
_VECTOR_CASES: dict[str, list[dict[str, Any]]] = {}


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption("--output", default=None, help="write recorded cases as JSON fixtures under this directory")


def _record(rel_path: str, name: str, pre_state: LedgerState, ix: Instruction) -> tuple[LedgerState, TransitionResult]:
    post_state, result = apply_ix(pre_state, ix)
    ix_json = ix_to_json(ix)
    ix_json["data_hex"] = _try_data_hex(ix)
    _STATE_CASES.setdefault(rel_path, []).append(
        {
            "name": name,
            "pre_state": state_to_json(pre_state),
            "ix": ix_json,
            "expected": {
                "ok": result.ok,
                "error": result.error.code.name if result.error else None,
                "fee_paid": result.fee_paid,
                "payout": result.payout,
                "post_state": state_to_json(post_state),
            },
        }
    )
    return post_state, result


@pytest.fixture
def state_test_group() -> Callable[[str, str, LedgerState, Instruction], tuple[LedgerState, TransitionResult]]:
    """Apply an instruction, collect the case under a fixture path, return the outcome."""
    return _record


@pytest.fixture
def vector_test_group() -> Callable[[str, dict[str, Any]], None]:
    """Collect pre-built test_vectors under a specific fixture path."""

    def _vector_test_group(rel_path: str, vector: dict[str, Any]) -> None:
        _VECTOR_CASES.setdefault(rel_path, []).append(vector)

    return _vector_test_group


def make_base_state(now: int = GENESIS_TIME) -> LedgerState:
    state = LedgerState(program_id=PROGRAM_ID, clock=Clock(unix_timestamp=now, slot=1))
    for who in (AUTHORITY, ALICE, BOB, CAROL, DAVE):
        state.accounts[who] = Account(address=who, lamports=10 * LAMPORTS_PER_SOL)
    return state


def initialize_ix(
    base_fee: int = BASE_FEE,
    fee_cap: int = FEE_CAP,
    marketing_bps: int = MARKETING_BPS,
    marketing_wallet: bytes = MARKETING,
    signer: bytes = AUTHORITY,
) -> Instruction:
    return Instruction(
        ix_type=InstructionType.INITIALIZE,
        signer=signer,
        payload={
            "base_fee": base_fee,
            "fee_cap": fee_cap,
            "marketing_bps": marketing_bps,
            "marketing_wallet": marketing_wallet,
        },
    )


def submit_ix(payer: bytes, msg_byte: int = 1, marketing_wallet: bytes = MARKETING) -> Instruction:
    return Instruction(
        ix_type=InstructionType.SUBMIT_MESSAGE,
        signer=payer,
        payload={"msg_hash": bytes([msg_byte]) * 32, "marketing_wallet": marketing_wallet},
    )


def claim_ix(signer: bytes) -> Instruction:
    return Instruction(ix_type=InstructionType.CLAIM_PRIZE, signer=signer)


def approve_ix(winner: bytes, signer: bytes = AUTHORITY) -> Instruction:
    return Instruction(ix_type=InstructionType.APPROVE_PAYOUT, signer=signer, payload={"winner": winner})


def must_apply(state: LedgerState, ix: Instruction) -> LedgerState:
    post, result = apply_ix(state, ix)
    assert result.ok, result
    return post


def at_time(state: LedgerState, now: int) -> LedgerState:
    state.clock = Clock(unix_timestamp=now, slot=state.clock.slot + 1)
    return state


@pytest.fixture
def base_state() -> LedgerState:
    return make_base_state()


@pytest.fixture
def initialized_state() -> LedgerState:
    """Escrow initialized with base_fee=1000, fee_cap=5000 and a 10% marketing cut."""
    return must_apply(make_base_state(), initialize_ix())


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    """With ``--output DIR``, write every collected group as a JSON fixture file."""
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return
    groups = [("cases", _STATE_CASES), ("test_vectors", _VECTOR_CASES)]
    for key, collected in groups:
        for rel_path, entries in collected.items():
            target = Path(output_dir) / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(json.dumps({key: entries}, indent=2))
