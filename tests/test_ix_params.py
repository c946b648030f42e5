"""SetFeeParams and SetMarketingParams fixtures."""

from __future__ import annotations

from dataclasses import replace

import pytest
from conftest import must_apply, submit_ix

from escrow_spec.config import MAX_MARKETING_BPS
from escrow_spec.errors import ErrorCode
from escrow_spec.events import MarketingParamsUpdated
from escrow_spec.program.accounts import load_escrow, store_escrow
from escrow_spec.state_transition import apply_ix
from escrow_spec.test_accounts import ALICE, AUTHORITY, BOB, GRACE, MARKETING
from escrow_spec.types import Instruction, InstructionType

FEE_FIXTURE = "instructions/set_fee_params.json"
MARKETING_FIXTURE = "instructions/set_marketing_params.json"


def _fee_ix(base_fee: int, fee_cap: int, signer: bytes = AUTHORITY) -> Instruction:
    return Instruction(
        ix_type=InstructionType.SET_FEE_PARAMS,
        signer=signer,
        payload={"base_fee": base_fee, "fee_cap": fee_cap},
    )


def _marketing_ix(wallet: bytes, bps: int, signer: bytes = AUTHORITY) -> Instruction:
    return Instruction(
        ix_type=InstructionType.SET_MARKETING_PARAMS,
        signer=signer,
        payload={"wallet": wallet, "bps": bps},
    )


def _ended(state):
    store_escrow(state, replace(load_escrow(state), ended=True, last_sender=ALICE))
    return state


# --- set_fee_params ---


def test_set_fee_params_keeps_current_fee_in_range(state_test_group, initialized_state) -> None:
    post, result = state_test_group(FEE_FIXTURE, "set_fee_params_success", initialized_state, _fee_ix(500, 8000))
    assert result.ok
    escrow = load_escrow(post)
    assert (escrow.base_fee, escrow.fee_cap, escrow.current_fee) == (500, 8000, 1000)
    assert post.events == []


def test_set_fee_params_raises_current_fee_to_base(state_test_group, initialized_state) -> None:
    post, _ = state_test_group(FEE_FIXTURE, "set_fee_params_clamp_up", initialized_state, _fee_ix(2000, 8000))
    assert load_escrow(post).current_fee == 2000


def test_set_fee_params_lowers_current_fee_to_cap(state_test_group, initialized_state) -> None:
    state = must_apply(initialized_state, submit_ix(ALICE))
    assert load_escrow(state).current_fee == 1007
    post, _ = state_test_group(FEE_FIXTURE, "set_fee_params_clamp_down", state, _fee_ix(100, 1003))
    assert load_escrow(post).current_fee == 1003


def test_set_fee_params_equal_bounds(state_test_group, initialized_state) -> None:
    post, result = state_test_group(FEE_FIXTURE, "set_fee_params_flat", initialized_state, _fee_ix(700, 700))
    assert result.ok
    assert load_escrow(post).current_fee == 700


@pytest.mark.parametrize(
    "name,base_fee,fee_cap",
    [
        ("set_fee_params_zero_base", 0, 5000),
        ("set_fee_params_base_above_cap", 5001, 5000),
    ],
)
def test_set_fee_params_bad_params(state_test_group, initialized_state, name, base_fee, fee_cap) -> None:
    post, result = state_test_group(FEE_FIXTURE, name, initialized_state, _fee_ix(base_fee, fee_cap))
    assert result.error.code == ErrorCode.BAD_PARAMS
    assert post is initialized_state


def test_set_fee_params_unauthorized(state_test_group, initialized_state) -> None:
    _, result = state_test_group(
        FEE_FIXTURE, "set_fee_params_unauthorized", initialized_state, _fee_ix(0, 0, signer=BOB)
    )
    assert result.error.code == ErrorCode.UNAUTHORIZED


def test_set_fee_params_after_end(state_test_group, initialized_state) -> None:
    state = _ended(initialized_state)
    _, result = state_test_group(FEE_FIXTURE, "set_fee_params_game_ended", state, _fee_ix(0, 0))
    assert result.error.code == ErrorCode.GAME_ENDED


# --- set_marketing_params ---


def test_set_marketing_params(state_test_group, initialized_state) -> None:
    post, result = state_test_group(
        MARKETING_FIXTURE, "set_marketing_params_success", initialized_state, _marketing_ix(GRACE, 250)
    )
    assert result.ok
    escrow = load_escrow(post)
    assert escrow.marketing_wallet == GRACE
    assert escrow.marketing_bps == 250
    assert post.events == [MarketingParamsUpdated(wallet=GRACE, bps=250)]


def test_set_marketing_params_at_cap(state_test_group, initialized_state) -> None:
    _, result = state_test_group(
        MARKETING_FIXTURE,
        "set_marketing_params_at_cap",
        initialized_state,
        _marketing_ix(MARKETING, MAX_MARKETING_BPS),
    )
    assert result.ok


def test_set_marketing_params_too_high(state_test_group, initialized_state) -> None:
    _, result = state_test_group(
        MARKETING_FIXTURE,
        "set_marketing_params_bps_too_high",
        initialized_state,
        _marketing_ix(MARKETING, MAX_MARKETING_BPS + 1),
    )
    assert result.error.code == ErrorCode.BPS_TOO_HIGH


def test_set_marketing_params_unauthorized(state_test_group, initialized_state) -> None:
    _, result = state_test_group(
        MARKETING_FIXTURE,
        "set_marketing_params_unauthorized",
        initialized_state,
        _marketing_ix(BOB, 100, signer=BOB),
    )
    assert result.error.code == ErrorCode.UNAUTHORIZED


def test_set_marketing_params_after_end(state_test_group, initialized_state) -> None:
    state = _ended(initialized_state)
    _, result = state_test_group(
        MARKETING_FIXTURE, "set_marketing_params_game_ended", state, _marketing_ix(GRACE, 100)
    )
    assert result.error.code == ErrorCode.GAME_ENDED


def test_old_marketing_wallet_rejected_after_update(initialized_state) -> None:
    state = must_apply(initialized_state, _marketing_ix(GRACE, 500))
    _, result = apply_ix(state, submit_ix(ALICE, marketing_wallet=MARKETING))
    assert result.error.code == ErrorCode.UNAUTHORIZED

    post = must_apply(state, submit_ix(ALICE, marketing_wallet=GRACE))
    assert post.balance_of(GRACE) == 50
