"""Model-only vectors for the pure models (fee engine, timer, layouts)."""

from __future__ import annotations

import pytest

from escrow_spec.config import EXTEND_SECONDS, START_AFTER, U64_MAX
from escrow_spec.encoding import discriminator, encode_escrow
from escrow_spec.program.fee_engine import compute_split, escalate
from escrow_spec.program.timer import TimerActionKind, evaluate_timer
from escrow_spec.test_accounts import ALICE, AUTHORITY, MARKETING
from escrow_spec.types import Escrow, InstructionType

NOW = 1_700_000_000

SPLIT_CASES = [
    (1000, 1000),
    (1007, 1000),
    (1, 2500),
    (9999, 2500),
    (U64_MAX, 2500),
    (123_456_789, 0),
]

ESCALATION_CASES = [
    (1000, 5000),
    (100, 10_000),
    (4990, 5000),
    (U64_MAX, U64_MAX),
]

TIMER_CASES = [
    ("below_threshold", START_AFTER - 1, False, 0, NOW),
    ("arms", START_AFTER, False, 0, NOW),
    ("extends", START_AFTER + 1, True, NOW + 5, NOW),
    ("at_deadline", START_AFTER + 1, True, NOW, NOW),
    ("expired", START_AFTER + 1, True, NOW - 1, NOW),
]


@pytest.mark.parametrize("fee,bps", SPLIT_CASES)
def test_fee_split_vectors(vector_test_group, fee: int, bps: int) -> None:
    split = compute_split(fee, bps)
    assert split.marketing_fee + split.prize_fee == fee
    vector_test_group(
        "models/fee_split.json",
        {
            "name": f"split_{fee}_{bps}",
            "input": {"current_fee": fee, "marketing_bps": bps},
            "expected": {"marketing_fee": split.marketing_fee, "prize_fee": split.prize_fee},
        },
    )


@pytest.mark.parametrize("fee,cap", ESCALATION_CASES)
def test_escalation_vectors(vector_test_group, fee: int, cap: int) -> None:
    next_fee = escalate(fee, cap)
    assert next_fee <= cap
    vector_test_group(
        "models/fee_escalation.json",
        {
            "name": f"escalate_{fee}_{cap}",
            "input": {"current_fee": fee, "fee_cap": cap},
            "expected": {"next_fee": next_fee},
        },
    )


@pytest.mark.parametrize("name,count,active,deadline,now", TIMER_CASES)
def test_timer_vectors(vector_test_group, name, count, active, deadline, now) -> None:
    action = evaluate_timer(count, active, deadline, now)
    if action.kind != TimerActionKind.NONE:
        assert action.new_deadline == now + EXTEND_SECONDS
    vector_test_group(
        "models/timer.json",
        {
            "name": f"timer_{name}",
            "input": {"messages_count": count, "timer_active": active, "deadline": deadline, "now": now},
            "expected": {"action": action.kind.value, "new_deadline": action.new_deadline},
        },
    )


def test_layout_vectors(vector_test_group) -> None:
    escrow = Escrow(
        authority=AUTHORITY,
        base_fee=1000,
        fee_cap=5000,
        current_fee=1007,
        marketing_wallet=MARKETING,
        marketing_bps=1000,
        messages_count=1,
        last_sender=ALICE,
        bump=255,
    )
    data = encode_escrow(escrow)
    assert len(data) == 149
    vector_test_group(
        "models/layout.json",
        {
            "name": "escrow_record_after_first_message",
            "expected": {"data_hex": data.hex()},
        },
    )
    for ix_type in InstructionType:
        vector_test_group(
            "models/layout.json",
            {
                "name": f"discriminator_{ix_type.value}",
                "expected": {"data_hex": discriminator("global", ix_type.value).hex()},
            },
        )
