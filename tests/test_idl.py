"""Interface description and client JSON tests."""

from __future__ import annotations

import json

from conftest import approve_ix, claim_ix, initialize_ix, submit_ix

from escrow_spec.config import PROGRAM_ID_BASE58, SYSTEM_PROGRAM_ID
from escrow_spec.derivation import PROGRAM_ID, b58encode, escrow_address, vault_address
from escrow_spec.encoding import decode_instruction_data
from escrow_spec.errors import ErrorCode
from escrow_spec.idl import INSTRUCTION_ACCOUNTS, build_idl, idl_json, ix_to_client_json
from escrow_spec.test_accounts import ALICE, AUTHORITY, BOB, MARKETING
from escrow_spec.types import InstructionType


def test_idl_lists_every_instruction() -> None:
    idl = build_idl()
    assert idl["name"] == "treasury_escrow"
    assert idl["metadata"]["address"] == PROGRAM_ID_BASE58
    assert [ix["name"] for ix in idl["instructions"]] == [t.value for t in InstructionType]

    init = idl["instructions"][0]
    assert [a["name"] for a in init["args"]] == ["base_fee", "fee_cap", "marketing_bps"]
    assert init["args"][2]["type"] == "u16"
    submit = idl["instructions"][1]
    assert submit["args"] == [{"name": "msg_hash", "type": {"array": ["u8", 32]}}]


def test_idl_account_and_events() -> None:
    idl = build_idl()
    fields = idl["accounts"][0]["type"]["fields"]
    assert idl["accounts"][0]["name"] == "Escrow"
    assert len(fields) == 12
    assert fields[0] == {"name": "authority", "type": "publicKey"}
    assert {"name": "deadline", "type": "i64"} in fields

    events = {e["name"]: e for e in idl["events"]}
    assert set(events) == {
        "MessageSubmitted",
        "TimerStarted",
        "TimerExtended",
        "MarketingFeeSent",
        "MarketingParamsUpdated",
        "PrizeClaimed",
    }
    bps = [f for f in events["MarketingParamsUpdated"]["fields"] if f["name"] == "bps"][0]
    assert bps["type"] == "u16"


def test_idl_errors() -> None:
    errors = {e["name"]: e for e in build_idl()["errors"]}
    assert errors["GameEnded"] == {"code": 6000, "name": "GameEnded", "msg": "Game ended"}
    assert errors["ArithmeticOverflow"]["code"] == int(ErrorCode.ARITHMETIC_OVERFLOW)
    assert len(errors) == 11


def test_idl_json_parses() -> None:
    assert json.loads(idl_json()) == build_idl()


def test_client_json_submit() -> None:
    ix = submit_ix(ALICE)
    client = ix_to_client_json(ix, PROGRAM_ID)
    assert client["program_id"] == PROGRAM_ID_BASE58
    assert client["instruction"] == "submit_message"
    by_name = {a["name"]: a for a in client["accounts"]}
    assert by_name["payer"] == {"name": "payer", "pubkey": b58encode(ALICE), "is_signer": True, "is_writable": True}
    assert by_name["escrow"]["pubkey"] == b58encode(escrow_address(PROGRAM_ID)[0])
    assert by_name["escrow_vault"]["pubkey"] == b58encode(vault_address(PROGRAM_ID)[0])
    assert by_name["marketing_wallet"]["pubkey"] == b58encode(MARKETING)
    assert by_name["system_program"]["pubkey"] == b58encode(SYSTEM_PROGRAM_ID)
    assert decode_instruction_data(bytes.fromhex(client["data_hex"])) == (
        InstructionType.SUBMIT_MESSAGE,
        {"msg_hash": b"\x01" * 32},
    )


def test_client_json_winner_roles() -> None:
    claim = ix_to_client_json(claim_ix(BOB), PROGRAM_ID)
    winner = [a for a in claim["accounts"] if a["name"] == "winner"][0]
    assert winner["pubkey"] == b58encode(BOB)
    assert winner["is_signer"]

    approve = ix_to_client_json(approve_ix(BOB), PROGRAM_ID)
    names = [a["name"] for a in approve["accounts"]]
    assert names == [n for n, _, _ in INSTRUCTION_ACCOUNTS[InstructionType.APPROVE_PAYOUT]]
    by_name = {a["name"]: a for a in approve["accounts"]}
    assert by_name["jigsaw_approver"]["pubkey"] == b58encode(AUTHORITY)
    assert not by_name["winner"]["is_signer"]
    assert by_name["winner"]["pubkey"] == b58encode(BOB)


def test_client_json_initialize() -> None:
    client = ix_to_client_json(initialize_ix(), PROGRAM_ID)
    by_name = {a["name"]: a for a in client["accounts"]}
    assert by_name["authority"]["pubkey"] == b58encode(AUTHORITY)
    assert by_name["marketing_wallet"]["is_writable"] is False
