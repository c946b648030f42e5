"""Replay recorded fixture cases through the Python model and report drift."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from escrow_spec.state_transition import apply_ix  # noqa: E402
from fixtures_io import ix_from_json, state_from_json, state_to_json  # noqa: E402

# Amount fields are checked only when the case recorded them.
AMOUNT_FIELDS = ("fee_paid", "payout")


def _first_mismatch(case: dict) -> str | None:
    post_state, result = apply_ix(state_from_json(case["pre_state"]), ix_from_json(case["ix"]))
    expected = case["expected"]

    if result.ok != expected["ok"]:
        return "ok_mismatch"
    if (result.error.code.name if result.error else None) != expected["error"]:
        return "error_mismatch"
    for field in AMOUNT_FIELDS:
        if field in expected and getattr(result, field) != expected[field]:
            return f"{field}_mismatch"
    if compute_state_digest(state_to_json(post_state)) != compute_state_digest(expected["post_state"]):
        return "state_digest_mismatch"
    return None


def check_state_cases(path: Path) -> list[str]:
    failures = []
    for case in json.loads(Path(path).read_text()).get("cases", []):
        mismatch = _first_mismatch(case)
        if mismatch:
            failures.append(f"{case['name']}: {mismatch}")
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--fixtures", type=Path, default=ROOT / "fixtures")
    args = parser.parse_args()

    failures: list[str] = []
    checked = 0
    for path in sorted(args.fixtures.rglob("*.json")):
        data = json.loads(path.read_text())
        if isinstance(data, dict) and "cases" in data:
            checked += 1
            failures.extend(f"{path.relative_to(args.fixtures)}::{f}" for f in check_state_cases(path))

    for failure in failures:
        print("FAIL", failure)
    if failures:
        raise SystemExit(1)
    print(f"{checked} fixture files replayed cleanly")


if __name__ == "__main__":
    main()
