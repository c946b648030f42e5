#!/usr/bin/env python3
"""Convert recorded fixtures into client-consumable YAML vector suites.

State-transition cases become runnable vectors carrying the pre-state, the
instruction in client JSON form (accounts + instruction data) and the expected
error code and state digest. Model-only vectors are mirrored as-is.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from escrow_spec.errors import ErrorCode, SpecError  # noqa: E402
from escrow_spec.idl import ix_to_client_json  # noqa: E402
from escrow_spec.state_digest import compute_state_digest  # noqa: E402
from fixtures_io import ix_from_json  # noqa: E402
from yaml_dump import write_yaml  # noqa: E402

MAPPING = {
    "instructions": "execution/instructions",
    "models": "state/models",
    "scenarios": "execution/scenarios",
}


def map_dest(rel: Path) -> Path:
    if not rel.parts:
        return Path("unmapped")
    mapped = MAPPING.get(rel.parts[0])
    if not mapped:
        return Path("unmapped") / rel
    return Path(mapped) / Path(*rel.parts[1:])


def map_error_code(name: str | None) -> int:
    if not name:
        return int(ErrorCode.SUCCESS)
    return int(ErrorCode[name])


def _client_ix(case: dict[str, Any]) -> dict[str, Any] | None:
    """Client JSON for the case's instruction, or None when it cannot be encoded."""
    try:
        ix = ix_from_json(case["ix"])
        program_id = bytes.fromhex(case["pre_state"]["program_id"])
        return ix_to_client_json(ix, program_id)
    except (SpecError, KeyError, ValueError):
        # Negative cases with malformed arguments have no wire form.
        return None


def case_to_vector(case: dict[str, Any]) -> dict[str, Any]:
    expected = case.get("expected", {})
    post_state = expected.get("post_state")
    client_ix = _client_ix(case)
    vector: dict[str, Any] = {
        "name": case.get("name", ""),
        "description": case.get("description", ""),
        "pre_state": case.get("pre_state"),
    }
    if client_ix is None:
        vector["runnable"] = False
    vector.update(
        {
            "instruction": client_ix or {},
            "expected": {
                "success": bool(expected.get("ok", False)),
                "error_code": map_error_code(expected.get("error")),
                "fee_paid": expected.get("fee_paid"),
                "state_digest": compute_state_digest(post_state) if post_state else "",
            },
        }
    )
    return vector


def convert(fixtures: Path, vectors: Path) -> int:
    vectors.mkdir(parents=True, exist_ok=True)
    count = 0
    for path in sorted(fixtures.rglob("*.json")):
        rel = path.relative_to(fixtures)
        dest = (vectors / map_dest(rel)).with_suffix(".yaml")
        dest.parent.mkdir(parents=True, exist_ok=True)

        data = json.loads(path.read_text())
        if isinstance(data, dict) and isinstance(data.get("cases"), list):
            suite = {"test_vectors": [case_to_vector(c) for c in data["cases"]]}
        elif isinstance(data, dict) and isinstance(data.get("test_vectors"), list):
            suite = data
        else:
            continue
        write_yaml(dest, suite)
        count += 1
    return count


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert fixtures to vectors")
    parser.add_argument("--fixtures", default=str(ROOT / "fixtures"))
    parser.add_argument("--vectors", default=str(ROOT / "vectors"))
    args = parser.parse_args()

    fixtures = Path(args.fixtures).resolve()
    if not fixtures.exists():
        raise SystemExit(f"fixtures dir not found: {fixtures}")

    count = convert(fixtures, Path(args.vectors).resolve())
    print(f"Wrote {count} vector suites")


if __name__ == "__main__":
    main()
