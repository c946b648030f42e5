"""
Comparison of escrow program outcomes across implementations.

An outcome is the JSON object a client returns from ``/ix/execute``:
``success``, ``error_code``, ``state_digest`` and, for settlement and
message submission, ``fee_paid`` / ``payout``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .config import REFERENCE_CLIENT

Outcome = Mapping[str, Any]

# Always compared; a missing value means the default.
REQUIRED_FIELDS = {"success": True, "error_code": 0}
# Compared only when both sides report a value.
OPTIONAL_FIELDS = ("state_digest", "fee_paid", "payout")
OUTCOME_FIELDS = tuple(REQUIRED_FIELDS) + OPTIONAL_FIELDS

EXPECTED_SOURCE = "expected"


@dataclass
class Divergence:
    field: str
    expected: Any
    actual: Any
    client: str
    reference_client: str
    vector_name: str
    details: Optional[str] = None


@dataclass
class ComparisonResult:
    success: bool
    divergences: List[Divergence] = field(default_factory=list)
    clients_compared: List[str] = field(default_factory=list)

    @classmethod
    def of(cls, divergences: List[Divergence], clients: Iterable[str]) -> "ComparisonResult":
        return cls(not divergences, divergences, list(clients))

    @property
    def has_divergences(self) -> bool:
        return bool(self.divergences)

    def merge(self, other: "ComparisonResult") -> "ComparisonResult":
        return ComparisonResult.of(self.divergences + other.divergences, self.clients_compared)


def _describe(name: str, expected: Any, actual: Any) -> Optional[str]:
    if name == "error_code" and isinstance(expected, int) and isinstance(actual, int):
        return f"Error code mismatch: expected 0x{expected:04x}, got 0x{actual:04x}"
    if name == "state_digest":
        return "State digest mismatch after execution"
    return None


def _comparable(reference: Outcome, actual: Outcome) -> Iterator[Tuple[str, Any, Any]]:
    for name, default in REQUIRED_FIELDS.items():
        yield name, reference.get(name, default), actual.get(name, default)
    for name in OPTIONAL_FIELDS:
        ref_value, act_value = reference.get(name), actual.get(name)
        if ref_value in (None, "") or act_value in (None, ""):
            continue
        yield name, ref_value, act_value


class ResultComparator:
    """Compares client outcomes with a reference client or with recorded expectations."""

    def __init__(self, reference_client: str = REFERENCE_CLIENT):
        self.reference_client = reference_client

    def _reference_of(self, outcomes: Mapping[str, Any], what: str) -> Any:
        found = outcomes.get(self.reference_client)
        if not found:
            raise ValueError(f"Reference client '{self.reference_client}' not in {what}")
        return found

    def compare_results(self, results: Dict[str, Dict[str, Any]], vector_name: str) -> ComparisonResult:
        """Compare every client's outcome with the reference client's."""
        if len(results) < 2:
            return ComparisonResult.of([], results)
        reference = self._reference_of(results, "results")
        divergences: List[Divergence] = []
        for client, outcome in results.items():
            if client != self.reference_client:
                divergences += self._compare_single(reference, outcome, client, self.reference_client, vector_name)
        return ComparisonResult.of(divergences, results)

    def compare_expected(
        self,
        expected: Outcome,
        results: Dict[str, Dict[str, Any]],
        vector_name: str,
    ) -> ComparisonResult:
        """Compare every client's outcome with the vector's recorded expectation."""
        divergences: List[Divergence] = []
        for client, outcome in results.items():
            divergences += self._compare_single(expected, outcome, client, EXPECTED_SOURCE, vector_name)
        return ComparisonResult.of(divergences, results)

    def _compare_single(
        self,
        reference: Outcome,
        actual: Outcome,
        client: str,
        reference_name: str,
        vector_name: str,
    ) -> List[Divergence]:
        return [
            Divergence(name, ref_value, act_value, client, reference_name, vector_name,
                       _describe(name, ref_value, act_value))
            for name, ref_value, act_value in _comparable(reference, actual)
            if ref_value != act_value
        ]

    def compare_state_digests(self, digests: Dict[str, str], vector_name: str) -> ComparisonResult:
        """Check that every client loaded a pre-state with the reference client's digest."""
        if len(digests) < 2:
            return ComparisonResult.of([], digests)
        want = self._reference_of(digests, "digests")
        divergences = [
            Divergence("state_digest", want, got, client, self.reference_client, vector_name,
                       "State digest mismatch")
            for client, got in digests.items()
            if got != want
        ]
        return ComparisonResult.of(divergences, digests)
