"""
Report generation for escrow conformance runs.

Each run leaves two artifacts in the result directory: a JSON report for
tooling and a plain-text summary for people. Skipped vectors (model-only or
unencodable) are counted separately and never affect the pass rate.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .comparator import ComparisonResult, Divergence

REPORT_TITLE = "Treasury Escrow Conformance"
JSON_REPORT = "conformance-report.json"
TEXT_SUMMARY = "conformance-summary.txt"
RULE = "=" * 60


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


@dataclass
class TestResult:
    __test__ = False  # keep pytest from collecting it

    vector_name: str
    suite_name: str
    passed: bool
    execution_time_ms: float
    comparison: Optional[ComparisonResult] = None
    error: Optional[str] = None
    skipped: bool = False

    @property
    def counted(self) -> bool:
        return not self.skipped


@dataclass
class SuiteResult:
    suite_name: str
    execution_time_ms: float
    test_results: List[TestResult] = field(default_factory=list)

    def _counted(self) -> Iterator[TestResult]:
        return (r for r in self.test_results if r.counted)

    @property
    def total_tests(self) -> int:
        return sum(1 for _ in self._counted())

    @property
    def passed_tests(self) -> int:
        return sum(1 for r in self._counted() if r.passed)

    @property
    def failed_tests(self) -> int:
        return self.total_tests - self.passed_tests

    @property
    def skipped_tests(self) -> int:
        return len(self.test_results) - self.total_tests

    @property
    def pass_rate(self) -> float:
        return _percent(self.passed_tests, self.total_tests)

    def failures(self) -> List[TestResult]:
        return [r for r in self._counted() if not r.passed]


@dataclass
class ConformanceReport:
    timestamp: str
    clients: List[str]
    reference_client: str
    execution_time_ms: float
    suite_results: List[SuiteResult]
    divergences: List[Divergence]

    @property
    def total_tests(self) -> int:
        return sum(s.total_tests for s in self.suite_results)

    @property
    def total_passed(self) -> int:
        return sum(s.passed_tests for s in self.suite_results)

    @property
    def total_failed(self) -> int:
        return sum(s.failed_tests for s in self.suite_results)

    @property
    def total_skipped(self) -> int:
        return sum(s.skipped_tests for s in self.suite_results)

    @property
    def pass_rate(self) -> float:
        return _percent(self.total_passed, self.total_tests)

    @property
    def ok(self) -> bool:
        return self.total_failed == 0


def _divergence_to_dict(div: Divergence) -> Dict[str, Any]:
    data = asdict(div)
    # Outcome values may be bools or ints; the report keeps them as text.
    data["expected"] = str(div.expected)
    data["actual"] = str(div.actual)
    return data


def _suite_to_dict(suite: SuiteResult) -> Dict[str, Any]:
    return {
        "suite_name": suite.suite_name,
        "total_tests": suite.total_tests,
        "passed_tests": suite.passed_tests,
        "failed_tests": suite.failed_tests,
        "skipped_tests": suite.skipped_tests,
        "execution_time_ms": suite.execution_time_ms,
        "pass_rate": suite.pass_rate,
        "failures": [
            {"vector_name": r.vector_name, "error": r.error} for r in suite.failures()
        ],
    }


class ReportGenerator:
    """Builds a ConformanceReport and renders it to the result directory."""

    def __init__(self, result_dir: str):
        self.result_dir = Path(result_dir)
        self.result_dir.mkdir(parents=True, exist_ok=True)

    def generate_report(
        self,
        suite_results: List[SuiteResult],
        clients: List[str],
        reference_client: str,
        execution_time_ms: float,
    ) -> ConformanceReport:
        divergences: List[Divergence] = []
        for suite in suite_results:
            for result in suite.test_results:
                if result.comparison is not None:
                    divergences.extend(result.comparison.divergences)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        return ConformanceReport(stamp, clients, reference_client, execution_time_ms, suite_results, divergences)

    def _write(self, filename: str, text: str) -> str:
        path = self.result_dir / filename
        path.write_text(text)
        return str(path)

    def write_json_report(self, report: ConformanceReport, filename: str = JSON_REPORT) -> str:
        return self._write(filename, json.dumps(self.report_to_dict(report), indent=2))

    def write_summary(self, report: ConformanceReport, filename: str = TEXT_SUMMARY) -> str:
        return self._write(filename, "\n".join(self.summary_lines(report)) + "\n")

    def summary_lines(self, report: ConformanceReport) -> List[str]:
        counts = [
            ("Vectors run", report.total_tests),
            ("Passed", report.total_passed),
            ("Failed", report.total_failed),
            ("Skipped", report.total_skipped),
            ("Divergences", len(report.divergences)),
        ]
        lines = [RULE, REPORT_TITLE, RULE]
        lines.append(f"{report.timestamp}  reference={report.reference_client}  clients={','.join(report.clients)}")
        lines.append("")
        lines.extend(f"{label:<12} {value}" for label, value in counts)
        lines.append(f"{'Pass rate':<12} {report.pass_rate:.1f}% in {report.execution_time_ms:.0f}ms")
        lines.append("")

        for suite in report.suite_results:
            tag = "PASS" if suite.failed_tests == 0 else "FAIL"
            line = f"[{tag}] {suite.suite_name}: {suite.passed_tests}/{suite.total_tests}"
            if suite.skipped_tests:
                line += f" (+{suite.skipped_tests} skipped)"
            lines.append(line)
            for failure in suite.failures():
                lines.append(f"    {failure.vector_name}: {failure.error or 'outcome diverged'}")

        if report.divergences:
            lines += ["", "Divergences:"]
            for div in report.divergences:
                lines.append(
                    f"  {div.vector_name}.{div.field} [{div.client} vs {div.reference_client}] "
                    f"{div.actual!r} != {div.expected!r}"
                )
                if div.details:
                    lines.append(f"    {div.details}")
        lines.append(RULE)
        return lines

    def print_summary(self, report: ConformanceReport, limit: int = 10) -> None:
        shown = report.divergences[:limit]
        print(f"\n{REPORT_TITLE}: {report.total_passed}/{report.total_tests} passed, "
              f"{report.total_failed} failed, {report.total_skipped} skipped")
        for div in shown:
            print(f"  ! {div.vector_name} {div.field} on {div.client}")
        hidden = len(report.divergences) - len(shown)
        if hidden > 0:
            print(f"  ... {hidden} more divergences in {self.result_dir / JSON_REPORT}")
        print("PASSED" if report.ok else "FAILED")

    def report_to_dict(self, report: ConformanceReport) -> Dict[str, Any]:
        return {
            "title": REPORT_TITLE,
            "timestamp": report.timestamp,
            "clients": report.clients,
            "reference_client": report.reference_client,
            "execution_time_ms": report.execution_time_ms,
            "totals": {
                "suites": len(report.suite_results),
                "tests": report.total_tests,
                "passed": report.total_passed,
                "failed": report.total_failed,
                "skipped": report.total_skipped,
                "divergences": len(report.divergences),
            },
            "suite_results": [_suite_to_dict(s) for s in report.suite_results],
            "divergences": [_divergence_to_dict(d) for d in report.divergences],
        }
