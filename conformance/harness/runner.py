#!/usr/bin/env python3
"""
Escrow conformance runner.

Replays YAML vector suites against every configured program implementation
and reports where their outcomes diverge from the reference client or from
the outcome recorded in the vector. Run with
``python -m conformance.harness.runner``.

Each implementation exposes:

  POST /state/reset   -> {"success": bool}
  POST /state/load    <- pre_state JSON   -> {"success": bool, "state_digest": hex}
  GET  /state/digest  -> {"state_digest": hex}
  POST /ix/execute    <- {"instruction": client ix JSON}
                      -> {"success", "error_code", "state_digest", "fee_paid", "payout"}
"""

import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp
import click
import yaml

from .comparator import ComparisonResult, ResultComparator
from .config import CANDIDATE_CLIENT, REFERENCE_CLIENT, ClientConfig, HarnessConfig
from .reporter import ConformanceReport, ReportGenerator, SuiteResult, TestResult

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)
VECTOR_SUFFIXES = (".yaml", ".yml")


def _elapsed_ms(since: float) -> float:
    return (time.monotonic() - since) * 1000


class ConformanceClient:
    """One program implementation reachable over HTTP."""

    def __init__(self, config: ClientConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.config.timeout))

    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def _call(self, method: str, path: str, payload: Any = None) -> Optional[Dict[str, Any]]:
        url = self.config.endpoint.rstrip("/") + path
        try:
            async with self.session.request(method, url, json=payload) as resp:
                return await resp.json()
        except TRANSPORT_ERRORS as e:
            logger.error("[%s] %s %s failed: %s", self.config.name, method, path, e)
            return None

    async def reset_state(self) -> bool:
        reply = await self._call("POST", "/state/reset")
        return bool(reply and reply.get("success"))

    async def load_state(self, state: Dict[str, Any]) -> Optional[str]:
        """Load a pre-state. Returns its digest, or None when the client refused it."""
        reply = await self._call("POST", "/state/load", state)
        if not reply or not reply.get("success"):
            return None
        return reply.get("state_digest")

    async def get_state_digest(self) -> Optional[str]:
        reply = await self._call("GET", "/state/digest")
        return reply.get("state_digest") if reply else None

    async def execute_ix(self, instruction: Dict[str, Any]) -> Dict[str, Any]:
        reply = await self._call("POST", "/ix/execute", {"instruction": instruction})
        if reply is None:
            return {"success": False, "transport_error": f"{self.config.name} unreachable"}
        return reply


class ConformanceHarness:
    """Drives every enabled client through the same vectors."""

    def __init__(self, config: HarnessConfig):
        self.config = config
        self.clients: Dict[str, ConformanceClient] = {}
        self.comparator = ResultComparator(reference_client=REFERENCE_CLIENT)
        self.reporter = ReportGenerator(config.result_dir)

    async def setup(self) -> None:
        for key, client_config in self.config.get_enabled_clients().items():
            client = ConformanceClient(client_config)
            await client.connect()
            self.clients[key] = client
            logger.info("using %s (%s) at %s", key, client_config.name, client_config.endpoint)

    async def teardown(self) -> None:
        await asyncio.gather(*(client.close() for client in self.clients.values()))

    async def _each(self, call) -> Dict[str, Any]:
        keys = list(self.clients)
        replies = await asyncio.gather(*(call(self.clients[key]) for key in keys))
        return dict(zip(keys, replies))

    async def reset_all(self) -> bool:
        replies = await self._each(lambda client: client.reset_state())
        return all(replies.values())

    async def load_state_all(self, state: Dict[str, Any]) -> ComparisonResult:
        """Load the same pre-state everywhere and check the digests agree."""
        replies = await self._each(lambda client: client.load_state(state))
        for key in (k for k, digest in replies.items() if not digest):
            logger.error("%s refused the pre-state", key)
        loaded = {key: digest for key, digest in replies.items() if digest}
        return self.comparator.compare_state_digests(loaded, "state_load")

    async def execute_ix_all(self, instruction: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        return await self._each(lambda client: client.execute_ix(instruction))

    def _compare(self, vector: Dict[str, Any], outcomes: Dict[str, Dict[str, Any]]) -> ComparisonResult:
        name = vector.get("name", "unknown")
        comparison = self.comparator.compare_results(outcomes, name)
        expected = vector.get("expected")
        if self.config.check_expected and expected:
            comparison = comparison.merge(self.comparator.compare_expected(expected, outcomes, name))
        return comparison

    async def _execute_vector(self, vector: Dict[str, Any]) -> Dict[str, Any]:
        """Outcome fields for a TestResult; raises ValueError when a client drops out."""
        if not await self.reset_all():
            return {"passed": False, "error": "Failed to reset clients"}
        if "pre_state" in vector:
            loaded = await self.load_state_all(vector["pre_state"])
            if loaded.has_divergences:
                return {"passed": False, "comparison": loaded, "error": "State load divergence"}
        outcomes = await self.execute_ix_all(vector["instruction"])
        comparison = self._compare(vector, outcomes)
        return {"passed": not comparison.has_divergences, "comparison": comparison}

    async def run_vector(self, vector: Dict[str, Any], suite_name: str = "") -> TestResult:
        name = vector.get("name", "unknown")
        started = time.monotonic()
        if vector.get("runnable") is False or not vector.get("instruction"):
            fields: Dict[str, Any] = {"passed": True, "skipped": True}
        else:
            try:
                fields = await self._execute_vector(vector)
            except ValueError as e:
                logger.exception("vector %s could not be compared", name)
                fields = {"passed": False, "error": str(e)}
        return TestResult(name, suite_name, execution_time_ms=_elapsed_ms(started), **fields)

    async def run_suite(self, suite_path: str) -> SuiteResult:
        path = Path(suite_path)
        started = time.monotonic()
        suite = yaml.safe_load(path.read_text()) or {}
        logger.info("suite %s: %d vectors", path.stem, len(suite.get("test_vectors", [])))

        results: List[TestResult] = []
        for vector in suite.get("test_vectors", []):
            result = await self.run_vector(vector, path.stem)
            results.append(result)
            label = "SKIP" if result.skipped else "PASS" if result.passed else "FAIL"
            logger.info("  [%s] %s", label, result.vector_name)
            if self.config.stop_on_first_failure and not result.passed:
                break
        return SuiteResult(path.stem, _elapsed_ms(started), results)

    async def run_all(self, vector_paths: List[str]) -> ConformanceReport:
        started = time.monotonic()
        suites = [await self.run_suite(p) for p in vector_paths]
        return self.reporter.generate_report(
            suites, list(self.clients), self.comparator.reference_client, _elapsed_ms(started)
        )


def find_vector_files(vector_dir: str) -> List[str]:
    root = Path(vector_dir)
    if root.is_file():
        return [str(root)]
    return sorted(str(p) for p in root.rglob("*") if p.suffix in VECTOR_SUFFIXES)


async def _run(config: HarnessConfig, vector_files: List[str]) -> int:
    harness = ConformanceHarness(config)
    await harness.setup()
    try:
        report = await harness.run_all(vector_files)
    finally:
        await harness.teardown()
    harness.reporter.write_json_report(report)
    harness.reporter.write_summary(report)
    harness.reporter.print_summary(report)
    return 0 if report.ok else 1


@click.command()
@click.option("--vectors", default=None, help="Vectors directory or a single YAML suite")
@click.option("--reference-endpoint", default=None, help="Reference implementation URL")
@click.option("--candidate-endpoint", default=None, help="Candidate implementation URL")
@click.option("--result-dir", default=None, help="Directory to write reports to")
@click.option("--no-expected", is_flag=True, help="Only compare clients with each other")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--stop-on-failure", is_flag=True, help="Stop on first failing vector")
def main(
    vectors: Optional[str],
    reference_endpoint: Optional[str],
    candidate_endpoint: Optional[str],
    result_dir: Optional[str],
    no_expected: bool,
    verbose: bool,
    stop_on_failure: bool,
) -> None:
    """Run treasury escrow conformance vectors."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s [%(levelname)s] %(message)s")

    config = HarnessConfig.from_env()
    endpoints = {REFERENCE_CLIENT: reference_endpoint, CANDIDATE_CLIENT: candidate_endpoint}
    for key, endpoint in endpoints.items():
        if endpoint:
            config.clients[key].endpoint = endpoint
    config.result_dir = result_dir or config.result_dir
    config.check_expected = config.check_expected and not no_expected
    config.stop_on_first_failure = config.stop_on_first_failure or stop_on_failure
    config.verbose = config.verbose or verbose
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    vector_files = find_vector_files(vectors or config.vector_dir)
    if not vector_files:
        logger.error("no vector suites under %s", vectors or config.vector_dir)
        sys.exit(1)
    logger.info("found %d vector suites", len(vector_files))
    sys.exit(asyncio.run(_run(config, vector_files)))


if __name__ == "__main__":
    main()
