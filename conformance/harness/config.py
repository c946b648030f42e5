"""
Configuration for the escrow conformance harness.

Every setting has an environment variable; CLI flags on the runner override them.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

REFERENCE_CLIENT = "reference"
CANDIDATE_CLIENT = "candidate"

_TRUTHY = ("true", "1", "yes")


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").lower() in _TRUTHY


@dataclass
class ClientConfig:
    """One program implementation reachable over HTTP."""
    name: str
    endpoint: str
    enabled: bool = True
    timeout: float = 30.0


@dataclass
class HarnessConfig:
    clients: Dict[str, ClientConfig] = field(default_factory=dict)

    vector_dir: str = "vectors"
    result_dir: str = "results"

    stop_on_first_failure: bool = False
    verbose: bool = False
    # Also compare each client with the expectations recorded in the vector.
    check_expected: bool = True

    request_timeout: float = 30.0

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "HarnessConfig":
        """Load configuration from environment variables (``os.environ`` by default)."""
        env = os.environ if env is None else env
        config = cls()

        config.request_timeout = float(env.get("REQUEST_TIMEOUT", config.request_timeout))
        config.clients = {
            REFERENCE_CLIENT: ClientConfig(
                name="Reference program",
                endpoint=env.get("REFERENCE_ENDPOINT", "http://localhost:8081"),
                timeout=config.request_timeout,
            ),
            CANDIDATE_CLIENT: ClientConfig(
                name="Candidate program",
                endpoint=env.get("CANDIDATE_ENDPOINT", "http://localhost:8082"),
                enabled=not _flag(env, "CANDIDATE_DISABLED"),
                timeout=config.request_timeout,
            ),
        }

        config.vector_dir = env.get("VECTOR_DIR", config.vector_dir)
        config.result_dir = env.get("RESULT_DIR", config.result_dir)

        config.verbose = _flag(env, "VERBOSE")
        config.stop_on_first_failure = _flag(env, "STOP_ON_FIRST_FAILURE")
        if "CHECK_EXPECTED" in env:
            config.check_expected = _flag(env, "CHECK_EXPECTED")

        return config

    def get_enabled_clients(self) -> Dict[str, ClientConfig]:
        return {
            name: client
            for name, client in self.clients.items()
            if client.enabled
        }
