"""YAML output for vector suites: plain scalars, insertion order, no line wrapping."""

from __future__ import annotations

from pathlib import Path

import yaml


class VectorDumper(yaml.SafeDumper):
    def ignore_aliases(self, data) -> bool:
        # Suites repeat identical pre-states; write them out in full.
        return True


def _plain_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


VectorDumper.add_representer(str, _plain_str)


def dump_yaml(data: dict) -> str:
    return yaml.dump(data, Dumper=VectorDumper, sort_keys=False, width=4096)


def write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_yaml(data))
