"""Fill the fixtures directory by running the test suite with ``--output``."""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def pytest_command(out_dir: Path, selector: str | None) -> list[str]:
    cmd = [sys.executable, "-m", "pytest", str(ROOT / "tests"), "-q", "--output", str(out_dir)]
    if selector:
        cmd += ["-k", selector]
    return cmd


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--out", type=Path, default=ROOT / "fixtures", help="fixture output directory")
    parser.add_argument("-k", dest="selector", default=None, help="only fill tests matching this expression")
    args = parser.parse_args(argv)

    env = {**os.environ, "PYTHONPATH": os.pathsep.join([str(ROOT / "src"), str(ROOT)])}
    cmd = pytest_command(args.out, args.selector)
    print("fill:", " ".join(cmd))
    return subprocess.call(cmd, env=env, cwd=str(ROOT))


if __name__ == "__main__":
    raise SystemExit(main())
