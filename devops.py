"""DevOps tasks for windows-melody-recovery.

Usage: uv run devops.py <task>
Tasks: fmt, lint, test, clean
"""

import shutil
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent


def _run(commands: list[list[str]]) -> None:
    """Execute a sequence of commands, exiting on first failure."""
    for cmd in commands:
        try:
            subprocess.run(cmd, check=True, cwd=ROOT)  # nosec: B603, B607
        except subprocess.CalledProcessError as e:
            print(f"Command failed: {' '.join(e.cmd)}", file=sys.stderr)
            sys.exit(e.returncode)


def format_code() -> None:
    """Format the codebase with Ruff."""
    print("🎨 Formatting with Ruff...\n")
    _run([["ruff", "format", "."], ["ruff", "check", "--fix", "."]])
    print("\n🟢 Made everything pretty → ✅ Code clean.")


def lint() -> None:
    """Check formatting and lint rules without changing files."""
    print("🔍 Linting with Ruff...\n")
    _run([["ruff", "format", "--check", "."], ["ruff", "check", "."]])


def test() -> None:
    """Run tests with PyTest."""
    print("🧪 Testing with PyTest...\n")
    _run([["uv", "run", "pytest", "-q"]])
    print("\n🟢 Tests passed.")


def clean() -> None:
    """Remove caches and build artifacts (works on Windows without find/rm)."""
    print("🧹 Cleaning the project...\n")
    for pattern in ("**/__pycache__", "**/*.egg-info"):
        for path in ROOT.glob(pattern):
            shutil.rmtree(path, ignore_errors=True)
    for path in ROOT.glob("**/*.py[co]"):
        path.unlink(missing_ok=True)
    for name in (".pytest_cache", ".ruff_cache", ".coverage", "htmlcov", "dist", "build"):
        target = ROOT / name
        if target.is_dir():
            shutil.rmtree(target, ignore_errors=True)
        elif target.exists():
            target.unlink()
    print("🟢 Caches & Artifacts → ✅ All fresh now")


TASKS = {"fmt": format_code, "lint": lint, "test": test, "clean": clean}


if __name__ == "__main__":
    if len(sys.argv) != 2 or sys.argv[1] not in TASKS:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    TASKS[sys.argv[1]]()
