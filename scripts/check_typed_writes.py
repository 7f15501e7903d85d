"""Guardrail check for article writes that bypass the typed write adapters.

Two rules are enforced outside ``app/persistence`` and ``app/models``:

* article rows are never constructed directly (use ``Model.create``);
* lifecycle columns are never assigned directly (use ``instance.patch``),
  so status changes stay visible to the adapter allowlists.

Default mode is warning-only. Use ``--strict`` to fail on violations.
"""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import NamedTuple


class Rule(NamedTuple):
    name: str
    pattern: re.Pattern[str]


RULES = (
    Rule(
        "constructor",
        re.compile(r"\b(Article|ArticleVersion|ModerationIntent|PendingRevision)\("),
    ),
    Rule(
        "lifecycle-assignment",
        re.compile(r"\.(status|current_version_id|latest_version_number|published_at)\s*=(?!=)"),
    ),
)

DEFAULT_SCAN_ROOTS = ("app/services", "app/api", "app/repositories")
IGNORE_PATH_PARTS = ("app/persistence", "app/models")


def should_scan(path: Path) -> bool:
    if path.suffix != ".py":
        return False
    path_str = path.as_posix()
    return not any(ignored in path_str for ignored in IGNORE_PATH_PARTS)


def find_violations(paths: list[Path]) -> list[tuple[Path, int, str]]:
    """Return ``(path, line number, rule: source line)`` for every hit."""
    violations: list[tuple[Path, int, str]] = []

    for base in paths:
        if not base.exists():
            continue
        for file_path in sorted(base.rglob("*.py")):
            if not should_scan(file_path):
                continue
            for lineno, line in enumerate(file_path.read_text(encoding="utf-8").splitlines(), 1):
                stripped = line.strip()
                if stripped.startswith("#"):
                    continue
                for rule in RULES:
                    if rule.pattern.search(line):
                        violations.append((file_path, lineno, f"{rule.name}: {stripped}"))
                        break

    return violations


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--strict", action="store_true", help="Exit non-zero on violations")
    parser.add_argument("--roots", nargs="*", default=list(DEFAULT_SCAN_ROOTS), help="Root directories to scan")
    args = parser.parse_args()

    violations = find_violations([Path(root) for root in args.roots])
    if not violations:
        print("typed-writes check: clean")
        return 0

    print(f"typed-writes check: {len(violations)} direct article write(s)")
    for file_path, lineno, detail in violations:
        print(f"  {file_path}:{lineno} {detail}")

    return 1 if args.strict else 0


if __name__ == "__main__":
    sys.exit(main())
