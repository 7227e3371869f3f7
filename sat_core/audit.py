from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from .loader import load_sample_test, load_test
from .types import InvalidInput, Test
from .validators import validate_test

TYPE_BUCKETS: tuple[str, ...] = ("multiple-choice", "grid-in", "essay")
DIFFICULTY_BUCKETS: tuple[str, ...] = ("easy", "medium", "hard")

log = logging.getLogger(__name__)


def _blank_section() -> dict[str, object]:
    return {
        "types": {t: 0 for t in TYPE_BUCKETS},
        "difficulty": {d: 0 for d in DIFFICULTY_BUCKETS},
        "points": 0.0,
        "time_limit": 0.0,
    }


def audit(test: Test) -> dict[str, object]:
    coverage: dict[str, dict[str, object]] = {}
    topics: dict[str, int] = {}
    skills: dict[str, int] = {}
    totals = {"questions": 0, "points": 0.0, "time_limit": 0.0}

    for section in test.sections:
        data = coverage.setdefault(section.id, _blank_section())
        data["time_limit"] = float(section.time_limit or 0)
        totals["time_limit"] += float(section.time_limit or 0)
        for q in section.questions:
            type_map = data["types"]  # type: ignore[assignment]
            type_map[q.type] = type_map.get(q.type, 0) + 1
            diff_map = data["difficulty"]  # type: ignore[assignment]
            diff_map[q.difficulty] = diff_map.get(q.difficulty, 0) + 1
            data["points"] += float(q.points)  # type: ignore[operator]
            topics[q.topic] = topics.get(q.topic, 0) + 1
            skills[q.skill] = skills.get(q.skill, 0) + 1
            totals["questions"] += 1
            totals["points"] += float(q.points)

    errors = [
        f"{e.field or e.ref or test.id}: {e.message} [{e.code}]"
        for e in validate_test(test).errors
    ]
    return {
        "test_id": test.id,
        "coverage": coverage,
        "topics": dict(sorted(topics.items())),
        "skills": dict(sorted(skills.items())),
        "errors": errors,
        "totals": totals,
    }


def _format_row(label: str, buckets: Iterable[str], data: dict[str, int]) -> str:
    parts = [label]
    for key in buckets:
        parts.append(f"{key}:{data.get(key, 0):3d}")
    return "  ".join(parts)


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, object]] = summary["coverage"]  # type: ignore[assignment]
    print(f"=== Test Audit: {summary['test_id']} ===")
    for sid in coverage:
        data = coverage[sid]
        print(f"\nSection: {sid}  ({data['points']:g} pts, {data['time_limit']:g}s)")
        print("  " + _format_row("type", TYPE_BUCKETS, data["types"]))  # type: ignore[arg-type]
        print("  " + _format_row("diff", DIFFICULTY_BUCKETS, data["difficulty"]))  # type: ignore[arg-type]

    topics: dict[str, int] = summary["topics"]  # type: ignore[assignment]
    print("\nTopics:", ", ".join(f"{k}={v}" for k, v in topics.items()) or "none")

    errors: list[str] = summary["errors"]  # type: ignore[assignment]
    if errors:
        print("\nErrors:")
        for msg in errors:
            print(f" - {msg}")
    else:
        print("\nNo errors.")

    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    return text


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Validate a test definition and print its coverage")
    ap.add_argument("path", nargs="?", help="test JSON file (defaults to the bundled sample test)")
    ap.add_argument("--out", type=Path, default=None, help="also write the summary JSON here")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        test = load_test(args.path) if args.path else load_sample_test()
    except (OSError, ValueError, InvalidInput) as e:
        log.error("cannot load %s: %s", args.path, e)
        return 1

    summary = audit(test)
    print_report(summary)
    if args.out:
        write_summary(summary, args.out)
    return 2 if summary["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
