from __future__ import annotations
import argparse, json, logging, sys
from sat_core.loader import load_attempt, load_sample_test, load_test
from sat_core.result_export import result_to_dict
from sat_core.scoring import score_attempt
from sat_core.types import InvalidInput
from sat_core.validators import validate_test, validate_test_attempt

log = logging.getLogger("score_attempt")


def _report_errors(label: str, res) -> None:
    print(f"{label} is invalid:", file=sys.stderr)
    for e in res.errors:
        print(f"  [{e.code}] {e.field or e.ref}: {e.message}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Validate and score a submitted attempt")
    ap.add_argument("attempt", help="attempt JSON file")
    ap.add_argument("--test", help="test JSON file (defaults to the bundled sample test)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="[%(levelname)s] %(message)s")

    try:
        test = load_test(args.test) if args.test else load_sample_test()
        attempt = load_attempt(args.attempt)
    except (OSError, ValueError, InvalidInput) as e:
        log.error("cannot load input: %s", e)
        return 1

    res = validate_test(test)
    if not res.valid:
        _report_errors(f"test {test.id}", res); return 2
    res = validate_test_attempt(test, attempt)
    if not res.valid:
        _report_errors(f"attempt {attempt.id}", res); return 2

    result = score_attempt(test, attempt)
    print(json.dumps(result_to_dict(result), indent=2))
    log.info("attempt %s: %s/%s, scaled %s", attempt.id, result.total_score, result.max_score, result.scaled_score)
    return 0


if __name__ == "__main__": raise SystemExit(main())
