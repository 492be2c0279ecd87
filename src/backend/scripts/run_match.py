from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def _load_json(path: Path):
    with path.open() as handle:
        return json.load(handle)


def run_match(
    profile_path: Path,
    rules_path: Path | None = None,
    *,
    levels: list[str] | None = None,
    include_reasons: bool = True,
    limit: int | None = None,
) -> dict:
    _ensure_backend_on_path()
    from common.rule_matching.assembler import build_response
    from common.rule_matching.config import get_matcher_config
    from common.rule_matching.models import BusinessProfile
    from pipelines.rule_store import build_matcher

    config = get_matcher_config()
    if rules_path is not None:
        config = config.model_copy(update={"rule_store": "json", "rules_path": str(rules_path)})

    profile = BusinessProfile.model_validate(_load_json(profile_path))
    report = build_matcher(config).match(profile)
    return build_response(
        report,
        profile,
        levels=levels,
        include_reasons=include_reasons,
        limit=limit,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Match a business profile against a rule catalog and print grouped results as JSON."
    )
    parser.add_argument("--profile", required=True, help="Path to a business profile JSON file.")
    parser.add_argument(
        "--rules",
        default=None,
        help="Path to a JSON/YAML rule catalog (defaults to RULES_PATH).",
    )
    parser.add_argument(
        "--levels",
        default="federal,state,city",
        help="Comma-separated buckets to return (default: federal,state,city).",
    )
    parser.add_argument(
        "--no-reasons",
        action="store_false",
        dest="include_reasons",
        help="Drop appliesBecause from each result.",
    )
    parser.add_argument("--limit", type=int, default=None, help="Cap the number of results per bucket.")
    parser.add_argument("--output", default=None, help="Write JSON here instead of stdout.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    response = run_match(
        Path(args.profile).resolve(),
        Path(args.rules).resolve() if args.rules else None,
        levels=[s for s in args.levels.split(",") if s.strip()],
        include_reasons=args.include_reasons,
        limit=args.limit,
    )

    payload = json.dumps(response, indent=2)
    if args.output:
        out_path = Path(args.output).resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload)
        print(f"Wrote {out_path}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
