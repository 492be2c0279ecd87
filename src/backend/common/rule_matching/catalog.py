from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml
from pydantic import BaseModel, Field

from .conditions import SPECS_BY_KEY, MalformedCondition, parse_condition, parse_conditions
from .models import RuleRecord


class ConditionKeyEntry(BaseModel):
    key: str
    kind: str


class RuleCatalogEntry(BaseModel):
    rule_id: str
    title: str
    level: str
    state: Optional[str] = None
    city: Optional[str] = None

    conditions: List[ConditionKeyEntry] = Field(default_factory=list)
    unrecognized_keys: List[str] = Field(default_factory=list)
    malformed_keys: Dict[str, str] = Field(default_factory=dict)


def load_rule_file(path: Path) -> List[RuleRecord]:
    """Load a rule catalog from JSON or YAML.

    Accepts a top-level list of rules or an object with a ``rules`` list.
    """
    with path.open() as handle:
        if path.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(handle)
        else:
            raw = json.load(handle)
    if isinstance(raw, dict):
        raw = raw.get("rules", [])
    if not isinstance(raw, list):
        raise ValueError(f"Rule catalog {path} must contain a list of rules.")
    return [RuleRecord.model_validate(item) for item in raw]


def _catalog_entry(rule: RuleRecord) -> RuleCatalogEntry:
    conditions = rule.conditions or {}
    entry = RuleCatalogEntry(
        rule_id=rule.id,
        title=rule.title,
        level=rule.level.value,
        state=rule.state,
        city=rule.city,
    )

    for key, value in conditions.items():
        spec = SPECS_BY_KEY.get(key)
        if spec is None or value is None:
            continue
        try:
            parse_condition(spec, value)
        except MalformedCondition as exc:
            entry.malformed_keys[key] = str(exc)
            continue
        entry.conditions.append(ConditionKeyEntry(key=key, kind=spec.kind.value))

    clean = {k: v for k, v in conditions.items() if k not in entry.malformed_keys}
    _, unrecognized = parse_conditions(clean)
    entry.unrecognized_keys = sorted(u.key for u in unrecognized)
    return entry


def build_catalog(rules: Iterable[RuleRecord]) -> List[RuleCatalogEntry]:
    entries = [_catalog_entry(rule) for rule in rules]
    entries.sort(key=lambda e: e.rule_id)
    return entries


def _dump_json(catalog: list[dict[str, Any]]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True)


def _dump_yaml(catalog: list[dict[str, Any]]) -> str:
    return yaml.safe_dump(catalog, sort_keys=True, allow_unicode=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Summarize how each rule's conditions will be evaluated.")
    parser.add_argument("--rules", required=True, help="Path to a JSON or YAML rule catalog.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    args = parser.parse_args(argv)

    catalog = [e.model_dump() for e in build_catalog(load_rule_file(Path(args.rules)))]
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()
