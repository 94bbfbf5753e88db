"""
Rule-set loader.
Builds DetectionRuleSet objects from rule documents (dicts, JSON files or
CSV files), resolving legacy group and category labels once at load time.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..config.detection_config import DetectionSettings
from ..exceptions import RuleSetLoadError
from ..models import DetectionRule, DetectionRuleSet
from .uk_providers import DEFAULT_RULE_SET

logger = logging.getLogger(__name__)


# Rule groups in match priority order
RULE_GROUP_ORDER = [
    "bill_rules",
    "council_tax_rules",
    "insurance_rules",
    "subscription_rules",
    "telecoms_rules",
    "general_rules",
]

# Older rule documents used "utility" naming for what is now "bill"
LEGACY_GROUP_ALIASES = {
    "utility_rules": "bill_rules",
}

LEGACY_CATEGORY_ALIASES = {
    "utility": "bills",
    "utilities": "bills",
    "bill": "bills",
}

VALID_FREQUENCIES = {"weekly", "monthly", "quarterly", "annually"}


def _resolve_group_name(group_name: str) -> str:
    return LEGACY_GROUP_ALIASES.get(group_name, group_name)


def _resolve_category(category: str) -> str:
    category = (category or "other").strip().lower()
    return LEGACY_CATEGORY_ALIASES.get(category, category)


def _parse_bool(value, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "y")


def build_rule(data: Dict, group: str) -> DetectionRule:
    """
    Build a single DetectionRule from a rule mapping.

    Args:
        data: Rule mapping with at least 'name', 'patterns' and 'category'
        group: Resolved group name the rule belongs to

    Returns:
        DetectionRule with legacy category labels resolved

    Raises:
        RuleSetLoadError: If the rule has no name, no usable patterns or a
            non-numeric min_occurrences or confidence_boost
    """
    if not isinstance(data, dict):
        raise RuleSetLoadError(f"Rule in {group} must be a mapping, got {type(data).__name__}")

    name = str(data.get("name") or "").strip()
    if not name:
        raise RuleSetLoadError(f"Rule in {group} has no name")

    patterns = data.get("patterns") or []
    if isinstance(patterns, str):
        patterns = [patterns]
    patterns = tuple(str(p).strip() for p in patterns if str(p).strip())
    if not patterns:
        raise RuleSetLoadError(f"Rule '{name}' has no patterns")

    min_occurrences = data.get("min_occurrences")
    if min_occurrences in ("", None):
        min_occurrences = None
    else:
        try:
            min_occurrences = int(min_occurrences)
        except (TypeError, ValueError) as e:
            raise RuleSetLoadError(f"Rule '{name}' has invalid min_occurrences: {min_occurrences!r}") from e

    expected_frequency = data.get("expected_frequency") or None
    if expected_frequency is not None and expected_frequency not in VALID_FREQUENCIES:
        logger.warning("Rule '%s' has unknown expected frequency '%s'", name, expected_frequency)
        expected_frequency = None

    category_path = data.get("category_path")
    if category_path:
        category_path = tuple(str(part) for part in category_path)
    else:
        category_path = None

    boost = data.get("confidence_boost")
    if boost in ("", None):
        boost = 0.1
    else:
        try:
            boost = float(boost)
        except (TypeError, ValueError) as e:
            raise RuleSetLoadError(f"Rule '{name}' has invalid confidence_boost: {boost!r}") from e

    return DetectionRule(
        name=name,
        patterns=patterns,
        category=_resolve_category(data.get("category")),
        subcategory=(data.get("subcategory") or None),
        provider=(data.get("provider") or None),
        confidence_boost=boost,
        min_occurrences=min_occurrences,
        expected_frequency=expected_frequency,
        active=_parse_bool(data.get("active"), default=True),
        uk_specific=_parse_bool(data.get("uk_specific"), default=True),
        category_path=category_path,
        group=group,
    )


def build_rule_set(document: Dict) -> DetectionRuleSet:
    """
    Build a DetectionRuleSet from a rule document.

    Any key ending in '_rules' is a rule group. Known groups are ordered by
    RULE_GROUP_ORDER; unknown groups follow in document order. When a legacy
    group and its current name are both present, the current group's rules
    come first.

    Args:
        document: Rule-set document (name, *_rules groups, settings)

    Returns:
        DetectionRuleSet ready for detection
    """
    if not isinstance(document, dict):
        raise RuleSetLoadError(f"Rule set must be a mapping, got {type(document).__name__}")

    grouped: Dict[str, List[DetectionRule]] = {}
    seen_names: Dict[str, set] = {}

    # Current names before legacy aliases so they keep priority within a group
    keys = [k for k in document if k.endswith("_rules")]
    keys.sort(key=lambda k: k in LEGACY_GROUP_ALIASES)

    for key in keys:
        raw_rules = document.get(key) or []
        if not isinstance(raw_rules, list):
            raise RuleSetLoadError(f"Rule group '{key}' must be a list")

        group = _resolve_group_name(key)
        if group != key:
            logger.debug("Rule group '%s' read as '%s'", key, group)

        rules = grouped.setdefault(group, [])
        names = seen_names.setdefault(group, set())
        for raw in raw_rules:
            rule = build_rule(raw, group)
            if rule.name in names:
                logger.debug("Skipping duplicate rule '%s' in %s", rule.name, group)
                continue
            names.add(rule.name)
            rules.append(rule)

    ordered: List[Tuple[str, Tuple[DetectionRule, ...]]] = []
    for group in RULE_GROUP_ORDER:
        if group in grouped:
            ordered.append((group, tuple(grouped.pop(group))))
    for group, rules in grouped.items():
        ordered.append((group, tuple(rules)))

    raw_settings = document.get("settings")
    if raw_settings is not None and not isinstance(raw_settings, dict):
        raise RuleSetLoadError("Rule set settings must be a mapping")
    try:
        settings = DetectionSettings.from_dict(raw_settings)
    except (TypeError, ValueError) as e:
        raise RuleSetLoadError(f"Invalid rule set settings: {e}") from e

    rule_set = DetectionRuleSet(
        name=str(document.get("name") or "Custom Rules"),
        groups=tuple(ordered),
        settings=settings,
        description=str(document.get("description") or ""),
        version=str(document.get("version") or "1.0"),
        is_default=bool(document.get("is_default", False)),
    )
    logger.debug("Loaded rule set '%s' with %d rules", rule_set.name, rule_set.rule_count)
    return rule_set


def load_rule_set_json(json_path: str) -> DetectionRuleSet:
    """
    Load a rule set from a JSON document on disk.

    Raises:
        FileNotFoundError: If the file does not exist
        RuleSetLoadError: If the document is not a valid rule set
    """
    json_file = Path(json_path)
    if not json_file.exists():
        raise FileNotFoundError(f"Rule set file not found: {json_path}")

    with open(json_file, "r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise RuleSetLoadError(f"Invalid rule set JSON in {json_path}: {e}") from e

    return build_rule_set(document)


def load_rule_set_csv(csv_path: str, name: Optional[str] = None) -> DetectionRuleSet:
    """
    Load a rule set from a CSV file.

    Example CSV format:
        group,name,patterns,category,subcategory,provider,confidence_boost,min_occurrences,expected_frequency,active
        utility_rules,British Gas,BRITISH GAS|BG ENERGY,bills,gas,British Gas,0.2,,monthly,true

    Patterns are separated by '|'. Rows without a name are skipped.
    """
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"Rule set file not found: {csv_path}")

    document: Dict = {"name": name or csv_file.stem}
    with open(csv_file, "r", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            rule_name = (row.get("name") or "").strip()
            if not rule_name:
                continue
            group = (row.get("group") or "general_rules").strip()
            if not group.endswith("_rules"):
                group = f"{group}_rules"
            document.setdefault(group, []).append({
                "name": rule_name,
                "patterns": [p for p in (row.get("patterns") or "").split("|")],
                "category": (row.get("category") or "").strip(),
                "subcategory": (row.get("subcategory") or "").strip(),
                "provider": (row.get("provider") or "").strip(),
                "confidence_boost": (row.get("confidence_boost") or "").strip(),
                "min_occurrences": (row.get("min_occurrences") or "").strip(),
                "expected_frequency": (row.get("expected_frequency") or "").strip(),
                "active": (row.get("active") or "").strip(),
            })

    return build_rule_set(document)


def default_rule_set() -> DetectionRuleSet:
    """Return the default UK rule set. Callers pass it to the detector explicitly."""
    return build_rule_set(DEFAULT_RULE_SET)
