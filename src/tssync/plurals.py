"""Plural category selection driven by locale rule data.

Rules are plain data loaded from configuration::

    categories:
      - name: one
        rules:
          - {eq: 1}
      - name: few
        rules:
          - {mod: 10, between: [2, 4], not_mod: 100, not_between: [12, 14]}
      - name: other

Categories are tried in order and the index of the first match selects the
translation form. A category without rules matches every count. Within a
category the rules are alternatives; within a rule every condition must hold.
"""

from dataclasses import dataclass
import logging
from typing import Any, Mapping, Sequence

from tssync.errors import ConfigurationError

logger = logging.getLogger(__name__)

_CONDITIONS = ("eq", "in", "between", "not_eq", "not_in", "not_between")


@dataclass(frozen=True)
class Condition:
    op: str
    operand: Any
    mod: int | None = None

    def test(self, count: int) -> bool:
        value = count % self.mod if self.mod else count
        negate = self.op.startswith("not_")
        op = self.op[4:] if negate else self.op
        if op == "eq":
            matched = value == self.operand
        elif op == "in":
            matched = value in self.operand
        else:
            low, high = self.operand
            matched = low <= value <= high
        return matched != negate


@dataclass(frozen=True)
class Rule:
    conditions: tuple[Condition, ...]

    def test(self, count: int) -> bool:
        return all(condition.test(count) for condition in self.conditions)


@dataclass(frozen=True)
class Category:
    name: str
    rules: tuple[Rule, ...] = ()

    def test(self, count: int) -> bool:
        if not self.rules:
            return True
        return any(rule.test(count) for rule in self.rules)


@dataclass(frozen=True)
class PluralRules:
    categories: tuple[Category, ...] = (Category("other"),)

    def __len__(self) -> int:
        return len(self.categories)

    def names(self) -> list[str]:
        return [category.name for category in self.categories]

    def index(self, count: int) -> int:
        """Return the plural form index for ``count``."""
        count = abs(int(count))
        for index, category in enumerate(self.categories):
            if category.test(count):
                return index
        # No catch-all configured: the last form is the best guess.
        return len(self.categories) - 1


SINGLE = PluralRules()


def _parse_operand(op: str, value: Any, scope: str) -> Any:
    base = op[4:] if op.startswith("not_") else op
    if base == "eq":
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigurationError(f"{scope}: {op} expects an integer, got {value!r}")
        return value
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ConfigurationError(f"{scope}: {op} expects a list, got {value!r}")
    if not all(isinstance(item, int) and not isinstance(item, bool) for item in value):
        raise ConfigurationError(f"{scope}: {op} expects integers, got {value!r}")
    if base == "between":
        if len(value) != 2 or value[0] > value[1]:
            raise ConfigurationError(f"{scope}: {op} expects [low, high], got {value!r}")
        return (value[0], value[1])
    return frozenset(value)


def _parse_mod(value: Any, scope: str) -> int | None:
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigurationError(f"{scope}: modulus must be a positive integer, got {value!r}")
    return value


def _parse_rule(raw: Mapping[str, Any], scope: str) -> Rule:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{scope}: a rule must be a mapping, got {raw!r}")
    unknown = set(raw) - set(_CONDITIONS) - {"mod", "not_mod"}
    if unknown:
        raise ConfigurationError(f"{scope}: unknown rule keys {sorted(unknown)}")
    conditions = []
    for op in _CONDITIONS:
        if op not in raw:
            continue
        # "not_*" conditions use their own modulus when one is given.
        mod_key = "not_mod" if op.startswith("not_") and "not_mod" in raw else "mod"
        conditions.append(
            Condition(op, _parse_operand(op, raw[op], scope), _parse_mod(raw.get(mod_key), scope))
        )
    if not conditions:
        raise ConfigurationError(f"{scope}: rule has no conditions")
    return Rule(tuple(conditions))


def parse_plural_rules(raw: Mapping[str, Any] | Sequence[Any] | None, locale: str = "") -> PluralRules:
    """Build :class:`PluralRules` from configuration data."""
    if raw is None:
        return SINGLE
    categories_raw = raw.get("categories") if isinstance(raw, Mapping) else raw
    if not isinstance(categories_raw, Sequence) or isinstance(categories_raw, str) or not categories_raw:
        raise ConfigurationError(f"Plural rules for {locale or 'locale'} need a list of categories")

    categories = []
    for position, item in enumerate(categories_raw):
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, Mapping) or not item.get("name"):
            raise ConfigurationError(f"Plural category #{position} for {locale} has no name")
        scope = f"plurals.{locale}.{item['name']}"
        rules = tuple(_parse_rule(rule, scope) for rule in item.get("rules") or ())
        categories.append(Category(str(item["name"]), rules))

    names = [category.name for category in categories]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"Plural rules for {locale} repeat a category name: {names}")
    logger.debug(f"Loaded {len(categories)} plural categories for {locale}: {names}")
    return PluralRules(tuple(categories))
