"""
Canonical category taxonomy in ShortLex order.

Category codes are dotted paths (``A``, ``A.1``). ShortLex orders them by the
string length of the code first, then lexicographically on the full code:
``A, B, C, A.1, B.1, A.10``. Positions are the 1-based ranks
in that order.

The builder follows a small state machine::

    UNVALIDATED ──valid──────────────────────────► VALID
         │
         └─invalid─► REORDERED ──valid───────────► VALID
                          │
                          └─still invalid──► UNRECOVERABLE (TaxonomyOrderError)

UNRECOVERABLE is only reachable when the sort key disagrees with the
comparator; with ``shortlex_key`` it cannot happen.

Tags:
    taxonomy, shortlex, ordering, state-machine, trustdebt-core
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from trustdebt.core.errors import ConfigError, TaxonomyOrderError
from trustdebt.engine.models import Category
from trustdebt.framework.logging import get_logger

log = get_logger(__name__)

RULE_LENGTH = "length-first"
RULE_ALPHABETICAL = "alphabetical"
RULE_DUPLICATE = "duplicate"


def shortlex_key(code: str) -> tuple[int, str]:
    """Sort key: (length, code)."""
    return (len(code), code)


def compare_codes(a: str, b: str) -> int:
    """Three-way ShortLex comparison: -1, 0 or 1."""
    ka, kb = shortlex_key(a), shortlex_key(b)
    return (ka > kb) - (ka < kb)


@dataclass(frozen=True, slots=True)
class OrderViolation:
    """First adjacent pair found out of ShortLex order."""

    index: int
    previous: str
    current: str
    rule: str

    def describe(self) -> str:
        if self.rule == RULE_LENGTH:
            return (
                f"'{self.previous}' ({len(self.previous)} chars) precedes "
                f"'{self.current}' ({len(self.current)} chars): shorter codes must come first"
            )
        if self.rule == RULE_ALPHABETICAL:
            return f"'{self.previous}' precedes '{self.current}' at equal length: codes must be alphabetical"
        return f"'{self.current}' appears twice"


def find_order_violation(categories: Sequence[Category]) -> OrderViolation | None:
    """Scan adjacent pairs and return the first violation, if any."""
    for i in range(1, len(categories)):
        prev, curr = categories[i - 1].code, categories[i].code
        cmp = compare_codes(prev, curr)
        if cmp < 0:
            continue
        if cmp == 0:
            rule = RULE_DUPLICATE
        elif len(prev) != len(curr):
            rule = RULE_LENGTH
        else:
            rule = RULE_ALPHABETICAL
        return OrderViolation(index=i, previous=prev, current=curr, rule=rule)
    return None


def validate_order(categories: Sequence[Category]) -> bool:
    """True when categories are in strict ShortLex order.

    Logs the first violating pair and the rule it broke.
    """
    violation = find_order_violation(categories)
    if violation is None:
        return True
    log.warning(
        "taxonomy.order_violation",
        index=violation.index,
        previous=violation.previous,
        current=violation.current,
        rule=violation.rule,
        detail=violation.describe(),
    )
    return False


def positions_consistent(categories: Sequence[Category]) -> bool:
    return all(c.position == i for i, c in enumerate(categories, start=1))


def _with_ranks(ordered: Sequence[Category]) -> tuple[Category, ...]:
    total_units = sum(c.units for c in ordered)
    return tuple(
        replace(
            c,
            position=i,
            percentage=(c.units / total_units * 100) if total_units > 0 else 0.0,
        )
        for i, c in enumerate(ordered, start=1)
    )


def reorder(
    categories: Sequence[Category],
    sort_key: Callable[[str], Any] = shortlex_key,
) -> tuple[Category, ...]:
    """Stable sort by ``sort_key`` and re-assign positions 1..N."""
    return _with_ranks(sorted(categories, key=lambda c: sort_key(c.code)))


def check_hierarchy(categories: Sequence[Category]) -> None:
    """Reject duplicate codes and parents that are not a dotted prefix of an existing code."""
    codes = [c.code for c in categories]
    duplicates = sorted(code for code, n in Counter(codes).items() if n > 1)
    if duplicates:
        raise ConfigError(f"Duplicate category codes: {', '.join(duplicates)}")

    known = set(codes)
    for category in categories:
        parent = category.parent_code
        if parent is None:
            if "." in category.code:
                raise ConfigError(f"Category '{category.code}' has a dotted code but no parent")
            continue
        if parent not in known:
            raise ConfigError(
                f"Category '{category.code}' references unknown parent '{parent}'"
            ).with_context(category_code=category.code)
        if not category.code.startswith(parent + "."):
            raise ConfigError(
                f"Category '{category.code}' is not nested under its parent '{parent}'"
            ).with_context(category_code=category.code)


# =============================================================================
# TAXONOMY VALUE
# =============================================================================


@dataclass(frozen=True)
class Taxonomy:
    """Immutable, ShortLex-ordered category set passed explicitly to every stage."""

    categories: tuple[Category, ...]
    _by_code: dict[str, Category] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", tuple(self.categories))
        object.__setattr__(self, "_by_code", {c.code: c for c in self.categories})

    def __len__(self) -> int:
        return len(self.categories)

    def __iter__(self) -> Iterator[Category]:
        return iter(self.categories)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(c.code for c in self.categories)

    def get(self, code: str) -> Category:
        try:
            return self._by_code[code]
        except KeyError:
            raise KeyError(f"Unknown category code: {code}") from None

    def roots(self) -> tuple[Category, ...]:
        return tuple(c for c in self.categories if c.is_root)

    def children(self, code: str) -> tuple[Category, ...]:
        return tuple(c for c in self.categories if c.parent_code == code)

    def descendants(self, code: str) -> tuple[Category, ...]:
        prefix = code + "."
        return tuple(c for c in self.categories if c.code.startswith(prefix))

    def to_dicts(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.categories]

    @classmethod
    def from_dicts(cls, rows: Sequence[dict[str, Any]]) -> Taxonomy:
        """Rehydrate a taxonomy artifact without re-ranking it."""
        return cls(tuple(Category.from_dict(r) for r in rows))


# =============================================================================
# BUILDER STATE MACHINE
# =============================================================================


class OrderState(str, Enum):
    UNVALIDATED = "unvalidated"
    REORDERED = "reordered"
    VALID = "valid"
    UNRECOVERABLE = "unrecoverable"


class TaxonomyBuilder:
    """
    Turns a raw category list into a ranked ``Taxonomy``.

    Raw input out of order is reordered transparently. ``history`` records
    every state visited so callers and tests can see which path was taken.

    Args:
        categories: Raw categories in any order; positions are ignored
        sort_key: Key used when reordering; validation always uses ShortLex
    """

    def __init__(
        self,
        categories: Sequence[Category],
        sort_key: Callable[[str], Any] = shortlex_key,
    ) -> None:
        self._raw = tuple(categories)
        self._sort_key = sort_key
        self.state = OrderState.UNVALIDATED
        self.history: list[OrderState] = [OrderState.UNVALIDATED]

    def _advance(self, state: OrderState) -> None:
        log.debug("taxonomy.state", previous=self.state.value, next=state.value)
        self.state = state
        self.history.append(state)

    def build(self) -> Taxonomy:
        check_hierarchy(self._raw)
        current = self._raw

        while self.state not in (OrderState.VALID, OrderState.UNRECOVERABLE):
            if self.state is OrderState.UNVALIDATED:
                if validate_order(current):
                    current = _with_ranks(current)
                    self._advance(OrderState.VALID)
                else:
                    current = reorder(current, self._sort_key)
                    log.info("taxonomy.reordered", categories=len(current))
                    self._advance(OrderState.REORDERED)
            elif self.state is OrderState.REORDERED:
                if validate_order(current) and positions_consistent(current):
                    self._advance(OrderState.VALID)
                else:
                    self._advance(OrderState.UNRECOVERABLE)

        if self.state is OrderState.UNRECOVERABLE:
            violation = find_order_violation(current)
            detail = violation.describe() if violation else "positions inconsistent"
            raise TaxonomyOrderError(f"Cannot establish ShortLex order after reordering: {detail}")

        log.info(
            "taxonomy.built",
            categories=len(current),
            roots=sum(1 for c in current if c.is_root),
            path=[s.value for s in self.history],
        )
        return Taxonomy(current)


def build_taxonomy(categories: Sequence[Category]) -> Taxonomy:
    """Build a validated taxonomy from raw categories."""
    return TaxonomyBuilder(categories).build()
