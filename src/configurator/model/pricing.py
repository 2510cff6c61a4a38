"""
Pricing Matrix & Resolver
=========================
Prices options from a dependency-aware matrix.

``rules[target][dependency]`` is the price of ``target`` while ``dependency``
is selected; the diagonal ``rules[v][v]`` is the base price. Only the lower
triangle (dependencies that come earlier in canonical order) can be written.

Resolution walks chapters and groups in canonical order and lets every
selected dependency with a rule overwrite the price, so the dependency that
comes LAST in canonical order wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, Mapping, Optional, TYPE_CHECKING

from configurator import config as app_config
from configurator.model.errors import ConfigurationError, PricingRuleError, UnknownOptionError

if TYPE_CHECKING:
    from configurator.model.catalog import Chapter, Configuration, Group

logger = logging.getLogger(__name__)

_EMPTY_ROW: Mapping[str, float] = {}


class PricingRules:
    """Sparse matrix ``target option value -> (dependency option value -> price)``."""

    def __init__(self, rules: Optional[Mapping[str, Mapping[str, float]]] = None) -> None:
        self._rules: Dict[str, Dict[str, float]] = {
            target: {dep: float(price) for dep, price in row.items()}
            for target, row in (rules or {}).items()
        }

    def __len__(self) -> int:
        return sum(len(row) for row in self._rules.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PricingRules):
            return NotImplemented
        return self._rules == other._rules

    def __repr__(self) -> str:
        return f"PricingRules({self._rules!r})"

    def row(self, target: str) -> Mapping[str, float]:
        return self._rules.get(target, _EMPTY_ROW)

    def get(self, target: str, dependency: str) -> Optional[float]:
        return self.row(target).get(dependency)

    def base_price(self, value: str) -> float:
        return self.row(value).get(value, 0.0)

    def set_price(
        self,
        configuration: Configuration,
        target: str,
        dependency: str,
        price: Optional[float],
    ) -> None:
        """
        Write one matrix cell; ``None`` clears it.

        Raises:
            UnknownOptionError: either option is not part of the configuration.
            PricingRuleError: ``dependency`` comes after ``target`` in canonical order.
        """
        order = configuration.option_order()
        try:
            target_index = order.index(target)
        except ValueError:
            raise UnknownOptionError(f"Option '{target}' not found.") from None
        try:
            dependency_index = order.index(dependency)
        except ValueError:
            raise UnknownOptionError(f"Option '{dependency}' not found.") from None

        if dependency_index > target_index:
            logger.warning(f"Rejected pricing rule {target!r} <- {dependency!r}: "
                           f"dependency comes later in canonical order.")
            raise PricingRuleError(
                f"'{dependency}' comes after '{target}'; only earlier options can affect its price."
            )

        if price is None:
            row = self._rules.get(target)
            if row is not None:
                row.pop(dependency, None)
                if not row:
                    del self._rules[target]
            return

        self._rules.setdefault(target, {})[dependency] = float(price)

    def discard_option(self, value: str) -> None:
        """Remove the row of ``value`` and every cell keyed by it."""
        self._rules.pop(value, None)
        for target in list(self._rules):
            row = self._rules[target]
            row.pop(value, None)
            if not row:
                del self._rules[target]

    def prune(self, configuration: Configuration) -> None:
        """Drop rows and cells that refer to options no longer in the configuration."""
        present = set(configuration.option_order())
        stale = {t for t in self._rules if t not in present}
        stale.update(d for row in self._rules.values() for d in row if d not in present)
        for value in stale:
            self.discard_option(value)
        if stale:
            logger.debug(f"Pruned pricing rules for {len(stale)} missing options.")

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {target: dict(row) for target, row in self._rules.items()}

    @staticmethod
    def from_dict(data: Optional[Mapping[str, Any]]) -> PricingRules:
        if not data:
            return PricingRules()
        try:
            return PricingRules(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid pricing rules: {e}") from e


# ------------------------------------------------------------------------------
# Resolver
# ------------------------------------------------------------------------------
def resolve_price(
    option_value: str,
    chapters: Iterable[Chapter],
    selections: Mapping[str, str],
    rules: PricingRules,
) -> float:
    """Price of one option given the current selections. Missing rules price at 0."""
    row = rules.row(option_value)
    price = row.get(option_value, 0.0)
    if not row:
        return price

    for chapter in chapters:
        for group in chapter.groups:
            selected = selections.get(group.id, "")
            # The diagonal is the base price, not a dependency
            if selected and selected != option_value and selected in row:
                price = row[selected]
    return price


def group_baseline(
    group: Group,
    chapters: Iterable[Chapter],
    selections: Mapping[str, str],
    rules: PricingRules,
) -> float:
    """Cheapest resolved price among the options of ``group``."""
    chapters = list(chapters)
    prices = [resolve_price(o.value, chapters, selections, rules) for o in group.options]
    return min(prices) if prices else 0.0


def total_price(
    chapters: Iterable[Chapter],
    selections: Mapping[str, str],
    rules: PricingRules,
) -> float:
    chapters = list(chapters)
    total = 0.0
    for chapter in chapters:
        for group in chapter.groups:
            selected = selections.get(group.id, "")
            if selected:
                total += resolve_price(selected, chapters, selections, rules)
    return total


# ------------------------------------------------------------------------------
# Display helpers
# ------------------------------------------------------------------------------
def format_price(amount: float) -> str:
    """USD with thousands separators and no decimals, e.g. ``$1,250``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{app_config.CURRENCY_SYMBOL}{abs(amount):,.0f}"


def price_delta_label(price: float, baseline: float) -> str:
    """'Included' for the cheapest choice of a group, otherwise '+$Δ'."""
    delta = price - baseline
    if delta <= 0:
        return app_config.INCLUDED_LABEL
    return f"+{format_price(delta)}"


@dataclass
class PriceSummary:
    """Everything a view needs to display prices for one set of selections."""
    option_prices: Dict[str, float] = field(default_factory=dict)
    group_baselines: Dict[str, float] = field(default_factory=dict)
    total: float = 0.0

    def delta_label(self, group_id: str, option_value: str) -> str:
        return price_delta_label(self.option_prices[option_value], self.group_baselines[group_id])


def summarize_prices(configuration: Configuration, selections: Mapping[str, str]) -> PriceSummary:
    chapters = configuration.chapters
    rules = configuration.pricing_rules
    summary = PriceSummary()
    for _, group in configuration.iter_groups():
        prices = {o.value: resolve_price(o.value, chapters, selections, rules) for o in group.options}
        summary.option_prices.update(prices)
        summary.group_baselines[group.id] = group_baseline(group, chapters, selections, rules)
    summary.total = total_price(chapters, selections, rules)
    return summary
