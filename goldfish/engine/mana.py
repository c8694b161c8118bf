"""Goldfish Engine - Mana Resolver

This module parses mana costs and finds an assignment of mana sources to
a cost. Sources are untapped mana-producing permanents and cards that can
be used from hand (Elvish Spirit Guide).

The resolver is a pure function of its inputs: it never taps, sacrifices
or exiles anything. Committing a payment is GameState.pay's job.

Algorithm:
    1. Expand the cost into single-mana units, most restrictive first:
       specific kinds ordered by how few sources can make them, then
       generic units.
    2. Spend floating mana on matching units.
    3. Assign the rest by backtracking: reuse leftover mana from a source
       already tapped, otherwise tap the next candidate in order. Candidates
       are ordered least flexible first so the flexible ones stay available.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from .errors import Unpayable
from .objects import Card, Permanent
from .types import Mana, ManaCostMap


ManaSource = Union[Permanent, Card]

# Generic mana is paid with colorless first, then colors in WUBRG order
_GENERIC_PREFERENCE = (Mana.COLORLESS, Mana.WHITE, Mana.BLUE, Mana.BLACK,
                       Mana.RED, Mana.GREEN)


# =============================================================================
# Cost Parsing
# =============================================================================

def parse_cost(cost_str: str) -> ManaCostMap:
    """Parse a mana cost string into a cost mapping.

    Args:
        cost_str: Cost in brace notation ("{2}{G}{G}") or compact form ("2GG").

    Returns:
        Mapping of Mana kind to quantity; generic mana under Mana.GENERIC.

    Raises:
        ValueError: If a symbol is not understood.
    """
    cost: ManaCostMap = {}
    if not cost_str:
        return cost

    symbols = re.findall(r'\{([^}]+)\}', cost_str)
    if not symbols:
        symbols = re.findall(r'\d+|[A-Za-z]', cost_str)

    for symbol in symbols:
        symbol = symbol.strip().upper()
        if symbol.isdigit():
            if int(symbol):
                cost[Mana.GENERIC] = cost.get(Mana.GENERIC, 0) + int(symbol)
        else:
            kind = Mana.from_symbol(symbol)
            cost[kind] = cost.get(kind, 0) + 1
    return cost


def format_cost(cost: ManaCostMap) -> str:
    """Format a cost mapping back to brace notation."""
    if not cost:
        return "{0}"
    parts = []
    if cost.get(Mana.GENERIC):
        parts.append(f"{{{cost[Mana.GENERIC]}}}")
    for kind in (Mana.WHITE, Mana.BLUE, Mana.BLACK, Mana.RED, Mana.GREEN,
                 Mana.COLORLESS):
        parts.extend(f"{{{kind.value}}}" for _ in range(cost.get(kind, 0)))
    return "".join(parts)


# =============================================================================
# Sources
# =============================================================================

def source_card(source: ManaSource) -> Card:
    return source.card if isinstance(source, Permanent) else source


def produced_kinds(source: ManaSource) -> FrozenSet[Mana]:
    return source_card(source).produces


def flexibility_key(source: ManaSource) -> Tuple[int, int, int]:
    """Sort key putting the least flexible sources first.

    Fewer producible kinds first, then unlimited before limited-use sources,
    then more remaining uses before fewer.
    """
    card = source_card(source)
    if isinstance(source, Permanent):
        uses = source.remaining_uses
    else:
        uses = 1 if card.mana_from_hand else card.mana_uses
    if uses is None:
        return (len(card.produces), 0, 0)
    return (len(card.produces), 1, -uses)


def order_sources(sources: Sequence[ManaSource]) -> List[ManaSource]:
    """Order sources by flexibility, keeping the given order for ties."""
    return sorted(sources, key=flexibility_key)


# =============================================================================
# Payment
# =============================================================================

@dataclass
class Payment:
    """
    A complete assignment of mana to a cost.

    Attributes:
        cost: The cost that was paid
        taps: Sources used, in tapping order, with the kind each produced
        floating_spent: Floating mana consumed by the payment
        floating_after: Mana pool after payment: unspent floating mana plus
                        leftover units from multi-mana sources
    """
    cost: ManaCostMap
    taps: List[Tuple[ManaSource, Mana]] = field(default_factory=list)
    floating_spent: Dict[Mana, int] = field(default_factory=dict)
    floating_after: Dict[Mana, int] = field(default_factory=dict)

    @property
    def sources(self) -> List[ManaSource]:
        return [source for source, _ in self.taps]

    def describe(self) -> str:
        if not self.taps and not self.floating_spent:
            return "nothing"
        parts = [f"{source_card(s).name} ({kind.value})" for s, kind in self.taps]
        if self.floating_spent:
            parts.append("floating " + "".join(
                k.value * n for k, n in self.floating_spent.items()))
        return ", ".join(parts)


def _expand_units(cost: ManaCostMap, sources: Sequence[ManaSource],
                  floating: Dict[Mana, int]) -> List[Mana]:
    """Expand a cost into units, most restrictive specific kinds first."""
    def supply(kind: Mana) -> int:
        return floating.get(kind, 0) + sum(
            1 for s in sources if kind in produced_kinds(s))

    order = list(Mana)
    specific = sorted((k for k in cost if k is not Mana.GENERIC and cost[k] > 0),
                      key=lambda k: (supply(k), order.index(k)))
    units: List[Mana] = []
    for kind in specific:
        units.extend([kind] * cost[kind])
    units.extend([Mana.GENERIC] * cost.get(Mana.GENERIC, 0))
    return units


def find_payment(cost: ManaCostMap, sources: Sequence[ManaSource],
                 floating: Optional[Dict[Mana, int]] = None,
                 presorted: bool = False) -> Payment:
    """Find a way to pay ``cost`` from ``sources`` and floating mana.

    Args:
        cost: Cost mapping (see parse_cost)
        sources: Available sources, in battlefield order
        floating: Mana already in the pool
        presorted: Use ``sources`` in the given order instead of sorting by
                   flexibility (a strategy's preferred ordering)

    Returns:
        A Payment using each source at most once.

    Raises:
        Unpayable: If no assignment exists. Sources are left untouched.
    """
    pool = dict(floating or {})
    candidates = list(sources) if presorted else order_sources(sources)
    units = _expand_units(cost, candidates, pool)

    spent: Dict[Mana, int] = {}
    remaining: List[Mana] = []
    for unit in units:
        if unit is not Mana.GENERIC and pool.get(unit, 0) > 0:
            pool[unit] -= 1
            spent[unit] = spent.get(unit, 0) + 1
        else:
            remaining.append(unit)
    units, remaining = remaining, []
    for unit in units:
        kind = next((k for k in _GENERIC_PREFERENCE if pool.get(k, 0) > 0), None)
        if unit is Mana.GENERIC and kind is not None:
            pool[kind] -= 1
            spent[kind] = spent.get(kind, 0) + 1
        else:
            remaining.append(unit)
    units = remaining

    # index into candidates -> [kind produced, units left over]
    tapped: Dict[int, List] = {}
    order: List[int] = []

    def solve(i: int) -> bool:
        if i == len(units):
            return True
        need = units[i]

        for idx in order:
            kind, left = tapped[idx]
            if left > 0 and (need is Mana.GENERIC or kind is need):
                tapped[idx][1] -= 1
                if solve(i + 1):
                    return True
                tapped[idx][1] += 1

        tried = set()
        for idx, source in enumerate(candidates):
            if idx in tapped:
                continue
            kinds = produced_kinds(source)
            if need is Mana.GENERIC:
                kind = next((k for k in _GENERIC_PREFERENCE if k in kinds), None)
            else:
                kind = need if need in kinds else None
            if kind is None:
                continue
            # Interchangeable sources fail the same way
            signature = (id(source_card(source)), flexibility_key(source))
            if signature in tried:
                continue
            tried.add(signature)

            amount = source_card(source).mana_amount
            tapped[idx] = [kind, amount - 1]
            order.append(idx)
            if solve(i + 1):
                return True
            order.pop()
            del tapped[idx]
        return False

    if not solve(0):
        raise Unpayable(cost, f"Cannot pay {format_cost(cost)} with "
                              f"{len(candidates)} source(s)")

    taps = [(candidates[idx], tapped[idx][0]) for idx in order]
    for idx in order:
        kind, left = tapped[idx]
        if left:
            pool[kind] = pool.get(kind, 0) + left
    floating_after = {k: n for k, n in pool.items() if n > 0}
    return Payment(cost=dict(cost), taps=taps, floating_spent=spent,
                   floating_after=floating_after)


def can_pay(cost: ManaCostMap, sources: Sequence[ManaSource],
            floating: Optional[Dict[Mana, int]] = None) -> bool:
    """Return True if ``cost`` is payable."""
    try:
        find_payment(cost, sources, floating)
    except Unpayable:
        return False
    return True
