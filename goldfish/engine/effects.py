"""
Goldfish Engine - Effect Resolver

Triggered and resolving effects go through a single FIFO queue. Zone
changes reported by GameState.move enqueue the matching triggers:

- Enter triggers: a card with ``on_enter`` entered the battlefield.
- Watchers: another creature entered while a ``on_creature_enters``
  permanent is in play (Soul Warden, Wirewood Savage).
- Death triggers: a creature with ``on_death`` went to the graveyard.
- Host death triggers: a creature died carrying an aura with
  ``on_host_death`` (Pattern of Rebirth).

drain() resolves pending effects in the order they were generated until
the queue is empty. An effect with nothing to find or no legal target
does nothing.

Combo loops are resolved by run_loop as a bounded iteration: the loop body
repeats while its precondition holds and the configured iteration cap is
not reached. The win check runs after every step, so nothing is executed
once the game is won.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Deque, Dict, List, Optional, Union

from .objects import Card, Effect, Permanent
from .types import CardType, EffectKind, SearchFilter, Zone
from .zones import GameState, ZoneChange

if TYPE_CHECKING:
    from ..ai.strategy import Action, ComboLoop, Strategy


# -----------------------------------------------------------------------------
# Search filters
# -----------------------------------------------------------------------------

def matches_filter(card: Card, search: SearchFilter) -> bool:
    """Check whether a card can be found by a search with ``search``."""
    if search == SearchFilter.ANY:
        return True
    if search == SearchFilter.CREATURE:
        return card.is_creature
    if search == SearchFilter.ENCHANTMENT:
        return card.card_type == CardType.ENCHANTMENT
    if search == SearchFilter.ENCHANTMENT_OR_ARTIFACT:
        return card.card_type in (CardType.ENCHANTMENT, CardType.ARTIFACT)
    if search == SearchFilter.BASIC_LAND:
        return card.is_land and card.basic
    if search == SearchFilter.CREATURE_MV3:
        return card.is_creature and card.mana_value <= 3
    if search == SearchFilter.CREATURE_OR_LAND:
        return card.is_creature or card.is_land
    return False


# -----------------------------------------------------------------------------
# Pending effects
# -----------------------------------------------------------------------------

@dataclass
class PendingEffect:
    """An effect waiting in the queue, with the object that created it."""
    effect: Effect
    source: Optional[Union[Permanent, Card]] = None

    @property
    def source_name(self) -> str:
        return self.source.name if self.source is not None else "?"


class EffectResolver:
    """
    FIFO effect queue plus one handler per EffectKind.

    Args:
        state: The game state to mutate
        strategy: Makes the choices effects ask for (search, targets)
        iteration_cap: Maximum iterations of a single combo loop
        win_check: Returns True once the game is won; stops loops early
    """

    def __init__(self, state: GameState, strategy: 'Strategy',
                 iteration_cap: int = 100,
                 win_check: Optional[Callable[[GameState], bool]] = None):
        self.state = state
        self.strategy = strategy
        self.iteration_cap = iteration_cap
        self.win_check = win_check or (lambda s: False)
        self.queue: Deque[PendingEffect] = deque()
        self.resolved_count = 0

        self._handlers: Dict[EffectKind, Callable[[PendingEffect], None]] = {
            EffectKind.SEARCH_TO_HAND: self._search_to_hand,
            EffectKind.SEARCH_TO_TOP: self._search_to_top,
            EffectKind.SEARCH_TO_BATTLEFIELD: self._search_to_battlefield,
            EffectKind.SEARCH_SIDEBOARD: self._search_sideboard,
            EffectKind.INTUITION: self._intuition,
            EffectKind.LOOK_AND_TAKE: self._look_and_take,
            EffectKind.REANIMATE: self._reanimate,
            EffectKind.BOUNCE: self._bounce,
            EffectKind.RETURN_SELF: self._return_self,
            EffectKind.EACH_PLAYER_LOSES_LIFE: self._each_player_loses_life,
            EffectKind.GAIN_LIFE: self._gain_life,
            EffectKind.DEAL_DAMAGE: self._deal_damage,
            EffectKind.DRAW: self._draw,
            EffectKind.UNTAP_LANDS: self._untap_lands,
            EffectKind.ADD_COUNTER: self._add_counter,
            EffectKind.ADD_MANA: self._add_mana,
        }
        state.add_listener(self.on_zone_change)

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def enqueue(self, effect: Effect, source=None):
        self.queue.append(PendingEffect(effect, source))

    def drain(self) -> int:
        """Resolve pending effects until the queue is empty.

        Returns:
            Number of effects resolved
        """
        count = 0
        while self.queue:
            pending = self.queue.popleft()
            self.resolve(pending)
            count += 1
        return count

    def resolve(self, pending: PendingEffect):
        self.state.log(f"Resolving {pending.effect.kind.name.lower()} "
                       f"from {pending.source_name}", "debug")
        self._handlers[pending.effect.kind](pending)
        self.resolved_count += 1

    def on_zone_change(self, change: ZoneChange):
        """Enqueue the triggers a zone change causes."""
        card = change.card
        if change.entered_battlefield:
            if card.on_enter is not None:
                self.enqueue(card.on_enter, change.permanent)
            if card.is_creature:
                for watcher in self.state.permanents():
                    effect = watcher.card.on_creature_enters
                    if effect is None or watcher is change.permanent:
                        continue
                    if effect.subtype and effect.subtype not in card.subtypes:
                        continue
                    self.enqueue(effect, watcher)
        elif change.died:
            if card.on_death is not None:
                self.enqueue(card.on_death, change.permanent)
            for aura in change.attachments:
                if aura.card.on_host_death is not None:
                    self.enqueue(aura.card.on_host_death, aura)

    # -------------------------------------------------------------------------
    # Combo loops
    # -------------------------------------------------------------------------

    def run_loop(self, loop: 'ComboLoop', execute: Callable[['Action'], None]) -> int:
        """
        Repeat a combo loop body as a bounded iteration.

        Each step of the body is built from the current state, executed and
        followed by draining the queue and a win check. A win in the middle
        of the body ends the loop; that iteration counts as completed.

        Args:
            loop: The loop (precondition plus step builders)
            execute: Executes one action (the turn engine's executor)

        Returns:
            Number of completed iterations
        """
        iterations = 0
        won = self.win_check(self.state)
        while not won and iterations < self.iteration_cap and loop.precondition(self.state):
            for build_step in loop.steps:
                action = build_step(self.state)
                if action is None:
                    self.state.log(f"{loop.name}: step unavailable, loop stops", "warning")
                    return iterations
                execute(action)
                self.drain()
                won = self.win_check(self.state)
                if won:
                    break
            iterations += 1
            self.state.turn_counters["loop_iterations"] = (
                self.state.turn_counters.get("loop_iterations", 0) + 1)

        if iterations >= self.iteration_cap and not won:
            self.state.log(f"{loop.name}: iteration cap {self.iteration_cap} reached",
                           "warning")
        else:
            self.state.log(f"{loop.name}: {iterations} iteration(s)")
        return iterations

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _choose(self, effect: Effect, candidates: List[Card]) -> Optional[Card]:
        if not candidates:
            return None
        return self.strategy.decide_search(self.state, effect, candidates)

    def _search_to_hand(self, pending: PendingEffect):
        effect = pending.effect
        found = self.state.search_library(lambda c: matches_filter(c, effect.search))
        choice = self._choose(effect, found)
        if choice is not None:
            self.state.move(choice, Zone.LIBRARY, Zone.HAND)
            self.state.log(f"{pending.source_name} finds {choice.name}")
        self.state.shuffle_library()

    def _search_to_top(self, pending: PendingEffect):
        effect = pending.effect
        found = self.state.search_library(lambda c: matches_filter(c, effect.search))
        choice = self._choose(effect, found)
        if choice is not None:
            self.state.library.remove(choice)
        self.state.shuffle_library()
        if choice is not None:
            self.state.library.put_on_top(choice)
            self.state.log(f"{pending.source_name} puts {choice.name} on top")

    def _search_to_battlefield(self, pending: PendingEffect):
        effect = pending.effect
        for _ in range(effect.amount):
            found = self.state.search_library(lambda c: matches_filter(c, effect.search))
            choice = self._choose(effect, found)
            if choice is None:
                break
            host = None
            if choice.is_aura:
                hosts = self.state.permanents(lambda p: p.is_creature)
                targets = self.strategy.decide_targets(self.state, effect, hosts) if hosts else []
                if not targets:
                    break
                host = targets[0]
            self.state.move(choice, Zone.LIBRARY, Zone.BATTLEFIELD, attach_to=host)
            self.state.log(f"{pending.source_name} puts {choice.name} onto the battlefield"
                           + (f" attached to {host.name}" if host else ""))
        self.state.shuffle_library()

    def _search_sideboard(self, pending: PendingEffect):
        effect = pending.effect
        found = []
        for card in self.state.sideboard:
            if matches_filter(card, effect.search) and not any(card is c for c in found):
                found.append(card)
        choice = self._choose(effect, found)
        if choice is not None:
            self.state.move(choice, Zone.SIDEBOARD, Zone.HAND)
            self.state.log(f"{pending.source_name} wishes for {choice.name}")
        else:
            self.state.log(f"{pending.source_name} finds nothing in the sideboard")
        # A resolved wish is exiled
        source = pending.source
        if isinstance(source, Card) and source in self.state.graveyard:
            self.state.move(source, Zone.GRAVEYARD, Zone.EXILE)

    def _intuition(self, pending: PendingEffect):
        """Pick a pile from the library: the first card goes to hand, the rest to the graveyard."""
        effect = pending.effect
        pile = self.strategy.decide_pile(self.state, effect, list(self.state.library))
        taken = []
        for card in pile[:effect.amount]:
            if card not in self.state.library:
                continue
            to_zone = Zone.HAND if not taken else Zone.GRAVEYARD
            self.state.move(card, Zone.LIBRARY, to_zone)
            taken.append(card)
        if taken:
            self.state.log(f"{pending.source_name} takes {taken[0].name}, "
                           f"bins {', '.join(c.name for c in taken[1:]) or 'nothing'}")
        self.state.shuffle_library()

    def _look_and_take(self, pending: PendingEffect):
        effect = pending.effect
        looked = self.state.library.objects[:effect.amount]
        if not looked:
            return
        candidates = []
        for card in looked:
            if matches_filter(card, effect.search) and not any(card is c for c in candidates):
                candidates.append(card)
        choice = self._choose(effect, candidates)
        rest = len(looked)
        if choice is not None:
            self.state.move(choice, Zone.LIBRARY, Zone.HAND)
            self.state.log(f"{pending.source_name} takes {choice.name}")
            rest -= 1
        for _ in range(rest):
            self.state.library.put_on_bottom(self.state.library.pop_top())

    def _reanimate(self, pending: PendingEffect):
        effect = pending.effect
        found = []
        for card in self.state.graveyard:
            if matches_filter(card, effect.search) and not any(card is c for c in found):
                found.append(card)
        choice = self._choose(effect, found)
        if choice is not None:
            self.state.move(choice, Zone.GRAVEYARD, Zone.BATTLEFIELD)
            self.state.log(f"{pending.source_name} returns {choice.name} to the battlefield")

    def _bounce(self, pending: PendingEffect):
        effect = pending.effect

        def legal(permanent: Permanent) -> bool:
            if not permanent.is_creature:
                return False
            return not effect.colors or bool(permanent.card.colors & effect.colors)

        candidates = self.state.permanents(legal)
        if not candidates:
            return
        targets = self.strategy.decide_targets(self.state, effect, candidates)
        for target in targets[:effect.amount]:
            if target in self.state.battlefield:
                self.state.move(target, Zone.BATTLEFIELD, Zone.HAND)
                self.state.log(f"{pending.source_name} returns {target.name} to hand")

    def _return_self(self, pending: PendingEffect):
        source = pending.source
        if isinstance(source, Permanent) and source in self.state.battlefield:
            self.state.move(source, Zone.BATTLEFIELD, Zone.HAND)

    def _each_player_loses_life(self, pending: PendingEffect):
        self.state.lose_life(pending.effect.amount)
        self.state.deal_damage(pending.effect.amount)

    def _gain_life(self, pending: PendingEffect):
        self.state.gain_life(pending.effect.amount)

    def _deal_damage(self, pending: PendingEffect):
        self.state.deal_damage(pending.effect.amount)

    def _draw(self, pending: PendingEffect):
        # Optional draws: never draw the library empty
        if len(self.state.library) > pending.effect.amount:
            self.state.draw(pending.effect.amount)

    def _untap_lands(self, pending: PendingEffect):
        tapped = self.state.permanents(lambda p: p.is_land and p.tapped)
        if not tapped:
            return
        targets = self.strategy.decide_targets(self.state, pending.effect, tapped)
        for land in targets[:pending.effect.amount]:
            land.untap()

    def _add_counter(self, pending: PendingEffect):
        source = pending.source
        if isinstance(source, Permanent) and source in self.state.battlefield:
            source.add_counter("+1/+1", pending.effect.amount)

    def _add_mana(self, pending: PendingEffect):
        for kind in sorted(pending.effect.colors, key=lambda m: m.value):
            self.state.add_mana(kind, pending.effect.amount)
