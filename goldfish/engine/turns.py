"""Goldfish Engine - Turn Structure

This module implements the goldfish turn: Untap, Draw, Main, End, in that
fixed order. The main step repeatedly asks the strategy for an action,
executes it and drains the effect queue until the strategy passes or the
win detector reports a verdict.

Strategy actions that turn out to be unpayable or illegal are rejected
and the strategy is asked again. After too many rejections in one main
step the step passes. In strict mode the error propagates instead.
"""

from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from .errors import DeckOut, IllegalAction, Unpayable
from .mana import find_payment
from .objects import Card, Permanent
from .types import ActionType, OutcomeReason, OutletKind, StepType, Zone

if TYPE_CHECKING:
    from ..ai.strategy import Action, Strategy
    from .effects import EffectResolver
    from .win import WinDetector
    from .zones import GameState


STEP_ORDER = (StepType.UNTAP, StepType.DRAW, StepType.MAIN, StepType.END)


class TurnEngine:
    """
    Drives turns for one game.

    Args:
        state: The game state
        strategy: Decision procedure for the deck
        resolver: Effect queue for the game
        detector: Win/loss checks
        on_the_play: Skip the draw on turn 1
        max_hand_size: Hand size enforced in the end step
        max_rejections: Rejected actions tolerated per main step
        max_actions: Actions executed per main step before it passes
        strict: Raise on rejected actions instead of asking again
    """

    def __init__(
        self,
        state: 'GameState',
        strategy: 'Strategy',
        resolver: 'EffectResolver',
        detector: 'WinDetector',
        on_the_play: bool = True,
        max_hand_size: int = 7,
        max_rejections: int = 16,
        max_actions: int = 1000,
        strict: bool = False
    ):
        self.state = state
        self.strategy = strategy
        self.resolver = resolver
        self.detector = detector
        self.on_the_play = on_the_play
        self.max_hand_size = max_hand_size
        self.max_rejections = max_rejections
        self.max_actions = max_actions
        self.strict = strict
        self.current_step: Optional[StepType] = None
        self.rejected: List['Action'] = []

        self._executors: Dict[ActionType, Callable[['Action'], None]] = {
            ActionType.PLAY_LAND: self._play_land,
            ActionType.CAST: self._cast,
            ActionType.ACTIVATE: self._activate,
            ActionType.SACRIFICE: self._sacrifice,
            ActionType.COMBO_LOOP: self._combo_loop,
        }

    # -------------------------------------------------------------------------
    # Turn flow
    # -------------------------------------------------------------------------

    def play_turn(self) -> Optional[OutcomeReason]:
        """
        Play one full turn.

        Returns:
            The terminal outcome reason if the game ended this turn, else None
        """
        self.state.turn += 1
        self.state.log(f"--- Turn {self.state.turn} ---")
        for step in STEP_ORDER:
            verdict = self.run_step(step)
            if verdict is not None:
                return verdict
        return None

    def run_step(self, step: StepType) -> Optional[OutcomeReason]:
        self.current_step = step
        if step == StepType.UNTAP:
            self._untap_step()
        elif step == StepType.DRAW:
            return self._draw_step()
        elif step == StepType.MAIN:
            return self._main_step()
        elif step == StepType.END:
            self._end_step()
        return None

    def _untap_step(self):
        self.state.untap_all()
        self.state.lands_played_this_turn = 0

    def _draw_step(self) -> Optional[OutcomeReason]:
        if self.state.turn == 1 and self.on_the_play:
            return None
        try:
            drawn = self.state.draw(1)
        except DeckOut:
            self.state.log("Tried to draw from an empty library", "warning")
            return OutcomeReason.DECK_OUT
        self.state.log(f"Drew {drawn[0].name}")
        return None

    def _main_step(self) -> Optional[OutcomeReason]:
        rejections = 0
        actions = 0
        while True:
            verdict = self.detector.check(self.state)
            if verdict is not None:
                return verdict
            if actions >= self.max_actions:
                self.state.log(f"Action limit {self.max_actions} reached, passing", "warning")
                return None

            action = self.strategy.decide_action(self.state)
            if action is None:
                return None
            actions += 1

            try:
                self.execute(action)
            except (Unpayable, IllegalAction) as exc:
                if self.strict:
                    raise
                rejections += 1
                self.rejected.append(action)
                self.state.log(f"Rejected {action}: {exc}", "warning")
                if rejections >= self.max_rejections:
                    self.state.log("Too many rejected actions, passing", "error")
                    return None

    def _end_step(self):
        excess = len(self.state.hand) - self.max_hand_size
        if excess > 0:
            hand = list(self.state.hand)
            for card in self.strategy.decide_discard(self.state, hand, excess)[:excess]:
                self.state.move(card, Zone.HAND, Zone.GRAVEYARD)
                self.state.log(f"Discarded {card.name}")
        self.state.clear_floating()
        self.state.turn_counters.clear()
        self.state.log_state()

    # -------------------------------------------------------------------------
    # Action execution
    # -------------------------------------------------------------------------

    def execute(self, action: 'Action'):
        """
        Execute one strategy action and drain the effect queue.

        Raises:
            Unpayable: The cost cannot be paid
            IllegalAction: The action breaks a rule; state is unchanged
        """
        executor = self._executors.get(action.action_type)
        if executor is None:
            raise IllegalAction(f"Unsupported action {action.action_type}")
        executor(action)
        self.resolver.drain()

    def _play_land(self, action: 'Action'):
        self.state.play_land(action.card)
        self.state.log(f"Playing land: {action.card.name}")

    def _cast(self, action: 'Action'):
        card: Card = action.card
        if not isinstance(card, Card) or card not in self.state.hand:
            raise IllegalAction(f"{card} is not in hand")
        if card.is_land:
            raise IllegalAction(f"{card} is a land; play it instead")

        host = None
        if card.is_aura:
            host = action.targets[0] if action.targets else None
            if (not isinstance(host, Permanent) or host not in self.state.battlefield
                    or not host.is_creature):
                raise IllegalAction(f"{card} needs a creature on the battlefield to enchant")

        cost = self.state.effective_cost(card)
        sources = self.strategy.decide_mana_sources(cost, self.state.mana_sources(exclude=card))
        payment = find_payment(cost, sources, self.state.floating, presorted=True)
        self.state.pay(payment)

        target_text = f" on {host.name}" if host else ""
        self.state.log(f"Casting {card.name}{target_text} with {payment.describe()}")

        if card.card_type.is_permanent:
            self.state.move(card, Zone.HAND, Zone.BATTLEFIELD, attach_to=host)
        else:
            self.state.move(card, Zone.HAND, Zone.GRAVEYARD)
            if card.on_resolve is not None:
                self.resolver.enqueue(card.on_resolve, card)

    def _activate(self, action: 'Action'):
        permanent = action.card
        if not isinstance(permanent, Permanent) or permanent not in self.state.battlefield:
            raise IllegalAction(f"{permanent} is not on the battlefield")
        effect = permanent.card.activated
        if effect is None:
            raise IllegalAction(f"{permanent.name} has no activated ability")

        # Activated abilities cost life equal to their amount
        self.state.lose_life(effect.amount)
        self.state.log(f"Activating {permanent.name} (pay {effect.amount} life)")
        self.resolver.enqueue(effect, permanent)

    def _sacrifice(self, action: 'Action'):
        victim = action.card
        outlet = action.source
        if not isinstance(victim, Permanent) or victim not in self.state.battlefield:
            raise IllegalAction(f"{victim} is not on the battlefield")
        if not victim.is_creature:
            raise IllegalAction(f"{victim.name} is not a creature")

        if isinstance(outlet, Permanent):
            kind = outlet.card.outlet
            if outlet not in self.state.battlefield or kind is None:
                raise IllegalAction(f"{outlet.name} is not a sacrifice outlet in play")
            if kind == OutletKind.TAP:
                if outlet.tapped:
                    raise IllegalAction(f"{outlet.name} is tapped")
                outlet.tap()
        elif isinstance(outlet, Card):
            if outlet.outlet != OutletKind.FLASHBACK or outlet not in self.state.graveyard:
                raise IllegalAction(f"{outlet.name} cannot be flashed back")
            self.state.move(outlet, Zone.GRAVEYARD, Zone.EXILE)
        else:
            raise IllegalAction("Sacrifice needs an outlet")

        self.state.log(f"Sacrificing {victim.name} to {outlet.name}")
        self.state.move(victim, Zone.BATTLEFIELD, Zone.GRAVEYARD)
        effect = outlet.card.on_sacrifice if isinstance(outlet, Permanent) else outlet.on_sacrifice
        if effect is not None:
            self.resolver.enqueue(effect, outlet)

    def _combo_loop(self, action: 'Action'):
        loop = action.loop
        if loop is None:
            raise IllegalAction("Combo loop action without a loop")
        self.state.turn_counters["combo_loops"] = self.state.turn_counters.get("combo_loops", 0) + 1
        self.state.log(f"Starting combo loop: {loop.name}")
        self.resolver.run_loop(loop, self.execute)
