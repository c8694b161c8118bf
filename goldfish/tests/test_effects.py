"""
Test suite for the effect resolver - trigger ordering, Pattern and Rector
death triggers, tutors and the bounded combo loop.
"""
import pytest

from ..ai.strategy import Action, ComboLoop
from ..cards.catalog import get_card
from ..engine.effects import matches_filter
from ..engine.objects import Effect
from ..engine.types import ActionType, EffectKind, OutcomeReason, SearchFilter, StepType, Zone
from .helpers import ScriptedStrategy, build_state


def sacrifice(state, victim_name, outlet_name="Carrion Feeder"):
    victim = state.permanents_named(victim_name)[0]
    outlet = state.permanents_named(outlet_name)[0]
    return Action(ActionType.SACRIFICE, card=victim, source=outlet)


class TestTriggerOrder:
    """Triggers resolve in the order they were generated."""

    def test_enter_trigger_before_watcher(self, engine_for, aluren):
        """Test Maggot Carrier's drain resolves before Soul Warden's life gain."""
        state = build_state(battlefield=["Soul Warden", "Swamp"], hand=["Maggot Carrier"])
        engine = engine_for(state, aluren)
        resolved = []
        real_resolve = engine.resolver.resolve

        def record(pending):
            resolved.append(pending.effect.kind)
            real_resolve(pending)

        engine.resolver.resolve = record
        engine.execute(aluren.cast(get_card("Maggot Carrier")))

        assert resolved == [EffectKind.EACH_PLAYER_LOSES_LIFE, EffectKind.GAIN_LIFE]
        assert state.life_total == 20
        assert state.damage_dealt == 1

    def test_queue_empty_after_action(self, engine_for, aluren):
        """Test execute drains every pending effect."""
        state = build_state(battlefield=["Soul Warden", "Swamp"], hand=["Maggot Carrier"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Maggot Carrier")))
        assert len(engine.resolver.queue) == 0


class TestPatternRector:
    """Tests for the Pattern of Rebirth and Academy Rector death triggers."""

    def test_pattern_host_death_fetches_creature(self, engine_for, pattern_rector):
        """Test sacrificing the Pattern host puts a creature onto the battlefield."""
        state = build_state(battlefield=["Carrion Feeder", "Birds of Paradise"],
                            hand=["Pattern of Rebirth"],
                            library=["Academy Rector", "Forest"])
        birds = state.permanents_named("Birds of Paradise")[0]
        state.move(get_card("Pattern of Rebirth"), Zone.HAND, Zone.BATTLEFIELD,
                   attach_to=birds)
        engine = engine_for(state, pattern_rector)

        engine.execute(sacrifice(state, "Birds of Paradise"))

        assert sorted(p.name for p in state.battlefield) == ["Academy Rector",
                                                              "Carrion Feeder"]
        assert sorted(state.graveyard.names()) == ["Birds of Paradise",
                                                   "Pattern of Rebirth"]
        feeder = state.permanents_named("Carrion Feeder")[0]
        assert feeder.counters["+1/+1"] == 1
        assert state.total_cards() == 5

    def test_rector_death_fetches_pattern_onto_creature(self, engine_for, pattern_rector):
        """Test Academy Rector dying attaches Pattern of Rebirth to a creature."""
        state = build_state(battlefield=["Carrion Feeder", "Academy Rector"],
                            library=["Pattern of Rebirth", "Forest"])
        engine = engine_for(state, pattern_rector)

        engine.execute(sacrifice(state, "Academy Rector"))

        pattern = state.permanents_named("Pattern of Rebirth")[0]
        assert pattern.attached_to is state.permanents_named("Carrion Feeder")[0]
        assert state.graveyard.names() == ["Academy Rector"]

    def test_rector_with_no_creature_left_finds_nothing(self, engine_for, pattern_rector):
        """Test an aura with no host to enchant stays in the library."""
        state = build_state(battlefield=["Academy Rector"], graveyard=["Cabal Therapy"],
                            library=["Pattern of Rebirth"])
        engine = engine_for(state, pattern_rector)
        rector = state.permanents()[0]

        engine.execute(Action(ActionType.SACRIFICE, card=rector,
                              source=get_card("Cabal Therapy")))

        assert state.library.names() == ["Pattern of Rebirth"]
        assert state.exile.names() == ["Cabal Therapy"]

    def test_explorer_fetches_two_basics(self, engine_for, pattern_rector):
        """Test Veteran Explorer finds two basic lands."""
        state = build_state(battlefield=["Carrion Feeder", "Veteran Explorer"],
                            library=["City of Brass", "Forest", "Plains", "Swamp"])
        engine = engine_for(state, pattern_rector)

        engine.execute(sacrifice(state, "Veteran Explorer"))

        lands = [p for p in state.battlefield if p.is_land]
        assert len(lands) == 2
        assert all(p.card.basic for p in lands)
        assert "City of Brass" in state.library.names()


class TestTutors:
    """Tests for search and look effects."""

    def test_search_with_no_match_does_nothing(self, engine_for, aluren):
        """Test Eladamri's Call with no creature in the library."""
        state = build_state(battlefield=["City of Brass", "Forest"],
                            hand=["Eladamri's Call"], library=["Island", "Swamp"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Eladamri's Call")))
        assert state.hand.names() == []
        assert state.graveyard.names() == ["Eladamri's Call"]
        assert len(state.library) == 2

    def test_search_to_top(self, engine_for):
        """Test Worldly Tutor puts the chosen creature on top of the library."""
        state = build_state(battlefield=["Forest"], hand=["Worldly Tutor"],
                            library=["Island", "Swamp", "Cavern Harpy", "Plains"])
        engine = engine_for(state, ScriptedStrategy())
        engine.execute(Action(ActionType.CAST, card=get_card("Worldly Tutor")))
        assert state.library.top().name == "Cavern Harpy"
        assert len(state.library) == 4

    def test_look_and_take_bottoms_the_rest(self, engine_for):
        """Test Impulse takes one card and puts the others on the bottom."""
        state = build_state(battlefield=["Island", "Forest"], hand=["Impulse"],
                            library=["Swamp", "Aluren", "Plains", "Mountain", "Forest"])
        engine = engine_for(state, ScriptedStrategy())
        engine.execute(Action(ActionType.CAST, card=get_card("Impulse")))
        assert state.hand.names() == ["Swamp"]
        assert state.library.names() == ["Forest", "Aluren", "Plains", "Mountain"]

    def test_reanimate(self, engine_for, aluren):
        """Test Unearth returns a small creature from the graveyard."""
        state = build_state(battlefield=["Swamp"], hand=["Unearth"],
                            graveyard=["Maggot Carrier"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Unearth")))
        assert [p.name for p in state.battlefield] == ["Swamp", "Maggot Carrier"]
        assert state.damage_dealt == 1

    def test_living_wish_takes_from_sideboard(self, engine_for, aluren):
        """Test Living Wish brings a sideboard creature to hand and is exiled."""
        state = build_state(battlefield=["City of Brass", "Forest"], hand=["Living Wish"],
                            sideboard=["Maggot Carrier", "Naturalize", "Cavern Harpy"],
                            library=["Island"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Living Wish")))
        assert state.hand.names() == ["Cavern Harpy"]
        assert state.sideboard.names() == ["Maggot Carrier", "Naturalize"]
        assert state.exile.names() == ["Living Wish"]
        assert state.graveyard.names() == []
        assert state.total_cards() == state.deck_size + state.sideboard_size

    def test_living_wish_ignores_other_card_types(self, engine_for, aluren):
        """Test a sideboard without creatures or lands leaves the hand empty."""
        state = build_state(battlefield=["City of Brass", "Forest"], hand=["Living Wish"],
                            sideboard=["Naturalize", "Hydroblast"], library=["Island"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Living Wish")))
        assert state.hand.names() == []
        assert len(state.sideboard) == 2
        assert state.exile.names() == ["Living Wish"]

    def test_intuition_default_pile(self, engine_for):
        """Test Intuition keeps the first card of the pile and bins the rest."""
        state = build_state(battlefield=["Island", "Island", "Island"], hand=["Intuition"],
                            library=["Swamp", "Plains", "Mountain", "Forest"])
        engine = engine_for(state, ScriptedStrategy())
        engine.execute(Action(ActionType.CAST, card=get_card("Intuition")))
        assert state.hand.names() == ["Swamp"]
        assert state.graveyard.names() == ["Intuition", "Plains", "Mountain"]
        assert state.library.names() == ["Forest"]

    def test_intuition_bins_harpy_next_to_unearth(self, engine_for, aluren):
        """Test the Aluren pile leaves Cavern Harpy in the graveyard with Unearth."""
        state = build_state(battlefield=["Aluren", "City of Brass", "City of Brass", "Island"],
                            hand=["Intuition"],
                            library=["Forest", "Cavern Harpy", "Unearth", "Swamp"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Intuition")))
        assert state.hand.names() == ["Forest"]
        assert sorted(state.graveyard.names()) == ["Cavern Harpy", "Intuition", "Unearth"]
        assert state.library.names() == ["Swamp"]


class TestBounce:
    """Tests for Cavern Harpy's enter trigger and return ability."""

    def test_harpy_returns_carrier(self, engine_for, aluren):
        """Test Cavern Harpy bounces Maggot Carrier rather than itself."""
        state = build_state(battlefield=["Aluren", "Maggot Carrier"], hand=["Cavern Harpy"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Cavern Harpy")))
        assert state.hand.names() == ["Maggot Carrier"]
        assert state.permanents_named("Cavern Harpy")

    def test_harpy_returns_itself_when_alone(self, engine_for, aluren):
        """Test Cavern Harpy must bounce itself without another blue or black creature."""
        state = build_state(battlefield=["Aluren", "Birds of Paradise"],
                            hand=["Cavern Harpy"])
        engine = engine_for(state, aluren)
        engine.execute(aluren.cast(get_card("Cavern Harpy")))
        assert state.hand.names() == ["Cavern Harpy"]
        assert state.permanents_named("Birds of Paradise")

    def test_activated_return_costs_life(self, engine_for, aluren):
        """Test returning Cavern Harpy costs 1 life."""
        state = build_state(battlefield=["Cavern Harpy"])
        engine = engine_for(state, aluren)
        engine.execute(Action(ActionType.ACTIVATE, card=state.permanents()[0]))
        assert state.hand.names() == ["Cavern Harpy"]
        assert state.life_total == 19


class TestComboLoop:
    """Tests for run_loop as a bounded iteration."""

    def make_loop(self, steps, precondition=lambda s: True):
        return ComboLoop(name="test loop", precondition=precondition, steps=steps)

    def test_iteration_cap(self, engine_for):
        """Test the loop stops at the iteration cap."""
        state = build_state(library=["Forest"])
        engine = engine_for(state, ScriptedStrategy(), iteration_cap=5)
        executed = []
        loop = self.make_loop([lambda s: Action(ActionType.ACTIVATE)])

        iterations = engine.resolver.run_loop(loop, executed.append)

        assert iterations == 5
        assert len(executed) == 5
        assert state.turn_counters["loop_iterations"] == 5

    def test_step_unavailable_stops_loop(self, engine_for):
        """Test a step builder returning None ends the loop."""
        state = build_state(library=["Forest"])
        engine = engine_for(state, ScriptedStrategy())
        executed = []
        loop = self.make_loop([lambda s: Action(ActionType.ACTIVATE), lambda s: None])

        assert engine.resolver.run_loop(loop, executed.append) == 0
        assert len(executed) == 1

    def test_precondition_checked_each_iteration(self, engine_for):
        """Test the loop stops once its precondition fails."""
        state = build_state(library=["Forest"])
        engine = engine_for(state, ScriptedStrategy())

        def step(s):
            s.lose_life(1)
            return Action(ActionType.ACTIVATE)

        loop = self.make_loop([step], precondition=lambda s: s.life_total > 17)
        assert engine.resolver.run_loop(loop, lambda action: None) == 3

    def test_loop_stops_when_won(self, engine_for):
        """Test the loop stops as soon as the game is won."""
        state = build_state(library=["Forest"])
        engine = engine_for(state, ScriptedStrategy())

        def step(s):
            s.deal_damage(5)
            return Action(ActionType.ACTIVATE)

        assert engine.resolver.run_loop(self.make_loop([step]), lambda a: None) == 4
        assert state.damage_dealt == 20

    def test_win_mid_body_skips_remaining_steps(self, engine_for):
        """Test steps after the winning one never run."""
        state = build_state(library=["Forest"])
        state.deal_damage(19)
        engine = engine_for(state, ScriptedStrategy())
        later = []

        def lethal(s):
            s.deal_damage(1)
            return Action(ActionType.ACTIVATE)

        def after(s):
            later.append(s.damage_dealt)
            return Action(ActionType.ACTIVATE)

        loop = self.make_loop([lethal, after])
        assert engine.resolver.run_loop(loop, lambda a: None) == 1
        assert later == []
        assert state.turn_counters["loop_iterations"] == 1

    def test_already_won_runs_nothing(self, engine_for):
        """Test a loop started on a won game executes no step."""
        state = build_state(library=["Forest"])
        state.deal_damage(20)
        engine = engine_for(state, ScriptedStrategy())
        executed = []
        loop = self.make_loop([lambda s: Action(ActionType.ACTIVATE)])
        assert engine.resolver.run_loop(loop, executed.append) == 0
        assert executed == []

    def test_drain_stops_before_harpy_once_lethal(self, engine_for, aluren):
        """Test Cavern Harpy stays in hand when Maggot Carrier deals the last point."""
        state = build_state(battlefield=["Aluren", "Soul Warden", "Forest"],
                            hand=["Maggot Carrier", "Cavern Harpy"],
                            library=["Island"] * 5)
        state.deal_damage(19)
        engine = engine_for(state, aluren)

        assert engine.turns.run_step(StepType.MAIN) == OutcomeReason.COMBO_WIN
        assert state.damage_dealt == 20
        assert state.hand.names() == ["Cavern Harpy"]
        assert state.permanents_named("Maggot Carrier")
        assert state.turn_counters["loop_iterations"] == 1


class TestSearchFilters:
    """Tests for matches_filter."""

    @pytest.mark.parametrize("name,search,expected", [
        ("Pattern of Rebirth", SearchFilter.ENCHANTMENT, True),
        ("Lotus Petal", SearchFilter.ENCHANTMENT_OR_ARTIFACT, True),
        ("Lotus Petal", SearchFilter.ENCHANTMENT, False),
        ("Forest", SearchFilter.BASIC_LAND, True),
        ("City of Brass", SearchFilter.BASIC_LAND, False),
        ("Maggot Carrier", SearchFilter.CREATURE_MV3, True),
        ("Karmic Guide", SearchFilter.CREATURE_MV3, False),
    ])
    def test_filters(self, name, search, expected):
        """Test each search filter on a representative card."""
        assert matches_filter(get_card(name), search) is expected

    def test_every_effect_kind_has_a_handler(self, engine_for):
        """Test the resolver covers every effect kind."""
        engine = engine_for(build_state(library=["Forest"]), ScriptedStrategy())
        assert set(engine.resolver._handlers) == set(EffectKind)

    def test_draw_never_empties_library(self, engine_for):
        """Test an optional draw is skipped when it would empty the library."""
        state = build_state(library=["Forest"])
        engine = engine_for(state, ScriptedStrategy())
        engine.resolver.enqueue(Effect(EffectKind.DRAW, amount=1))
        engine.resolver.drain()
        assert len(state.library) == 1
