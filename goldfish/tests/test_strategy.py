"""
Test suite for the archetype strategies - registry, mulligans, hand
ranking, action priorities and tutor choices.
"""
import pytest

from ..ai.aluren import Aluren, loop_ready, loop_wins
from ..ai.pattern_hulk import PatternHulk, combo_out_of_reach, kill_available
from ..ai.pattern_rector import PatternRector
from ..ai.strategy import available_strategies, get_strategy
from ..cards.catalog import get_card
from ..cards.parser import resolve_decklist, resolve_sideboard
from ..engine.errors import ConfigurationError
from ..engine.types import ActionType, Mana, OutcomeReason, SearchFilter, StepType, Zone
from .helpers import build_state, cards


def hand_of(*names):
    return cards(*names)


class TestRegistry:
    """Tests for looking up strategies by name."""

    def test_available(self):
        """Test every archetype is registered."""
        assert available_strategies() == ["aluren", "pattern-hulk", "pattern-rector"]

    def test_lookup_normalizes_name(self):
        """Test names are matched case-insensitively with _ and - interchangeable."""
        assert isinstance(get_strategy("Pattern_Rector"), PatternRector)
        assert isinstance(get_strategy("ALUREN"), Aluren)
        assert isinstance(get_strategy("Pattern Hulk"), PatternHulk)

    def test_unknown_strategy(self):
        """Test an unknown name is a configuration error."""
        with pytest.raises(ConfigurationError):
            get_strategy("high-tide")

    @pytest.mark.parametrize("strategy_cls", [PatternRector, PatternHulk, Aluren])
    def test_default_decklists_are_legal(self, strategy_cls):
        """Test each default list resolves to 60 catalog cards."""
        assert len(resolve_decklist(strategy_cls.deck_names(), deck_size=60)) == 60
        assert len(resolve_sideboard(strategy_cls.sideboard_names())) <= 15

    def test_aluren_sideboard(self):
        """Test the Aluren sideboard holds the only Maggot Carrier."""
        assert len(resolve_sideboard(Aluren.sideboard_names())) == 15
        assert "Maggot Carrier" in Aluren.sideboard_names()
        assert "Maggot Carrier" not in Aluren.deck_names()
        assert Aluren.deck_names().count("Living Wish") == 4
        assert Aluren.deck_names().count("Intuition") == 4


class TestPatternRectorMulligan:
    """Tests for the Pattern Rector keep rules."""

    def test_keep_piece_and_outlet(self, pattern_rector):
        """Test two lands with Pattern and an outlet is a keep."""
        hand = hand_of("Forest", "City of Brass", "Pattern of Rebirth", "Carrion Feeder",
                       "Birds of Paradise", "Cabal Therapy", "Worship")
        assert pattern_rector.decide_mulligan(None, hand, 0)

    def test_no_lands(self, pattern_rector):
        """Test a hand without lands is a mulligan."""
        hand = hand_of("Birds of Paradise", "Llanowar Elves", "Carrion Feeder",
                       "Pattern of Rebirth", "Academy Rector", "Nantuko Husk",
                       "Cabal Therapy")
        assert not pattern_rector.decide_mulligan(None, hand, 0)

    def test_one_land_two_sources(self, pattern_rector):
        """Test one land with a single mana creature is a mulligan."""
        hand = hand_of("Forest", "Birds of Paradise", "Pattern of Rebirth",
                       "Carrion Feeder", "Nantuko Husk", "Cabal Therapy", "Worship")
        assert not pattern_rector.decide_mulligan(None, hand, 0)

    def test_flood(self, pattern_rector):
        """Test six mana sources is a mulligan."""
        hand = hand_of("Forest", "Forest", "Forest", "Forest", "City of Brass",
                       "Birds of Paradise", "Pattern of Rebirth")
        assert not pattern_rector.decide_mulligan(None, hand, 0)

    def test_piece_and_creature_after_two_mulligans(self, pattern_rector):
        """Test a piece without an outlet is kept only after two mulligans."""
        hand = hand_of("Forest", "City of Brass", "Academy Rector", "Birds of Paradise",
                       "Worship", "Cabal Therapy", "Karmic Guide")
        assert not pattern_rector.decide_mulligan(None, hand, 1)
        assert pattern_rector.decide_mulligan(None, hand, 2)

    def test_always_keep_after_three(self, pattern_rector):
        """Test any hand is kept after three mulligans."""
        hand = hand_of("Worship", "Worship", "Worship", "Worship", "Worship")
        assert pattern_rector.decide_mulligan(None, hand, 3)


class TestPatternRectorRanking:
    """Tests for hand ranking and bottoming."""

    def test_bottom_order(self, pattern_rector):
        """Test the second combo piece and the third land go to the bottom."""
        hand = hand_of("Forest", "City of Brass", "Swamp", "Pattern of Rebirth",
                       "Academy Rector", "Carrion Feeder", "Birds of Paradise")
        bottom = pattern_rector.decide_bottom(None, hand, 2)
        assert [c.name for c in bottom] == ["Academy Rector", "Swamp"]

    def test_rank_keeps_every_card(self, pattern_rector):
        """Test ranking is a permutation of the hand."""
        hand = hand_of("Forest", "Worship", "Carrion Feeder", "Nantuko Husk")
        ranked = pattern_rector.rank_hand(None, hand)
        assert sorted(c.name for c in ranked) == sorted(c.name for c in hand)
        assert ranked[0].name == "Forest"


class TestPatternRectorActions:
    """Tests for the Pattern Rector action priority."""

    def test_outlet_before_pattern(self, engine_for, pattern_rector):
        """Test an outlet is cast first, then Pattern goes on the non-outlet creature."""
        state = build_state(battlefield=["City of Brass"] * 4 + ["Birds of Paradise"],
                            hand=["Pattern of Rebirth", "Carrion Feeder"])
        engine = engine_for(state, pattern_rector)

        first = pattern_rector.decide_action(state)
        assert first.action_type == ActionType.CAST
        assert first.card.name == "Carrion Feeder"
        engine.execute(first)

        second = pattern_rector.decide_action(state)
        assert second.card.name == "Pattern of Rebirth"
        assert second.targets[0].name == "Birds of Paradise"

    def test_land_first(self, pattern_rector):
        """Test the best land is played before anything else."""
        state = build_state(hand=["Carrion Feeder", "Forest", "City of Brass"],
                            battlefield=["Swamp"])
        action = pattern_rector.decide_action(state)
        assert action.action_type == ActionType.PLAY_LAND
        assert action.card.name == "City of Brass"

    def test_explorer_is_sacrificed(self, pattern_rector):
        """Test Veteran Explorer is sacrificed to an outlet for lands."""
        state = build_state(battlefield=["Carrion Feeder", "Veteran Explorer"])
        action = pattern_rector.decide_action(state)
        assert action.action_type == ActionType.SACRIFICE
        assert action.card.name == "Veteran Explorer"
        assert action.source.name == "Carrion Feeder"

    def test_pass_when_nothing_castable(self, pattern_rector):
        """Test the strategy passes with no land and no payable spell."""
        state = build_state(battlefield=["Forest"], hand=["Academy Rector"])
        assert pattern_rector.decide_action(state) is None

    def test_pattern_host_prefers_non_outlet(self, pattern_rector):
        """Test the earliest non-outlet creature is the Pattern host."""
        state = build_state(battlefield=["Carrion Feeder", "Llanowar Elves",
                                         "Birds of Paradise"])
        assert pattern_rector.pattern_host(state).name == "Llanowar Elves"

    def test_pattern_host_among_outlets(self, pattern_rector):
        """Test the earliest outlet hosts Pattern when every creature is an outlet."""
        state = build_state(battlefield=["Nantuko Husk", "Carrion Feeder"])
        assert pattern_rector.pattern_host(state).name == "Nantuko Husk"


class TestPatternRectorTutors:
    """Tests for the card a tutor or Pattern trigger looks for."""

    def test_no_piece_finds_rector_or_pattern(self, pattern_rector):
        """Test an empty board looks for the missing combo piece."""
        state = build_state(library=["Forest"])
        assert pattern_rector.best_card_to_find(state, SearchFilter.CREATURE) == \
            "Academy Rector"
        assert pattern_rector.best_card_to_find(state, SearchFilter.ENCHANTMENT) == \
            "Pattern of Rebirth"

    def test_piece_without_outlet_finds_outlet(self, pattern_rector):
        """Test a piece in hand without an outlet looks for one."""
        state = build_state(hand=["Academy Rector"])
        assert pattern_rector.best_card_to_find(state, SearchFilter.CREATURE) == \
            "Carrion Feeder"
        assert pattern_rector.best_card_to_find(state, SearchFilter.ENCHANTMENT) == \
            "Goblin Bombardment"

    def test_redundant_host_finds_outlet(self, pattern_rector):
        """Test Pattern on a non-outlet creature makes the chain look for an outlet."""
        state = build_state(battlefield=["Birds of Paradise"], hand=["Pattern of Rebirth"])
        state.move(get_card("Pattern of Rebirth"), Zone.HAND, Zone.BATTLEFIELD,
                   attach_to=state.permanents()[0])
        assert pattern_rector.best_card_to_find(state, SearchFilter.CREATURE) == \
            "Carrion Feeder"

    def test_search_falls_back_to_best_land(self, pattern_rector):
        """Test a basic land search takes the best basic."""
        state = build_state(library=["Forest"])
        effect = get_card("Veteran Explorer").on_death
        choice = pattern_rector.decide_search(state, effect, cards("Swamp", "Forest"))
        assert choice.name == "Swamp"


class TestAlurenMulligan:
    """Tests for the Aluren keep rules."""

    def test_keep_aluren_and_engine(self, aluren):
        """Test two lands, Aluren and Cavern Harpy is a keep."""
        hand = hand_of("City of Brass", "Forest", "Aluren", "Cavern Harpy", "Impulse",
                       "Cabal Therapy", "Unearth")
        assert aluren.decide_mulligan(None, hand, 0)

    def test_aluren_alone_kept_after_a_mulligan(self, aluren):
        """Test Aluren without an engine creature needs a mulligan first."""
        hand = hand_of("City of Brass", "Forest", "Aluren", "Impulse", "Cabal Therapy",
                       "Unearth", "Soul Warden")
        assert not aluren.decide_mulligan(None, hand, 0)
        assert aluren.decide_mulligan(None, hand, 1)

    def test_no_lands(self, aluren):
        """Test a hand without lands is a mulligan."""
        hand = hand_of("Aluren", "Cavern Harpy", "Birds of Paradise", "Impulse",
                       "Unearth", "Soul Warden", "Maggot Carrier")
        assert not aluren.decide_mulligan(None, hand, 0)


class TestAlurenActions:
    """Tests for the Aluren action priority and the drain loop."""

    def test_setup_casts_aluren(self, aluren):
        """Test Aluren is the first spell before it is in play."""
        state = build_state(battlefield=["Forest", "Forest", "City of Brass", "Swamp"],
                            hand=["Impulse", "Aluren"])
        action = aluren.decide_action(state)
        assert action.card.name == "Aluren"

    def test_loop_with_soul_warden_wins(self, engine_for, aluren):
        """Test the drain loop runs to a win with Soul Warden paying the life back."""
        state = build_state(battlefield=["Aluren", "Soul Warden", "Forest"],
                            hand=["Maggot Carrier", "Cavern Harpy"],
                            library=["Island"] * 5)
        engine = engine_for(state, aluren)

        assert engine.turns.run_step(StepType.MAIN) == OutcomeReason.COMBO_WIN
        assert state.damage_dealt == 20
        assert state.life_total == 20
        assert state.turn_counters["loop_iterations"] == 20

    def test_loop_not_started_when_it_cannot_win(self, aluren):
        """Test the loop is held back when life runs out before the opponent's."""
        state = build_state(battlefield=["Aluren", "Forest"],
                            hand=["Maggot Carrier", "Cavern Harpy"])
        assert loop_ready(state)
        assert not loop_wins(state)
        assert aluren.decide_action(state) is None

    def test_loop_wins_with_enough_life(self):
        """Test high life makes the loop lethal without Soul Warden."""
        state = build_state(battlefield=["Aluren"], hand=["Maggot Carrier", "Cavern Harpy"],
                            life=41)
        assert loop_wins(state)

    def test_bounce_order(self, aluren):
        """Test Cavern Harpy returns Carrier before Raven and itself last."""
        state = build_state(battlefield=["Cavern Harpy", "Raven Familiar", "Maggot Carrier"])
        effect = get_card("Cavern Harpy").on_enter
        ordered = aluren.decide_targets(state, effect, state.permanents())
        assert [p.name for p in ordered] == ["Maggot Carrier", "Raven Familiar",
                                             "Cavern Harpy"]

    def test_tutor_prefers_harpy(self, aluren):
        """Test Living Wish looks for Cavern Harpy on an empty board."""
        state = build_state(library=["Forest"])
        effect = get_card("Living Wish").on_resolve
        candidates = cards("Maggot Carrier", "Soul Warden", "Cavern Harpy")
        assert aluren.decide_search(state, effect, candidates).name == "Cavern Harpy"

    def test_living_wish_finds_carrier_for_the_loop(self, aluren):
        """Test Living Wish fetches Maggot Carrier once the other pieces are seen."""
        state = build_state(battlefield=["Aluren"],
                            hand=["Cavern Harpy", "Soul Warden", "Raven Familiar"])
        effect = get_card("Living Wish").on_resolve
        candidates = cards("Cavern Harpy", "Wirewood Savage", "Soul Warden",
                           "Maggot Carrier", "Raven Familiar")
        assert aluren.decide_search(state, effect, candidates).name == "Maggot Carrier"

    def test_intuition_before_impulse(self, aluren):
        """Test Intuition is cast ahead of Impulse while Aluren is missing."""
        state = build_state(battlefield=["City of Brass", "City of Brass", "Island"],
                            hand=["Impulse", "Intuition"])
        assert aluren.decide_action(state).card.name == "Intuition"


class TestAlurenIntuition:
    """Tests for the Intuition pile."""

    def test_three_alurens(self, aluren):
        """Test a board without Aluren asks for every copy of it."""
        state = build_state(library=["Forest", "Aluren", "Aluren", "Aluren", "Island"])
        effect = get_card("Intuition").on_resolve
        pile = aluren.decide_pile(state, effect, list(state.library))
        assert [c.name for c in pile] == ["Aluren"] * 3

    def test_harpy_pile_keeps_the_filler(self, aluren):
        """Test the Harpy pile hands over the filler card and bins Harpy with Unearth."""
        state = build_state(battlefield=["Aluren"],
                            library=["Forest", "Cavern Harpy", "Unearth", "Swamp"])
        effect = get_card("Intuition").on_resolve
        pile = aluren.decide_pile(state, effect, list(state.library))
        assert [c.name for c in pile] == ["Forest", "Unearth", "Cavern Harpy"]

    def test_engine_pile(self, aluren):
        """Test missing draw engines ask for Savage and Raven."""
        state = build_state(battlefield=["Aluren"], hand=["Cavern Harpy"],
                            library=["Raven Familiar", "Island", "Wirewood Savage",
                                     "Raven Familiar"])
        assert aluren.pile_primary(state) == "Wirewood Savage"
        effect = get_card("Intuition").on_resolve
        pile = aluren.decide_pile(state, effect, list(state.library))
        assert sorted(c.name for c in pile) == ["Raven Familiar", "Raven Familiar",
                                                "Wirewood Savage"]

    def test_short_library(self, aluren):
        """Test a library smaller than the pile gives what it has."""
        state = build_state(library=["Forest"])
        effect = get_card("Intuition").on_resolve
        assert [c.name for c in aluren.decide_pile(state, effect, list(state.library))] == \
            ["Forest"]


class TestPatternHulkActions:
    """Tests for the Pattern Hulk action priority."""

    def test_pattern_before_rector(self, pattern_hulk):
        """Test Pattern goes on a creature before Rector is cast."""
        state = build_state(battlefield=["City of Brass"] * 4 + ["Birds of Paradise"],
                            hand=["Academy Rector", "Pattern of Rebirth"])
        action = pattern_hulk.decide_action(state)
        assert action.card.name == "Pattern of Rebirth"
        assert action.targets[0].name == "Birds of Paradise"

    def test_second_pattern_needs_a_free_host(self, pattern_hulk):
        """Test a creature already wearing Pattern is not chosen again."""
        state = build_state(battlefield=["Birds of Paradise", "Carrion Feeder"],
                            library=["Pattern of Rebirth"])
        state.move(get_card("Pattern of Rebirth"), Zone.LIBRARY, Zone.BATTLEFIELD,
                   attach_to=state.permanents_named("Birds of Paradise")[0])
        assert pattern_hulk.pattern_host(state).name == "Carrion Feeder"

    def test_explorer_to_cabal_therapy(self, pattern_hulk):
        """Test Veteran Explorer is flashed away with Cabal Therapy without an outlet."""
        state = build_state(battlefield=["Veteran Explorer"], graveyard=["Cabal Therapy"])
        action = pattern_hulk.decide_action(state)
        assert action.action_type == ActionType.SACRIFICE
        assert action.card.name == "Veteran Explorer"
        assert action.source is get_card("Cabal Therapy")

    def test_explorer_to_tower_adds_black_mana(self, engine_for, pattern_hulk):
        """Test Phyrexian Tower eats Veteran Explorer for two basics and BB."""
        state = build_state(battlefield=["Veteran Explorer", "Phyrexian Tower"],
                            library=["Swamp", "Plains", "Island"])
        engine = engine_for(state, pattern_hulk)
        action = pattern_hulk.decide_action(state)
        assert action.source.name == "Phyrexian Tower"

        engine.execute(action)
        assert state.graveyard.names() == ["Veteran Explorer"]
        assert len(state.permanents(lambda p: p.is_land)) == 3
        assert state.floating.get(Mana.BLACK) == 2
        assert state.permanents_named("Phyrexian Tower")[0].tapped

    def test_explorer_cast_without_dorks(self, pattern_hulk):
        """Test Veteran Explorer is cast when no mana creature is castable."""
        state = build_state(battlefield=["Forest"], hand=["Veteran Explorer"])
        assert pattern_hulk.decide_action(state).card.name == "Veteran Explorer"


class TestPatternHulkTutors:
    """Tests for the card a Pattern Hulk search takes."""

    def test_empty_board_finds_rector(self, pattern_hulk):
        """Test an empty board takes Rector first."""
        state = build_state(library=["Forest"])
        effect = get_card("Pattern of Rebirth").on_host_death
        candidates = cards("Carrion Feeder", "Birds of Paradise", "Academy Rector")
        assert pattern_hulk.decide_search(state, effect, candidates).name == \
            "Academy Rector"

    def test_redundant_host_finds_outlet(self, pattern_hulk):
        """Test Pattern on a non-outlet creature looks for Carrion Feeder."""
        state = build_state(battlefield=["Birds of Paradise"],
                            library=["Pattern of Rebirth"])
        state.move(get_card("Pattern of Rebirth"), Zone.LIBRARY, Zone.BATTLEFIELD,
                   attach_to=state.permanents()[0])
        effect = get_card("Pattern of Rebirth").on_host_death
        candidates = cards("Academy Rector", "Nantuko Husk", "Carrion Feeder")
        assert pattern_hulk.decide_search(state, effect, candidates).name == \
            "Carrion Feeder"

    def test_short_on_mana_takes_a_land_with_a_drop_left(self, pattern_hulk):
        """Test a missing land drop is filled before mana creatures."""
        state = build_state(hand=["Academy Rector", "Carrion Feeder"], library=["Forest"])
        effect = get_card("Pattern of Rebirth").on_host_death
        candidates = cards("Birds of Paradise", "Forest", "City of Brass")
        assert pattern_hulk.decide_search(state, effect, candidates).name == "City of Brass"

        state.lands_played_this_turn = 1
        assert pattern_hulk.decide_search(state, effect, candidates).name == \
            "Birds of Paradise"


class TestPatternHulkLoss:
    """Tests for the kills the library still supports."""

    def test_main_kill(self):
        """Test the main kill needs three reanimation targets and the chain pieces."""
        state = build_state(library=["Volrath's Shapeshifter", "Karmic Guide",
                                     "Body Snatcher", "Academy Rector",
                                     "Pattern of Rebirth", "Goblin Bombardment"])
        assert kill_available(state)
        assert not combo_out_of_reach(state)

    def test_simple_kill_needs_bombardment_in_play(self):
        """Test the simple kill counts only with Bombardment on the battlefield."""
        library = ["Iridescent Drake", "Karmic Guide", "Volrath's Shapeshifter"]
        assert not kill_available(build_state(library=library))
        assert kill_available(build_state(library=library,
                                          battlefield=["Goblin Bombardment"]))

    def test_backup_kill(self):
        """Test the backup kill with Akroma and Caller of the Claw."""
        state = build_state(library=["Volrath's Shapeshifter", "Volrath's Shapeshifter",
                                     "Karmic Guide", "Karmic Guide", "Academy Rector",
                                     "Pattern of Rebirth", "Akroma, Angel of Wrath",
                                     "Caller of the Claw"])
        assert kill_available(state)

    def test_out_of_reach(self):
        """Test an empty library is a loss unless Bombardment is in hand."""
        assert combo_out_of_reach(build_state(library=["Forest"]))
        assert not combo_out_of_reach(build_state(library=["Forest"],
                                                  hand=["Goblin Bombardment"]))

    def test_full_deck_can_combo(self, pattern_hulk):
        """Test the default list starts with every kill available."""
        state = build_state(library=pattern_hulk.deck_names())
        assert kill_available(state)
