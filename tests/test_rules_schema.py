import json

import pytest
from pydantic import ValidationError

from bidsystem.auction import TerminationPolicy
from bidsystem.conventions import ConventionDefinition
from bidsystem.rules_schema import AuctionRules, DefinitionSchema, Settings, load_settings
from bidsystem.seats import Seat


def test_default_rules():
    rules = AuctionRules()

    assert rules.policy() is TerminationPolicy.STANDARD
    assert rules.dealer() is Seat.SOUTH


def test_rules_accept_seat_letters_and_policy_names():
    rules = AuctionRules(termination_policy="three_passes", default_dealer="E")

    assert rules.policy() is TerminationPolicy.THREE_PASSES
    assert rules.default_dealer == "east"

    with pytest.raises(ValidationError):
        AuctionRules(termination_policy="two_passes")
    with pytest.raises(ValidationError):
        AuctionRules(default_dealer="center")


@pytest.mark.parametrize(
    "payload",
    [
        {"min_hp": -1},
        {"max_hp": 38},
        {"min_spades": 8},
        {"min_hp": 18, "max_hp": 10},
        {"min_clubs": 5, "min_diamonds": 5, "min_hearts": 4},
    ],
)
def test_definition_schema_enforces_ranges(payload):
    with pytest.raises(ValidationError):
        DefinitionSchema(**payload)


def test_definition_schema_round_trip():
    schema = DefinitionSchema(min_hp=15, max_hp=17, is_balanced=True, tags=["strong", " ", " nt "])

    definition = schema.to_definition()

    assert definition == ConventionDefinition(
        min_hp=15, max_hp=17, is_balanced=True, tags=frozenset({"strong", "nt"})
    )
    assert DefinitionSchema.from_definition(definition).tags == ["nt", "strong"]


def test_load_settings(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps({"rules": {"termination_policy": "three_passes"}, "store": {"path": "x/book.json"}}),
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.rules.policy() is TerminationPolicy.THREE_PASSES
    assert settings.store.path.name == "book.json"
    assert Settings().store.path.name == "conventions.json"
