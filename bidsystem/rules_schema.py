"""Validation schema for bidding-system configuration and authored definitions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .auction import TerminationPolicy
from .conventions import ConventionDefinition
from .seats import Seat, parse_seat

MAX_HP = 37
MAX_SUIT_LENGTH = 7


class AuctionRules(BaseModel):
    termination_policy: Literal["standard", "three_passes"] = Field(
        "standard",
        description="'standard': a passed-out auction needs four passes. 'three_passes': three passes always close.",
    )
    default_dealer: str = Field("south", description="Seat that deals when none is given.")

    @field_validator("default_dealer")
    @classmethod
    def validate_dealer(cls, value: str) -> str:
        return parse_seat(value).name.lower()

    def policy(self) -> TerminationPolicy:
        return TerminationPolicy(self.termination_policy)

    def dealer(self) -> Seat:
        return parse_seat(self.default_dealer)


class StoreConfig(BaseModel):
    path: Path = Field(Path("data/conventions.json"), description="JSON file holding the convention tree.")


class Settings(BaseModel):
    rules: AuctionRules = Field(default_factory=AuctionRules)
    store: StoreConfig = Field(default_factory=StoreConfig)


class DefinitionSchema(BaseModel):
    """Authoring-side view of a definition; enforces the ranges the tree does not."""

    min_hp: int = Field(0, ge=0, le=MAX_HP)
    max_hp: int = Field(MAX_HP, ge=0, le=MAX_HP)
    min_clubs: int = Field(0, ge=0, le=MAX_SUIT_LENGTH)
    min_diamonds: int = Field(0, ge=0, le=MAX_SUIT_LENGTH)
    min_hearts: int = Field(0, ge=0, le=MAX_SUIT_LENGTH)
    min_spades: int = Field(0, ge=0, le=MAX_SUIT_LENGTH)
    is_balanced: bool = False
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: List[str]) -> List[str]:
        cleaned = [tag.strip() for tag in value]
        return [tag for tag in cleaned if tag]

    @model_validator(mode="after")
    def check_hp_range(self) -> "DefinitionSchema":
        if self.min_hp > self.max_hp:
            raise ValueError(f"min_hp {self.min_hp} exceeds max_hp {self.max_hp}.")
        suit_total = self.min_clubs + self.min_diamonds + self.min_hearts + self.min_spades
        if suit_total > 13:
            raise ValueError(f"Suit minimums add up to {suit_total}, more than 13 cards.")
        return self

    def to_definition(self) -> ConventionDefinition:
        return ConventionDefinition(
            min_hp=self.min_hp,
            max_hp=self.max_hp,
            min_clubs=self.min_clubs,
            min_diamonds=self.min_diamonds,
            min_hearts=self.min_hearts,
            min_spades=self.min_spades,
            is_balanced=self.is_balanced,
            tags=frozenset(self.tags),
        )

    @classmethod
    def from_definition(cls, definition: ConventionDefinition) -> "DefinitionSchema":
        return cls.model_construct(
            min_hp=definition.min_hp,
            max_hp=definition.max_hp,
            min_clubs=definition.min_clubs,
            min_diamonds=definition.min_diamonds,
            min_hearts=definition.min_hearts,
            min_spades=definition.min_spades,
            is_balanced=definition.is_balanced,
            tags=sorted(definition.tags),
        )


def load_settings(path: Path | str) -> Settings:
    """Read settings from a JSON file."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return Settings.model_validate(payload)
