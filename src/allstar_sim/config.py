"""Static contest configuration constants."""

from __future__ import annotations

from dataclasses import dataclass

NUM_SHOOTERS_IN_CONTEST = 8
NUM_RACKS = 5
NUM_BALLS_PER_RACK = 5
MONEYBALL_VALUE = 2
# Shooters kept after each normal round; the last tier must crown one winner.
ADVANCE_COUNTS: tuple[int, ...] = (3, 1)
AWARD_LABEL = "Three-Point Contest Winner"
RATING_KEY = "three_point"
CONTEST_SAVE_VERSION = 1


@dataclass(frozen=True, slots=True)
class ContestRules:
    num_participants: int = NUM_SHOOTERS_IN_CONTEST
    num_racks: int = NUM_RACKS
    balls_per_rack: int = NUM_BALLS_PER_RACK
    moneyball_value: int = MONEYBALL_VALUE
    advance_counts: tuple[int, ...] = ADVANCE_COUNTS
    award_label: str = AWARD_LABEL
    rating_key: str = RATING_KEY

    def __post_init__(self) -> None:
        if self.num_racks < 1 or self.balls_per_rack < 1:
            raise ValueError("A contest needs at least one rack of at least one ball.")
        if not self.advance_counts or self.advance_counts[-1] != 1:
            raise ValueError("The final round tier must advance exactly one shooter.")
        previous = self.num_participants
        for count in self.advance_counts:
            if count < 1 or count >= previous:
                raise ValueError(
                    f"Advance counts {self.advance_counts} must shrink the field of {self.num_participants}."
                )
            previous = count

    @property
    def balls_per_turn(self) -> int:
        return self.num_racks * self.balls_per_rack

    @property
    def final_tier(self) -> int:
        return len(self.advance_counts) - 1
