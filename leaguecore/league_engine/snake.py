"""Snake draft order resolution."""

from __future__ import annotations

from typing import Sequence


def round_for_pick(pick_number: int, number_of_teams: int) -> int:
    if pick_number < 1 or number_of_teams < 1:
        raise ValueError("pick_number and number_of_teams must be positive.")
    return (pick_number - 1) // number_of_teams + 1


def snake_position(pick_number: int, number_of_teams: int) -> int:
    """Draft-order position (1-based) on the clock for a global pick number.

    Odd rounds run 1..N, even rounds run N..1.
    """
    draft_round = round_for_pick(pick_number, number_of_teams)
    position_in_round = (pick_number - 1) % number_of_teams + 1
    if draft_round % 2 == 0:
        return number_of_teams - position_in_round + 1
    return position_in_round


def member_for_pick(pick_number: int, order: Sequence[str]) -> str:
    """Member id on the clock for `pick_number` given the draft order."""
    return order[snake_position(pick_number, len(order)) - 1]


def total_picks(number_of_rounds: int, number_of_teams: int) -> int:
    return number_of_rounds * number_of_teams
