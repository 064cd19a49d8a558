"""Sample league structure used by ``rostertree example`` and the tests.

Three evening conferences, each with 8U/10U/12U/13U divisions; some
divisions already list teams, others are empty containers.
"""

from __future__ import annotations

from rostertree.tree.builder import TreeBuilder
from rostertree.tree.store import TreeStore

_DAYS = (("monday", "Monday", ""), ("wednesday", "Wednesday", "-wed"), ("friday", "Friday", "-fri"))
_AGES = ("8u", "10u", "12u", "13u")

_TEAMS = {
    "8u": [("team-8u-1", "Tigers"), ("team-8u-2", "Lions")],
    "12u": [("team-12u-1", "Eagles"), ("team-12u-2", "Hawks"), ("team-12u-3", "Falcons")],
    "10u-wed": [("team-10u-wed-1", "Sharks"), ("team-10u-wed-2", "Dolphins")],
    "13u-wed": [("team-13u-wed-1", "Cougars")],
    "12u-fri": [("team-12u-fri-1", "Bears"), ("team-12u-fri-2", "Wolves")],
}


def league_structure() -> TreeStore:
    """Build a fresh copy of the sample league."""
    builder = TreeBuilder("root", "League Structure", "Conference")
    for day_id, day_name, suffix in _DAYS:
        builder.add(day_id, day_name, "Conference")
        for age in _AGES:
            division_id = f"{age}{suffix}"
            builder.add(division_id, age.upper(), "Division", parent_id=day_id)
            for team_id, team_name in _TEAMS.get(division_id, []):
                builder.add(team_id, team_name, "Team", parent_id=division_id, folder=False)
    return builder.build()


__all__ = ["league_structure"]
