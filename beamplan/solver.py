"""Greedy assignment of users to satellite beams."""

from __future__ import annotations

import math
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace

from beamplan.geometry import Vector3

BEAMS = 32
COLORS = 4
SLOTS_PER_COLOR = BEAMS // COLORS

COS_45 = math.cos(math.pi / 4.0)
COS_10 = math.cos(10.0 * math.pi / 180.0)

_ZERO = Vector3(0.0, 0.0, 0.0)


def _color_letter(color: int) -> str:
    return chr(ord("A") + color)


@dataclass
class Beam:
    """A beam slot: the user it serves and its unit direction."""

    user_id: int = -1
    direction: Vector3 = _ZERO
    assigned: bool = False


class SatBeams:
    """The beam slots of one satellite, grouped by color."""

    def __init__(self) -> None:
        self.colors: list[list[Beam]] = [
            [Beam() for _ in range(SLOTS_PER_COLOR)] for _ in range(COLORS)
        ]

    def assigned_beams(self) -> Iterator[tuple[int, Beam]]:
        """Yield (color, beam) for every assigned beam, by color then slot."""
        for color, slots in enumerate(self.colors):
            for beam in slots:
                if beam.assigned:
                    yield color, beam

    def beam_conflict(self, color: int, beam: Beam) -> bool:
        """Whether ``beam`` is within 10 degrees of an assigned beam of ``color``."""
        return any(
            other.assigned and beam.direction.dot(other.direction) > COS_10
            for other in self.colors[color]
        )

    def assign(self, user_id: int, direction: Vector3) -> bool:
        """Try to give ``user_id`` a beam pointing along ``direction``."""
        if sum(1 for _ in self.assigned_beams()) >= BEAMS:
            return False

        new_beam = Beam(user_id, direction.unit())

        for color, slots in enumerate(self.colors):
            if self.beam_conflict(color, new_beam):
                continue
            for index, slot in enumerate(slots):
                if not slot.assigned:
                    slots[index] = replace(new_beam, assigned=True)
                    return True

        # Try moving an existing beam to another color to free a slot.
        for color, slots in enumerate(self.colors):
            for index, beam in enumerate(slots):
                if not beam.assigned:
                    continue
                for new_color, targets in enumerate(self.colors):
                    if new_color == color:
                        continue
                    for target_index, target in enumerate(targets):
                        if not target.assigned and not self.beam_conflict(new_color, beam):
                            targets[target_index] = replace(beam, assigned=True)
                            beam.assigned = False
                    if not beam.assigned:
                        break

                if not beam.assigned and not self.beam_conflict(color, new_beam):
                    slots[index] = replace(new_beam, assigned=True)
                    return True

        return False


@dataclass
class Satellite:
    """A satellite with its position and beam slots."""

    id: int
    position: Vector3
    beams: SatBeams = field(default_factory=SatBeams)


@dataclass(frozen=True)
class Assignment:
    """One line of a solution: a user served by a satellite on a color."""

    user_id: int
    sat_id: int
    color: str

    def __str__(self) -> str:
        return f"{self.user_id} {self.sat_id} {self.color}"


def viable_satellites(users: Sequence[Vector3], sats: Sequence[Satellite]) -> list[list[int]]:
    """For each user, the satellites within 45 degrees of its vertical."""
    user_to_sats: list[list[int]] = []
    for user in users:
        user_up = user.unit()
        user_to_sats.append(
            [
                sat_id
                for sat_id, sat in enumerate(sats)
                if (sat.position - user).unit().dot(user_up) >= COS_45
            ]
        )
    return user_to_sats


def order_users(user_to_sats: Sequence[Sequence[int]]) -> list[int]:
    """User ids ordered by how few satellites each can reach."""
    return sorted(range(len(user_to_sats)), key=lambda user_id: len(user_to_sats[user_id]))


def assign_users(
    order: Sequence[int],
    user_to_sats: Sequence[Sequence[int]],
    users: Sequence[Vector3],
    sats: Sequence[Satellite],
) -> None:
    """Give each user, in order, a beam on the first satellite that accepts it."""
    for user_id in order:
        for sat_id in user_to_sats[user_id]:
            sat = sats[sat_id]
            direction = (users[user_id] - sat.position).unit()
            if sat.beams.assign(user_id, direction):
                break


def _assignments(sats: Sequence[Satellite]) -> Iterator[Assignment]:
    for sat_index, sat in enumerate(sats):
        for color, beam in sat.beams.assigned_beams():
            yield Assignment(beam.user_id, sat_index, _color_letter(color))


def solution_lines(sats: Sequence[Satellite]) -> list[str]:
    """The solution as text lines of the form ``user sat color``."""
    return [str(assignment) for assignment in _assignments(sats)]


def write_solution(sats: Sequence[Satellite], path: str | os.PathLike[str]) -> None:
    """Write the solution lines to ``path``."""
    with open(path, "w", encoding="ascii") as out:
        out.writelines(f"{line}\n" for line in solution_lines(sats))


def solve(
    users: Sequence[Vector3],
    sats: Sequence[Vector3],
    path: str | os.PathLike[str] = "solution.txt",
) -> list[Assignment]:
    """Plan beams for the given user and satellite positions and write them out."""
    satellites = [Satellite(sat_id, position) for sat_id, position in enumerate(sats)]
    user_to_sats = viable_satellites(users, satellites)
    order = order_users(user_to_sats)
    assign_users(order, user_to_sats, users, satellites)
    write_solution(satellites, path)
    return list(_assignments(satellites))