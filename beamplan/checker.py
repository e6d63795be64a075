"""Scenario loading and validation of beam plans, plus the command that runs them."""

from __future__ import annotations

import argparse
import itertools
import math
import os
import re
import sys
import time
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from beamplan.geometry import Vector3
from beamplan.solver import BEAMS, Assignment, solve

BOLD = "\u001b[1m"
GRAY = "\u001b[38;5;248m"
RED = "\u001b[31m"
GREEN = "\u001b[32m"
YELLOW = "\u001b[33m"
RESET = "\u001b[0m"

VALID_COLORS = frozenset("ABCD")
USEC_PER_KM = 3.33564095
MAX_VISIBLE_ANGLE = 45.0
MIN_SEPARATION_ANGLE = 10.0
SOLUTION_FILE = "solution.txt"

_INTEGER = re.compile(r"[+-]?\d+")

Line = tuple[int, str]


class CheckError(Exception):
    """A scenario, a solution or a check of them failed."""


@dataclass
class Scenario:
    """A test case: user and satellite positions and the coverage required."""

    users: list[Vector3] = field(default_factory=list)
    sats: list[Vector3] = field(default_factory=list)
    min_coverage: float = 1.0
    bonus: bool = False


@dataclass(frozen=True)
class Report:
    """Coverage, latency and running time of a checked solution."""

    coverage: float
    served: int
    avg_latency: float
    duration: float
    min_coverage: float = 1.0
    bonus: bool = False

    @property
    def meets_target(self) -> bool:
        """Whether the required coverage was reached."""
        return self.coverage >= self.min_coverage


def read_lines(path: str | os.PathLike[str]) -> list[Line]:
    """Numbered non-empty lines of a file, leaving out lines that start with '#'."""
    try:
        with open(path, encoding="utf-8") as handle:
            text_lines = [line.rstrip("\n") for line in handle]
    except OSError as exc:
        raise CheckError("Failed to open file.") from exc
    return [
        (number, line)
        for number, line in enumerate(text_lines, start=1)
        if line and not line.startswith("#")
    ]


def _parse_bool(token: str | None) -> bool:
    try:
        return int(token) == 1 if token is not None else False
    except ValueError:
        return False


def _parse_position(tokens: list[str], number: int) -> Vector3:
    try:
        int(tokens[0])
        x, y, z = (float(value) for value in tokens[1:4])
    except (IndexError, ValueError) as exc:
        raise CheckError(f"Invalid position on scenario line {number}.") from exc
    return Vector3(x, y, z)


def parse_scenario(lines: Iterable[Line]) -> Scenario:
    """Build a scenario from numbered lines of a test case file."""
    scenario = Scenario()
    for number, line in lines:
        tokens = line.split()
        if not tokens:
            continue
        keyword, rest = tokens[0], tokens[1:]
        if keyword == "min_coverage":
            try:
                scenario.min_coverage = float(rest[0])
            except (IndexError, ValueError) as exc:
                raise CheckError(f"Invalid min_coverage on scenario line {number}.") from exc
        elif keyword == "bonus":
            scenario.bonus = _parse_bool(rest[0] if rest else None)
        elif keyword in ("sat", "user"):
            position = _parse_position(rest, number)
            (scenario.sats if keyword == "sat" else scenario.users).append(position)
        else:
            raise CheckError(f"Invalid token '{keyword}'.")
    return scenario


def load_scenario(path: str | os.PathLike[str]) -> Scenario:
    """Read and parse a test case file."""
    return parse_scenario(read_lines(path))


def _parse_index(token: str | None, limit: int, what: str, number: int, line: str) -> int:
    if token is None or not _INTEGER.fullmatch(token) or not 0 <= int(token) < limit:
        raise CheckError(f"Invalid {what} field reading solution line {number} ({line})")
    return int(token)


def parse_solution(lines: Iterable[Line], num_users: int, num_sats: int) -> list[Assignment]:
    """Parse ``user sat color`` lines, checking each field."""
    solution: list[Assignment] = []
    for number, line in lines:
        if not line or line.startswith("#"):
            continue
        tokens = line.split()
        padded = tokens + [None] * (3 - len(tokens))
        user = _parse_index(padded[0], num_users, "user", number, line)
        sat = _parse_index(padded[1], num_sats, "sat", number, line)
        color = padded[2]
        if color is None or len(color) != 1 or color not in VALID_COLORS:
            raise CheckError(f"Invalid color field reading solution line {number} ({line})")
        if len(tokens) > 3:
            raise CheckError(
                "Expected end of line after color field reading solution line "
                f"{number} ({line})"
            )
        solution.append(Assignment(user, sat, color))
    return solution


def _angle(a: Vector3, b: Vector3) -> float:
    cosine = max(-1.0, min(1.0, a.unit().dot(b.unit())))
    return math.degrees(math.acos(cosine))


def validate(scenario: Scenario, solution: Sequence[Assignment]) -> float:
    """Check every rule a plan must obey and return the total link distance."""
    users, sats = scenario.users, scenario.sats

    total_dist = 0.0
    served: set[int] = set()
    for link in solution:
        total_dist += (sats[link.sat_id] - users[link.user_id]).magnitude()
        if link.user_id in served:
            raise CheckError(f"User {link.user_id} served more than once")
        served.add(link.user_id)

    beams: dict[int, list[Assignment]] = defaultdict(list)
    for link in solution:
        user_pos, sat_pos = users[link.user_id], sats[link.sat_id]
        angle = _angle(user_pos, sat_pos - user_pos)
        if not angle <= MAX_VISIBLE_ANGLE:
            raise CheckError(
                f"User {link.user_id} cannot see satellite {link.sat_id} "
                f"({angle:.2f} degrees from vertical)"
            )
        beams[link.sat_id].append(link)

    for sat_id in sorted(beams):
        links = beams[sat_id]
        sat_pos = sats[sat_id]
        if len(links) > BEAMS:
            raise CheckError(
                f"Satellite {sat_id} cannot serve more than {BEAMS} users "
                f"({len(links)} assigned)"
            )
        for first, second in itertools.permutations(links, 2):
            if first.color != second.color:
                continue
            angle = _angle(users[first.user_id] - sat_pos, users[second.user_id] - sat_pos)
            if not angle >= MIN_SEPARATION_ANGLE:
                raise CheckError(
                    f"Users {first.user_id} and {second.user_id} on satellite {sat_id} "
                    f"color {first.color} are too close ({angle:.2f} degrees)"
                )
    return total_dist


def evaluate(scenario: Scenario, solution: Sequence[Assignment], duration: float) -> Report:
    """Validate a solution and measure its coverage and average latency."""
    total_dist = validate(scenario, solution)
    served = len(solution)
    avg_latency = 2.0 * USEC_PER_KM / served * total_dist if served else 0.0
    coverage = served / len(scenario.users) if scenario.users else 0.0
    return Report(
        coverage=coverage,
        served=served,
        avg_latency=avg_latency,
        duration=duration,
        min_coverage=scenario.min_coverage,
        bonus=scenario.bonus,
    )


def format_stats(name: str, report: Report) -> str:
    """One fixed-width stats line for a test case."""
    return (
        f"{name:<44} {100.0 * report.coverage:6.2f}% "
        f"{report.avg_latency:6.0f}us {report.duration:6.2f}s"
    )


def _time_color(duration: float) -> str:
    if duration > 60:
        return RED
    if duration > 30:
        return YELLOW
    return GREEN


def _run(out_path: str, case_path: str) -> None:
    scenario = load_scenario(case_path)
    print(
        f"{GRAY}Scenario: {RESET}{100 * scenario.min_coverage:.2f}% coverage "
        f"({len(scenario.users)} users, {len(scenario.sats)} sats){RESET}"
    )

    try:
        os.remove(SOLUTION_FILE)
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise CheckError(f"Unable to delete existing {SOLUTION_FILE} file.") from exc

    start = time.perf_counter()
    solve(list(scenario.users), list(scenario.sats), SOLUTION_FILE)
    duration = time.perf_counter() - start

    if not os.path.isfile(SOLUTION_FILE):
        raise CheckError(f"{SOLUTION_FILE} file not found.")
    solution = parse_solution(
        read_lines(SOLUTION_FILE), len(scenario.users), len(scenario.sats)
    )

    report = evaluate(scenario, solution, duration)
    coverage_color = GREEN if report.meets_target else (YELLOW if report.bonus else RED)
    print(
        f"{GRAY}Solution: {RESET}{BOLD}{coverage_color}{100.0 * report.coverage:.2f}%{RESET}"
        f" coverage ({report.served} users) and {report.avg_latency:.0f}us latency in "
        f"{_time_color(duration)}{BOLD}{duration:.2f}s{RESET}"
    )

    if report.bonus and not report.meets_target:
        print(f"{BOLD}{YELLOW}BONUS CASE FAIL: Too few users served{RESET}")
    elif not report.meets_target:
        raise CheckError("Too few users served")

    try:
        with open(out_path, "a", encoding="utf-8") as out:
            out.write(format_stats(case_path, report) + "\n")
    except OSError as exc:
        raise CheckError(
            f"Error opening output {out_path}: {exc.strerror} (errno={exc.errno})"
        ) from exc


def main(argv: Sequence[str] | None = None) -> int:
    """Solve a test case, check the plan and append its stats to a file."""
    parser = argparse.ArgumentParser(
        prog="beamplan-check", description="Solve and check a beam planning test case."
    )
    parser.add_argument("out_path", help="file that stats lines are appended to")
    parser.add_argument("test_case", help="scenario file to solve")
    args_list = list(sys.argv[1:] if argv is None else argv)
    if len(args_list) != 2:
        print(f"{RED}{BOLD}FAIL: {RESET}USAGE: {parser.prog} OUT_PATH TEST_CASE")
        return 1
    args = parser.parse_args(args_list)
    try:
        _run(args.out_path, args.test_case)
    except CheckError as exc:
        print(f"{RED}{BOLD}FAIL: {RESET}{exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())