# beamplan

beamplan assigns ground users to satellite beams and checks the resulting plans. A plan must follow these rules:

- A user can only connect to a satellite that is no more than 45° from the user's vertical. The user's vertical is the direction of its position vector.
- Each satellite has 32 beams, split across four colors (`A`–`D`) with 8 beams per color.
- Two beams on the same satellite and of the same color must be at least 10° apart, measured from the satellite.
- Each user is served at most once.

The solver is greedy. Users with the fewest visible satellites go first. Each user is tried on its visible satellites in index order and takes the first free slot that fits. When no free slot fits, the solver tries to move a beam that is already assigned to another color, to make room.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install .[test]
```

## Library use

```python
from beamplan.geometry import Vector3
from beamplan.solver import solve

users = [Vector3(6371.0, 0.0, 0.0), Vector3(6371.0, 50.0, 0.0)]
sats = [Vector3(6921.0, 0.0, 0.0)]

assignments = solve(users, sats, "solution.txt")
for a in assignments:
    print(a.user_id, a.sat_id, a.color)
```

`solve(users, sats, path="solution.txt")` does two things:

- It writes one line per served user to `path`. Each line has the form `USER SAT COLOR`, for example `0 0 A`.
- It returns the assignments as a list of `Assignment` objects, each with the fields `user_id`, `sat_id` and `color`.

Users and satellites are identified by their index in the input lists.

The individual steps are available in `beamplan.solver` too:

- `viable_satellites(users, sats)`: for each user, the indices of the satellites it can see.
- `order_users(user_to_sats)`: user indices sorted by how few satellites each can see.
- `assign_users(order, user_to_sats, users, sats)`: fills in the beams of the `Satellite` objects.
- `solution_lines(sats)`: the plan as text lines.
- `write_solution(sats, path)`: writes those lines to a file.

`SatBeams` holds the beam slots of one satellite. Its `assign(user_id, direction)` method returns whether the user got a beam.

`beamplan.geometry.Vector3` is an immutable 3D vector. It supports:

- subtraction;
- `magnitude()`;
- `unit()`;
- `dot()`.

## Checking plans

`beamplan.checker` reads scenarios and validates plans. It provides:

- `load_scenario(path)` / `parse_scenario(lines)`: build a `Scenario`, which holds `users`, `sats`, `min_coverage` and `bonus`.
- `parse_solution(lines, num_users, num_sats)`: reads `USER SAT COLOR` lines and checks every field.
- `validate(scenario, solution)`: checks every rule above and returns the total user–satellite distance.
- `evaluate(scenario, solution, duration)`: validates the plan and returns a `Report` with the following values:
  - coverage;
  - number of users served;
  - average round-trip latency, in microseconds, taking positions to be in kilometres;
  - duration.
- `format_stats(name, report)`: one fixed-width stats line.

Any failure raises `CheckError`.

A scenario file lists users and satellites, one per line, each with an integer id followed by x, y and z. It may also set the coverage target and mark the case as a bonus case:

```
min_coverage 0.95
bonus 0
sat 0 6921 0 0
user 0 6371 0 0
user 1 6371 50 0
```

Lines that start with `#` are ignored. Any other keyword is an error.

## The `beamplan-check` command

```
beamplan-check stats.txt scenario.txt
```

This command:

1. Loads the scenario.
2. Removes any old `solution.txt` in the current directory, solves the scenario and writes a new `solution.txt`.
3. Reads the plan back and validates it.
4. Prints the coverage, the average latency and the time taken.
5. Appends a stats line to `stats.txt`.

It exits with status 1 in any of these cases:

- the arguments are wrong;
- a file cannot be read or parsed;
- the plan breaks a rule;
- coverage is below the target, unless the scenario is marked `bonus 1`. A bonus case below target only prints a warning.