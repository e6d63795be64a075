import math

from beamplan.geometry import Vector3
from beamplan.solver import (
    BEAMS,
    COLORS,
    SLOTS_PER_COLOR,
    Assignment,
    Beam,
    SatBeams,
    Satellite,
    assign_users,
    order_users,
    solution_lines,
    solve,
    viable_satellites,
    write_solution,
)


def _direction(degrees):
    angle = math.radians(degrees)
    return Vector3(math.cos(angle), math.sin(angle), 0.0)


def _same_color_separation_holds(sat_beams):
    for slots in sat_beams.colors:
        active = [beam for beam in slots if beam.assigned]
        for i, first in enumerate(active):
            for second in active[i + 1 :]:
                angle = math.degrees(math.acos(max(-1.0, min(1.0, first.direction.dot(second.direction)))))
                if angle < 10.0:
                    return False
    return True


def test_new_satbeams_layout():
    beams = SatBeams()
    assert len(beams.colors) == COLORS
    assert all(len(slots) == SLOTS_PER_COLOR for slots in beams.colors)
    assert list(beams.assigned_beams()) == []


def test_beam_conflict_same_direction():
    beams = SatBeams()
    assert beams.assign(1, _direction(0))
    assert beams.beam_conflict(0, Beam(2, _direction(0).unit()))
    assert not beams.beam_conflict(1, Beam(2, _direction(0).unit()))


def test_beam_conflict_far_apart():
    beams = SatBeams()
    assert beams.assign(1, _direction(0))
    assert not beams.beam_conflict(0, Beam(2, _direction(20)))


def test_identical_directions_use_each_color_once():
    beams = SatBeams()
    results = [beams.assign(user, _direction(0)) for user in range(5)]
    assert results == [True, True, True, True, False]
    colors = [color for color, _ in beams.assigned_beams()]
    assert colors == [0, 1, 2, 3]


def test_assign_normalises_direction():
    beams = SatBeams()
    assert beams.assign(7, Vector3(0.0, 0.0, 50.0))
    (_, beam), = beams.assigned_beams()
    assert beam.user_id == 7
    assert beam.direction == Vector3(0.0, 0.0, 1.0)


def test_capacity_limit():
    beams = SatBeams()
    step = 360.0 / BEAMS
    accepted = [beams.assign(user, _direction(user * step)) for user in range(BEAMS)]
    assert all(accepted)
    assert not beams.assign(BEAMS, _direction(step / 2))
    assert sum(1 for _ in beams.assigned_beams()) == BEAMS
    assert _same_color_separation_holds(beams)


def test_rearranging_frees_a_slot():
    beams = SatBeams()
    beams.colors[0][0] = Beam(1, _direction(6), True)
    beams.colors[1][0] = Beam(2, _direction(-6), True)
    beams.colors[2][0] = Beam(3, _direction(-6.5), True)
    beams.colors[3][0] = Beam(4, _direction(-7), True)

    assert beams.assign(9, _direction(0))

    placed = {beam.user_id: color for color, beam in beams.assigned_beams()}
    assert placed[9] == 0
    assert placed[1] == 1
    assert placed[2] == 1
    assert sorted(placed) == [1, 2, 3, 4, 9]
    assert _same_color_separation_holds(beams)


def test_viable_satellites():
    user = Vector3(0.0, 0.0, 6371.0)
    sats = [
        Satellite(0, Vector3(0.0, 0.0, 6921.0)),
        Satellite(1, Vector3(2000.0, 0.0, 6371.0)),
        Satellite(2, Vector3(100.0, 0.0, 6900.0)),
    ]
    assert viable_satellites([user], sats) == [[0, 2]]


def test_viable_satellites_no_users():
    assert viable_satellites([], [Satellite(0, Vector3(0.0, 0.0, 1.0))]) == []


def test_order_users_by_option_count():
    assert order_users([[0, 1], [2], []]) == [2, 1, 0]


def test_order_users_keeps_ties_in_order():
    assert order_users([[1], [2], [0, 1]]) == [0, 1, 2]


def test_assign_users_picks_first_accepting_satellite():
    users = [Vector3(0.0, 0.0, 6371.0)]
    sats = [
        Satellite(0, Vector3(0.0, 0.0, 6921.0)),
        Satellite(1, Vector3(10.0, 0.0, 6921.0)),
    ]
    assign_users([0], [[1, 0]], users, sats)
    assert list(sats[0].beams.assigned_beams()) == []
    assert [beam.user_id for _, beam in sats[1].beams.assigned_beams()] == [0]


def test_solution_lines_format():
    sat = Satellite(0, Vector3(0.0, 0.0, 6921.0))
    sat.beams.assign(3, _direction(0))
    sat.beams.assign(4, _direction(0))
    assert solution_lines([Satellite(1, Vector3(0.0, 0.0, 1.0)), sat]) == ["3 1 A", "4 1 B"]


def test_assignment_str():
    assert str(Assignment(5, 2, "C")) == "5 2 C"


def test_write_solution(tmp_path):
    sat = Satellite(0, Vector3(0.0, 0.0, 6921.0))
    sat.beams.assign(0, _direction(0))
    path = tmp_path / "out.txt"
    write_solution([sat], path)
    assert path.read_text() == "0 0 A\n"


def test_solve_single_user(tmp_path):
    path = tmp_path / "solution.txt"
    result = solve([Vector3(0.0, 0.0, 6371.0)], [Vector3(0.0, 0.0, 6921.0)], path)
    assert result == [Assignment(0, 0, "A")]
    assert path.read_text() == "0 0 A\n"


def test_solve_unreachable_user_is_unserved(tmp_path):
    path = tmp_path / "solution.txt"
    result = solve([Vector3(0.0, 0.0, 6371.0)], [Vector3(0.0, 0.0, -6921.0)], path)
    assert result == []
    assert path.read_text() == ""


def test_solve_serves_each_user_once(tmp_path):
    users = [Vector3(float(i), 0.0, 6371.0) for i in range(40)]
    sats = [Vector3(0.0, 0.0, 6921.0), Vector3(5.0, 5.0, 6921.0)]
    path = tmp_path / "solution.txt"
    result = solve(users, sats, path)
    served = [a.user_id for a in result]
    assert len(served) == len(set(served))
    assert all(a.color in "ABCD" for a in result)
    per_sat = [sum(1 for a in result if a.sat_id == s) for s in range(len(sats))]
    assert all(count <= BEAMS for count in per_sat)
    assert path.read_text().splitlines() == [str(a) for a in result]