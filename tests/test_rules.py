import pytest

from graph_coloring_game import (
    ColoringAction,
    MoveHistory,
    GraphModel,
    build_palette,
    can_assign,
    colors_used,
    completion_bonus,
    conflicting_edges,
    has_any_valid_move,
    legal_colors,
    move_points,
)
from tests.conftest import complete_edges


@pytest.fixture
def palette():
    return build_palette(3)


@pytest.fixture
def triangle():
    return GraphModel.from_edges(4, [(0, 1), (1, 2), (0, 2)])


def test_palette_colors_are_distinct_values(palette):
    assert len(set(palette)) == 3
    assert [c.index for c in palette] == [0, 1, 2]
    assert build_palette(3) == palette
    # same slot, different palette size renders differently and is a different color
    assert build_palette(4)[1] != palette[1]


def test_palette_hex(palette):
    assert palette[0].hex.startswith("#")
    assert len(palette[0].hex) == 7


def test_negative_palette_size_rejected():
    with pytest.raises(ValueError):
        build_palette(-1)


def test_can_assign_rejects_colored_vertex(triangle, palette):
    coloring = {0: palette[0]}
    assert not can_assign(triangle, coloring, 0, palette[1])


def test_can_assign_rejects_neighbour_color(triangle, palette):
    coloring = {0: palette[0]}
    assert not can_assign(triangle, coloring, 1, palette[0])
    assert can_assign(triangle, coloring, 1, palette[1])
    # vertex 3 is isolated
    assert can_assign(triangle, coloring, 3, palette[0])


def test_legal_colors(triangle, palette):
    coloring = {0: palette[0], 1: palette[1]}
    assert legal_colors(triangle, coloring, 2, palette) == [palette[2]]


def test_has_any_valid_move_scans_every_vertex(palette):
    g = GraphModel.from_edges(5, complete_edges(4))
    coloring = {0: palette[0], 1: palette[1], 2: palette[2]}
    # vertex 3 is blocked but isolated vertex 4 is still free
    assert legal_colors(g, coloring, 3, palette) == []
    assert has_any_valid_move(g, coloring, palette)
    coloring[4] = palette[0]
    assert not has_any_valid_move(g, coloring, palette)


def test_no_move_on_fully_colored_graph(triangle, palette):
    coloring = {0: palette[0], 1: palette[1], 2: palette[2], 3: palette[0]}
    assert not has_any_valid_move(triangle, coloring, palette)


def test_conflicting_edges(triangle, palette):
    assert conflicting_edges(triangle, {0: palette[0], 1: palette[1]}) == []
    assert conflicting_edges(triangle, {0: palette[0], 2: palette[0]}) == [(0, 2)]


def test_history_is_lifo():
    palette = build_palette(3)
    history = MoveHistory()
    assert history.is_empty()
    assert history.pop() is None
    first = ColoringAction(0, None, palette[0])
    second = ColoringAction(1, None, palette[1])
    history.push(first)
    history.push(second)
    assert len(history) == 2
    assert history.pop() == second
    assert history.pop() == first
    assert history.is_empty()


def test_history_clear():
    history = MoveHistory()
    history.push(ColoringAction(0, None, build_palette(3)[0]))
    history.clear()
    assert history.is_empty()


def test_move_points():
    assert move_points(1) == 10
    assert move_points(4) == 40


def test_completion_bonus(palette):
    two_colors = {0: palette[0], 1: palette[1], 2: palette[0]}
    assert colors_used(two_colors) == 2
    assert completion_bonus(two_colors, 3, 1) == 100
    assert completion_bonus(two_colors, 3, 3) == 300
    assert completion_bonus(two_colors, 5, 2) == 600


def test_completion_bonus_never_negative(palette):
    coloring = {0: palette[0], 1: palette[1], 2: palette[2]}
    assert completion_bonus(coloring, 3, 4) == 0
    assert completion_bonus(coloring, 2, 4) == 0
