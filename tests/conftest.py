import pytest

from graph_coloring_game import GraphColoringGame, GraphModel


def fixed_graph(n, edges):
    """Generator stand-in that always hands out the same graph."""

    def generator(level, rng=None, rules=None):
        return GraphModel.from_edges(n, edges)

    return generator


def complete_edges(n):
    return [(i, j) for i in range(n) for j in range(i + 1, n)]


@pytest.fixture
def single_edge_game():
    game = GraphColoringGame(generator=fixed_graph(2, [(0, 1)]))
    game.start_game()
    return game


@pytest.fixture
def k4_game():
    game = GraphColoringGame(generator=fixed_graph(4, complete_edges(4)))
    game.start_game()
    return game


@pytest.fixture
def seeded_game():
    game = GraphColoringGame(rng=1234)
    game.start_game()
    return game
