"""
Graph coloring game engine

Color every vertex of a random graph so that no edge joins two vertices of the
same color. Each level hands out a palette of max(3, level + 1) colors; the fewer
distinct colors a finished coloring uses, the bigger the level bonus.

Features:
- Level-sized random graphs (seedable through a numpy Generator).
- Move validation against the edge set, with a global stuck check that ends the game.
- Per-move scoring, completion bonus and a LIFO undo history.
- Exact chromatic number of the level graph (DSATUR + backtracking) for summaries.
- A small console front end (``python graph_coloring_game.py``).

Notes:
- The engine never raises for gameplay anomalies. Every command returns one of the
  result dataclasses below and front ends translate those into messages.
- Queries return copies; the session state is only mutated by the commands.
"""
from __future__ import annotations

import colorsys
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, TextIO, Tuple, Union

import numpy as np

from logger_config import configure_logging

logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.Generator]

HELP_TEXT = (
    "Color each vertex with a color such that no two adjacent vertices share the same color.\n"
    "Select a color from the palette and pick a vertex to color it."
)


# ---------------------------- Rules ---------------------------- #


@dataclass(frozen=True)
class GameRules:
    base_vertices: int = 5
    max_vertices: int = 15
    base_edge_probability: float = 0.2
    edge_probability_step: float = 0.1
    max_edge_probability: float = 0.5
    min_palette_size: int = 3
    points_per_level: int = 10
    unused_color_bonus: int = 100
    # board rectangle used for vertex positions (x0, y0, width, height)
    board: Tuple[int, int, int, int] = (100, 100, 600, 400)

    def vertex_count(self, level: int) -> int:
        _check_level(level)
        return min(self.base_vertices + level, self.max_vertices)

    def edge_probability(self, level: int) -> float:
        _check_level(level)
        return min(self.max_edge_probability, self.base_edge_probability + self.edge_probability_step * level)

    def palette_size(self, level: int) -> int:
        _check_level(level)
        return max(self.min_palette_size, level + 1)


DEFAULT_RULES = GameRules()


def _check_level(level: int) -> None:
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")


# ---------------------------- Colors ---------------------------- #


@dataclass(frozen=True)
class Color:
    """A palette entry. Equality is structural: same slot and same RGB."""

    index: int
    rgb: Tuple[int, int, int]

    @property
    def hex(self) -> str:
        return "#{:02x}{:02x}{:02x}".format(*self.rgb)


def build_palette(size: int) -> Tuple[Color, ...]:
    if size < 0:
        raise ValueError(f"palette size must be >= 0, got {size}")
    colors = []
    for i in range(size):
        r, g, b = colorsys.hsv_to_rgb(i / size, 0.8, 0.9)
        colors.append(Color(i, (round(r * 255), round(g * 255), round(b * 255))))
    return tuple(colors)


# ---------------------------- Graph Model ---------------------------- #


class GraphModel:
    def __init__(self) -> None:
        self.pos: np.ndarray = np.zeros((0, 2), dtype=float)  # shape (N,2)
        self.edges: Set[Tuple[int, int]] = set()  # undirected edges with i<j

    # ---- basic ops ---- #
    def add_edge(self, i: int, j: int) -> bool:
        if i == j:
            return False
        if i > j:
            i, j = j, i
        if not (0 <= i and j < self.n_nodes):
            return False
        if (i, j) in self.edges:
            return False
        self.edges.add((i, j))
        return True

    def has_node(self, i: int) -> bool:
        return 0 <= i < self.n_nodes

    @property
    def n_nodes(self) -> int:
        return self.pos.shape[0]

    @property
    def n_edges(self) -> int:
        return len(self.edges)

    def neighbors(self, i: int) -> List[int]:
        return sorted(v if u == i else u for (u, v) in self.edges if i in (u, v))

    def adjacency_lists(self) -> List[List[int]]:
        adj: List[List[int]] = [[] for _ in range(self.n_nodes)]
        for (i, j) in sorted(self.edges):
            adj[i].append(j)
            adj[j].append(i)
        return adj

    # ---- construction helpers ---- #
    @classmethod
    def with_nodes(cls, n: int) -> "GraphModel":
        g = cls()
        g.pos = np.zeros((n, 2), dtype=float)
        return g

    @classmethod
    def from_edges(cls, n: int, edges: Sequence[Tuple[int, int]]) -> "GraphModel":
        g = cls.with_nodes(n)
        for (i, j) in edges:
            if not g.add_edge(int(i), int(j)):
                raise ValueError(f"invalid or duplicate edge ({i}, {j}) for {n} nodes")
        return g

    # ---- serialization ---- #
    def to_dict(self) -> Dict:
        return {
            "nodes": self.pos.tolist(),
            "edges": [list(e) for e in sorted(self.edges)],
        }


def generate_graph(level: int, rng: RandomSource = None, rules: GameRules = DEFAULT_RULES) -> GraphModel:
    """Random graph for ``level``: min(5 + level, 15) nodes, every pair joined
    independently with probability min(0.5, 0.2 + 0.1 * level).

    ``rng`` may be a seed or a ``numpy.random.Generator``; passing the same seed
    reproduces the same graph.
    """
    gen = np.random.default_rng(rng)
    n = rules.vertex_count(level)
    p = rules.edge_probability(level)
    x0, y0, width, height = rules.board

    g = GraphModel()
    g.pos = np.column_stack(
        [gen.integers(x0, x0 + width, size=n), gen.integers(y0, y0 + height, size=n)]
    ).astype(float).reshape(n, 2)

    for i in range(n):
        for j in range(i + 1, n):
            if gen.random() < p:
                g.add_edge(i, j)
    return g


# ---------------------------- Chromatic Number Solver ---------------------------- #


class ChromaticSolver:
    def __init__(self, adj: List[List[int]]):
        self.adj = [list(nei) for nei in adj]
        self.n = len(adj)
        self.deg = [len(nei) for nei in self.adj]

    @classmethod
    def for_graph(cls, graph: GraphModel) -> "ChromaticSolver":
        return cls(graph.adjacency_lists())

    def _pick(self, slots: List[int], seen: List[Set[int]]) -> int:
        # most distinct neighbour colors first, then highest degree
        free = [v for v in range(self.n) if slots[v] == -1]
        return max(free, key=lambda v: (len(seen[v]), self.deg[v]))

    def greedy_dsatur_upper_bound(self) -> Tuple[int, List[int]]:
        slots = [-1] * self.n
        seen: List[Set[int]] = [set() for _ in range(self.n)]
        used = 0
        for _ in range(self.n):
            v = self._pick(slots, seen)
            c = next(c for c in range(self.n + 1) if c not in seen[v])
            slots[v] = c
            used = max(used, c + 1)
            for u in self.adj[v]:
                if slots[u] == -1:
                    seen[u].add(c)
        return used, slots

    def is_k_colorable(self, k: int) -> Tuple[bool, Optional[List[int]]]:
        slots = [-1] * self.n
        seen: List[Set[int]] = [set() for _ in range(self.n)]

        def extend(done: int) -> bool:
            if done == self.n:
                return True
            v = self._pick(slots, seen)
            for c in range(k):
                if c in seen[v]:
                    continue
                slots[v] = c
                touched = [u for u in self.adj[v] if slots[u] == -1 and c not in seen[u]]
                for u in touched:
                    seen[u].add(c)
                if extend(done + 1):
                    return True
                for u in touched:
                    seen[u].discard(c)
                slots[v] = -1
            return False

        ok = extend(0)
        return ok, (slots if ok else None)

    def clique_lower_bound(self) -> int:
        if self.n == 0:
            return 0
        best = 1
        for start in sorted(range(self.n), key=lambda v: -self.deg[v])[:10]:
            size = 1
            cand = set(self.adj[start])
            while cand:
                v = max(cand, key=lambda x: (self.deg[x], -x))
                size += 1
                cand &= set(self.adj[v])
            best = max(best, size)
        return best

    def chromatic_number(self) -> Tuple[int, List[int]]:
        if self.n == 0:
            return 0, []
        ub, greedy = self.greedy_dsatur_upper_bound()
        for k in range(self.clique_lower_bound(), ub):
            ok, slots = self.is_k_colorable(k)
            if ok and slots is not None:
                return k, slots
        return ub, greedy


# ---------------------------- Coloring Rules ---------------------------- #


Coloring = Dict[int, Color]


def can_assign(graph: GraphModel, coloring: Coloring, vertex: int, color: Color) -> bool:
    if vertex in coloring:
        return False
    return all(coloring.get(u) != color for u in graph.neighbors(vertex))


def legal_colors(graph: GraphModel, coloring: Coloring, vertex: int, palette: Sequence[Color]) -> List[Color]:
    return [c for c in palette if can_assign(graph, coloring, vertex, c)]


def has_any_valid_move(graph: GraphModel, coloring: Coloring, palette: Sequence[Color]) -> bool:
    """True if some uncolored vertex still accepts some palette color.

    Scans the whole graph, not only the vertex the player touched.
    """
    return any(
        legal_colors(graph, coloring, v, palette)
        for v in range(graph.n_nodes)
        if v not in coloring
    )


def conflicting_edges(graph: GraphModel, coloring: Coloring) -> List[Tuple[int, int]]:
    return [
        (i, j)
        for (i, j) in sorted(graph.edges)
        if i in coloring and j in coloring and coloring[i] == coloring[j]
    ]


# ---------------------------- Move History ---------------------------- #


@dataclass(frozen=True)
class ColoringAction:
    vertex: int
    old_color: Optional[Color]  # None: vertex was uncolored
    new_color: Color


class MoveHistory:
    def __init__(self) -> None:
        self._actions: List[ColoringAction] = []

    def push(self, action: ColoringAction) -> None:
        self._actions.append(action)

    def pop(self) -> Optional[ColoringAction]:
        if not self._actions:
            return None
        return self._actions.pop()

    def is_empty(self) -> bool:
        return not self._actions

    def clear(self) -> None:
        self._actions.clear()

    def __len__(self) -> int:
        return len(self._actions)


# ---------------------------- Scoring ---------------------------- #


def move_points(level: int, rules: GameRules = DEFAULT_RULES) -> int:
    return level * rules.points_per_level


def colors_used(coloring: Coloring) -> int:
    return len(set(coloring.values()))


def completion_bonus(coloring: Coloring, min_colors: int, level: int, rules: GameRules = DEFAULT_RULES) -> int:
    """Bonus for finishing a level: every palette color left unused is worth
    ``unused_color_bonus`` points, multiplied by the level."""
    unused = min_colors - colors_used(coloring)
    return max(0, unused * rules.unused_color_bonus) * level


# ---------------------------- Results ---------------------------- #


@dataclass(frozen=True)
class EngineResult:
    pass


@dataclass(frozen=True)
class Committed(EngineResult):
    vertex: int
    color: Color
    score: int


@dataclass(frozen=True)
class InvalidMove(EngineResult):
    vertex: int


@dataclass(frozen=True)
class AlreadyColored(InvalidMove):
    pass


@dataclass(frozen=True)
class ColorConflict(InvalidMove):
    color: Color


@dataclass(frozen=True)
class LevelCompleted(EngineResult):
    level: int
    score_before_bonus: int
    bonus: int
    total_score: int
    colors_used: int
    optimal_colors: int


@dataclass(frozen=True)
class GameOver(EngineResult):
    level: int
    final_score: int


@dataclass(frozen=True)
class NotActive(EngineResult):
    reason: str


@dataclass(frozen=True)
class UndoApplied(EngineResult):
    vertex: int
    score: int
    remaining: int

    @property
    def history_exhausted(self) -> bool:
        return self.remaining == 0


@dataclass(frozen=True)
class UndoEmpty(EngineResult):
    score: int


@dataclass(frozen=True)
class LevelStarted(EngineResult):
    level: int
    vertex_count: int
    palette_size: int


@dataclass(frozen=True)
class GameReset(EngineResult):
    pass


# ---------------------------- Game State Machine ---------------------------- #


class GameState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    LEVEL_COMPLETE = "level_complete"
    GAME_OVER = "game_over"


@dataclass
class GameSession:
    level: int = 1
    score: int = 0
    palette: Tuple[Color, ...] = ()
    graph: GraphModel = field(default_factory=GraphModel)
    coloring: Coloring = field(default_factory=dict)
    history: MoveHistory = field(default_factory=MoveHistory)
    state: GameState = GameState.IDLE
    level_bonus: int = 0  # bonus granted for the current level, reverted by undo


GraphGenerator = Callable[..., GraphModel]


class GraphColoringGame:
    """Single source of truth for one player's game.

    ``generator`` is called as ``generator(level, rng=..., rules=...)`` at every
    level start; tests pass a fixed graph through it.
    """

    def __init__(
        self,
        rules: Optional[GameRules] = None,
        rng: RandomSource = None,
        generator: GraphGenerator = generate_graph,
    ) -> None:
        self.rules = rules or DEFAULT_RULES
        self._rng = np.random.default_rng(rng)
        self._generator = generator
        self._session = GameSession()

    # ---------------- queries ---------------- #
    @property
    def state(self) -> GameState:
        return self._session.state

    @property
    def score(self) -> int:
        return self._session.score

    @property
    def level(self) -> int:
        return self._session.level

    @property
    def min_colors(self) -> int:
        return len(self._session.palette)

    def vertices(self) -> List[Tuple[float, float]]:
        return [(float(x), float(y)) for (x, y) in self._session.graph.pos]

    def edges(self) -> List[Tuple[int, int]]:
        return sorted(self._session.graph.edges)

    def coloring(self) -> Dict[int, Color]:
        return dict(self._session.coloring)

    def palette(self) -> Tuple[Color, ...]:
        return self._session.palette

    def is_active(self) -> bool:
        return self._session.state is GameState.ACTIVE

    def is_complete(self) -> bool:
        s = self._session
        return all(v in s.coloring for v in range(s.graph.n_nodes))

    def is_stuck(self) -> bool:
        s = self._session
        return not has_any_valid_move(s.graph, s.coloring, s.palette)

    def can_undo(self) -> bool:
        s = self._session
        return s.state in (GameState.ACTIVE, GameState.LEVEL_COMPLETE) and not s.history.is_empty()

    def find_next_uncolored_vertex(self) -> Optional[int]:
        s = self._session
        return next((v for v in range(s.graph.n_nodes) if v not in s.coloring), None)

    def chromatic_number(self) -> int:
        k, _ = ChromaticSolver.for_graph(self._session.graph).chromatic_number()
        return k

    def snapshot(self) -> Dict:
        s = self._session
        data = s.graph.to_dict()
        data.update(
            {
                "level": s.level,
                "score": s.score,
                "state": s.state.value,
                "min_colors": self.min_colors,
                "coloring": {v: c.index for v, c in sorted(s.coloring.items())},
                "can_undo": self.can_undo(),
            }
        )
        return data

    # ---------------- commands ---------------- #
    def start_game(self) -> LevelStarted:
        s = self._session
        s.level = 1
        s.score = 0
        logger.info("Starting new game")
        return self._begin_level()

    def advance_level(self) -> Union[LevelStarted, NotActive]:
        s = self._session
        if s.state is not GameState.LEVEL_COMPLETE:
            return self._reject("advance_level needs a completed level")
        s.level += 1
        return self._begin_level()

    def reset(self) -> GameReset:
        self._session = GameSession()
        logger.info("Game reset")
        return GameReset()

    def color_vertex(self, vertex: int, color: Union[Color, int]) -> EngineResult:
        s = self._session
        if s.state is not GameState.ACTIVE:
            return self._reject("no level in progress")
        if not isinstance(vertex, (int, np.integer)) or isinstance(vertex, bool):
            return self._reject(f"vertex {vertex!r} is not an index")
        vertex = int(vertex)
        if not s.graph.has_node(vertex):
            return self._reject(f"vertex {vertex} out of range")
        chosen = self._resolve_color(color)
        if chosen is None:
            return self._reject(f"color {color!r} is not in the palette")

        if vertex in s.coloring:
            logger.debug("Vertex %d already colored", vertex)
            return AlreadyColored(vertex)
        if not can_assign(s.graph, s.coloring, vertex, chosen):
            if not has_any_valid_move(s.graph, s.coloring, s.palette):
                return self._game_over()
            logger.debug("Color %d conflicts at vertex %d", chosen.index, vertex)
            return ColorConflict(vertex, chosen)

        s.history.push(ColoringAction(vertex, s.coloring.get(vertex), chosen))
        s.coloring[vertex] = chosen
        s.score += move_points(s.level, self.rules)
        logger.debug("Colored vertex %d with %d (score %d)", vertex, chosen.index, s.score)

        if self.is_complete():
            return self._complete_level()
        return Committed(vertex, chosen, s.score)

    def undo(self) -> Union[UndoApplied, UndoEmpty, NotActive]:
        s = self._session
        if s.state not in (GameState.ACTIVE, GameState.LEVEL_COMPLETE):
            return self._reject("nothing to undo outside a level")
        action = s.history.pop()
        if action is None:
            return UndoEmpty(s.score)

        if action.old_color is None:
            s.coloring.pop(action.vertex, None)
        else:
            s.coloring[action.vertex] = action.old_color
        s.score -= move_points(s.level, self.rules)
        if s.state is GameState.LEVEL_COMPLETE:
            s.score -= s.level_bonus
            s.level_bonus = 0
            s.state = GameState.ACTIVE
        logger.debug("Undid vertex %d (score %d, %d left)", action.vertex, s.score, len(s.history))
        return UndoApplied(action.vertex, s.score, len(s.history))

    # ---------------- transitions ---------------- #
    def _begin_level(self) -> LevelStarted:
        s = self._session
        s.graph = self._generator(s.level, rng=self._rng, rules=self.rules)
        s.palette = build_palette(self.rules.palette_size(s.level))
        s.coloring = {}
        s.history.clear()
        s.level_bonus = 0
        s.state = GameState.ACTIVE
        logger.info(
            "Level %d: %d vertices, %d edges, %d colors",
            s.level, s.graph.n_nodes, s.graph.n_edges, len(s.palette),
        )
        return LevelStarted(s.level, s.graph.n_nodes, len(s.palette))

    def _complete_level(self) -> LevelCompleted:
        s = self._session
        before = s.score
        s.level_bonus = completion_bonus(s.coloring, self.min_colors, s.level, self.rules)
        s.score += s.level_bonus
        s.state = GameState.LEVEL_COMPLETE
        used = colors_used(s.coloring)
        logger.info("Level %d completed with %d colors, bonus %d, score %d", s.level, used, s.level_bonus, s.score)
        return LevelCompleted(
            level=s.level,
            score_before_bonus=before,
            bonus=s.level_bonus,
            total_score=s.score,
            colors_used=used,
            optimal_colors=self.chromatic_number(),
        )

    def _game_over(self) -> GameOver:
        s = self._session
        # everything but the score (and level reached) goes
        s.graph = GraphModel()
        s.coloring = {}
        s.history.clear()
        s.level_bonus = 0
        s.state = GameState.GAME_OVER
        logger.info("Game over at level %d, final score %d", s.level, s.score)
        return GameOver(s.level, s.score)

    def _reject(self, reason: str) -> NotActive:
        logger.debug("Rejected command: %s", reason)
        return NotActive(reason)

    def _resolve_color(self, color: Union[Color, int]) -> Optional[Color]:
        palette = self._session.palette
        if isinstance(color, Color):
            return color if color in palette else None
        if isinstance(color, (int, np.integer)) and not isinstance(color, bool) and 0 <= color < len(palette):
            return palette[int(color)]
        return None


# ---------------------------- Console App ---------------------------- #


USAGE = "commands: start | color V C | undo | next | hint | show | help | reset | quit"


def describe(result: EngineResult) -> str:
    if isinstance(result, LevelStarted):
        return f"Level {result.level}: {result.vertex_count} vertices, {result.palette_size} colors."
    if isinstance(result, Committed):
        return f"Vertex {result.vertex} colored. Score: {result.score}"
    if isinstance(result, AlreadyColored):
        return "Vertex already colored!"
    if isinstance(result, ColorConflict):
        return "Color not allowed due to adjacency."
    if isinstance(result, LevelCompleted):
        return (
            f"Level {result.level} completed!\nScore: {result.score_before_bonus}\n"
            f"Bonus: +{result.bonus}\nTotal Score: {result.total_score}\n"
            f"Colors used: {result.colors_used} (best possible: {result.optimal_colors})"
        )
    if isinstance(result, GameOver):
        return f"Game Over!\nNo valid moves remaining.\nFinal Score: {result.final_score}"
    if isinstance(result, UndoApplied):
        msg = f"Undone. Score: {result.score}"
        return msg + " (nothing left to undo)" if result.history_exhausted else msg
    if isinstance(result, UndoEmpty):
        return "Nothing to undo."
    if isinstance(result, NotActive):
        return f"Not now: {result.reason}."
    if isinstance(result, GameReset):
        return "Game reset."
    return repr(result)


class ConsoleApp:
    def __init__(self, game: Optional[GraphColoringGame] = None) -> None:
        self.game = game or GraphColoringGame()

    def handle(self, line: str) -> str:
        parts = line.split()
        if not parts:
            return USAGE
        cmd, args = parts[0].lower(), parts[1:]
        if cmd == "start":
            return describe(self.game.start_game())
        if cmd == "color":
            try:
                vertex, color = (int(a) for a in args)
            except ValueError:
                return "usage: color VERTEX COLOR_INDEX"
            return describe(self.game.color_vertex(vertex, color))
        if cmd == "undo":
            return describe(self.game.undo())
        if cmd == "next":
            return describe(self.game.advance_level())
        if cmd == "hint":
            v = self.game.find_next_uncolored_vertex()
            return "No uncolored vertex." if v is None else f"Try vertex {v}."
        if cmd == "show":
            return self.render()
        if cmd == "help":
            return HELP_TEXT
        if cmd == "reset":
            return describe(self.game.reset())
        return USAGE

    def render(self) -> str:
        g = self.game
        coloring = g.coloring()
        lines = [f"Level: {g.level}  Score: {g.score}  Min Colors: {g.min_colors}  [{g.state.value}]"]
        lines.append("  colors: " + " ".join(f"{c.index}={c.hex}" for c in g.palette()))
        for v in range(len(g.vertices())):
            c = coloring.get(v)
            lines.append(f"  {v}: {'-' if c is None else c.index}")
        lines.append("  edges: " + " ".join(f"{i}-{j}" for (i, j) in g.edges()))
        return "\n".join(lines)

    def run(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout
        stdout.write(USAGE + "\n")
        for line in stdin:
            if line.strip().lower() in ("quit", "exit"):
                break
            stdout.write(self.handle(line) + "\n")
            stdout.flush()


def main():
    configure_logging()
    ConsoleApp().run()


if __name__ == "__main__":
    main()
