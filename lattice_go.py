"""
Go rules engine for arbitrary graph boards (diamond lattice and friends)
"""
import logging
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

import numpy as np
from numba import njit

logger = logging.getLogger(__name__)

# Constants for board representation
EMPTY = 0
BLUE = 1
RED = 2
NEUTRAL = 3  # territory ownership label only, never stored on a board

COLOR_NAMES = {EMPTY: 'empty', BLUE: 'blue', RED: 'red', NEUTRAL: 'neutral'}


class BoardGraphError(ValueError):
    """Raised when the supplied lattice topology is malformed"""


def opponent(color: int) -> int:
    """Get opponent color"""
    return RED if color == BLUE else BLUE


def get_color_int(color) -> int:
    """Convert 'blue'/'red' (or an int color) to the integer constant"""
    if isinstance(color, str):
        name = color.lower()
        if name == 'blue':
            return BLUE
        if name == 'red':
            return RED
        raise ValueError(f"Unknown stone color: {color!r}")
    if color in (BLUE, RED):
        return int(color)
    raise ValueError(f"Unknown stone color: {color!r}")


class BoardGraph:
    """Immutable board topology: nodes 0..N-1 joined by undirected edges.

    Adjacency is kept twice: as frozensets for rule lookups and as CSR arrays
    (``indptr``/``indices``) for the compiled whole-board scans.
    """

    def __init__(self, num_nodes: int, edges: Iterable[Tuple[int, int]]):
        if isinstance(num_nodes, bool) or not isinstance(num_nodes, (int, np.integer)):
            raise BoardGraphError(f"Node count must be an integer, got {num_nodes!r}")
        if num_nodes < 0:
            raise BoardGraphError(f"Node count must be non-negative, got {num_nodes}")
        self.num_nodes = int(num_nodes)

        adjacency = [set() for _ in range(self.num_nodes)]
        edge_set = set()
        for edge in edges:
            try:
                a, b = edge
            except (TypeError, ValueError):
                raise BoardGraphError(f"Edge must be a pair of node indices, got {edge!r}") from None
            if not all(isinstance(v, (int, np.integer)) and not isinstance(v, bool) for v in (a, b)):
                raise BoardGraphError(f"Edge endpoints must be integers, got {edge!r}")
            a, b = int(a), int(b)
            if not (0 <= a < self.num_nodes and 0 <= b < self.num_nodes):
                raise BoardGraphError(
                    f"Edge ({a}, {b}) references a node outside [0, {self.num_nodes})")
            if a == b:
                raise BoardGraphError(f"Edge ({a}, {b}) is a self-loop")
            key = (a, b) if a < b else (b, a)
            if key in edge_set:
                continue
            edge_set.add(key)
            adjacency[a].add(b)
            adjacency[b].add(a)

        self.edges: Tuple[Tuple[int, int], ...] = tuple(sorted(edge_set))
        self._adjacency = tuple(frozenset(nbrs) for nbrs in adjacency)

        # CSR layout for numba kernels
        degrees = np.array([len(nbrs) for nbrs in adjacency], dtype=np.int64)
        self.indptr = np.zeros(self.num_nodes + 1, dtype=np.int64)
        np.cumsum(degrees, out=self.indptr[1:])
        self.indices = np.array(
            [nb for nbrs in adjacency for nb in sorted(nbrs)], dtype=np.int64)

    @classmethod
    def from_edges(cls, edges: Iterable[Tuple[int, int]], num_nodes: Optional[int] = None) -> 'BoardGraph':
        """Build a graph, inferring the node count from the largest endpoint when omitted"""
        edges = list(edges)
        if num_nodes is None:
            num_nodes = 1 + max((max(a, b) for a, b in edges), default=-1)
        return cls(num_nodes, edges)

    def __len__(self) -> int:
        return self.num_nodes

    def __repr__(self) -> str:
        return f"BoardGraph(num_nodes={self.num_nodes}, edges={len(self.edges)})"

    def neighbors(self, node: int) -> frozenset:
        """All nodes joined to ``node`` by an edge"""
        return self._adjacency[node]

    def degree(self, node: int) -> int:
        return len(self._adjacency[node])

    def contains(self, node) -> bool:
        return isinstance(node, (int, np.integer)) and not isinstance(node, bool) \
            and 0 <= node < self.num_nodes


def new_board(graph: BoardGraph) -> np.ndarray:
    """Empty board for ``graph``"""
    return np.zeros(graph.num_nodes, dtype=np.int8)


def board_from_dict(graph: BoardGraph, stones: Dict[int, int]) -> np.ndarray:
    """Build a board from a ``{node: color}`` mapping (absent nodes are empty)"""
    board = new_board(graph)
    for node, color in stones.items():
        board[node] = color
    return board


@njit
def _label_regions(indptr, indices, board):
    """Label every maximal same-value connected region (stones and empty areas)"""
    n = board.shape[0]
    labels = np.empty(n, dtype=np.int64)
    labels[:] = -1
    stack = np.empty(n, dtype=np.int64)
    count = 0
    for start in range(n):
        if labels[start] != -1:
            continue
        color = board[start]
        labels[start] = count
        stack[0] = start
        top = 1
        while top > 0:
            top -= 1
            node = stack[top]
            for k in range(indptr[node], indptr[node + 1]):
                nb = indices[k]
                if labels[nb] == -1 and board[nb] == color:
                    labels[nb] = count
                    stack[top] = nb
                    top += 1
        count += 1
    return labels, count


@njit
def _region_liberty_counts(indptr, indices, board, labels, count):
    """Distinct empty neighbours per region (meaningful for stone regions only)"""
    n = board.shape[0]
    liberties = np.zeros(count, dtype=np.int64)
    marked_by = np.empty(n, dtype=np.int64)
    marked_by[:] = -1
    # regions are contiguous in label order, so one marker per node is enough
    order = np.argsort(labels)
    for i in range(n):
        node = order[i]
        if board[node] == 0:
            continue
        label = labels[node]
        for k in range(indptr[node], indptr[node + 1]):
            nb = indices[k]
            if board[nb] == 0 and marked_by[nb] != label:
                marked_by[nb] = label
                liberties[label] += 1
    return liberties


@njit
def _region_border_masks(indptr, indices, board, labels, count):
    """Bitmask (1 << color) of the stone colors touching each empty region"""
    n = board.shape[0]
    masks = np.zeros(count, dtype=np.int64)
    for node in range(n):
        if board[node] != 0:
            continue
        label = labels[node]
        for k in range(indptr[node], indptr[node + 1]):
            value = board[indices[k]]
            if value != 0:
                masks[label] |= 1 << value
    return masks


def label_regions(graph: BoardGraph, board: np.ndarray) -> Tuple[np.ndarray, int]:
    """Connected-component labels for every same-color region of ``board``"""
    labels, count = _label_regions(graph.indptr, graph.indices, board)
    return labels, int(count)


@dataclass
class RegionSummary:
    """Whole-board group statistics computed in one compiled pass"""
    labels: np.ndarray
    colors: np.ndarray
    sizes: np.ndarray
    liberties: np.ndarray

    @property
    def count(self) -> int:
        return len(self.colors)


def summarize_regions(graph: BoardGraph, board: np.ndarray) -> RegionSummary:
    """Label regions and collect color, size and liberty count per region"""
    labels, count = _label_regions(graph.indptr, graph.indices, board)
    colors = np.zeros(count, dtype=np.int8)
    colors[labels] = board
    sizes = np.bincount(labels, minlength=count)
    liberties = _region_liberty_counts(graph.indptr, graph.indices, board, labels, count)
    return RegionSummary(labels=labels, colors=colors, sizes=sizes, liberties=liberties)


def get_group(graph: BoardGraph, board: np.ndarray, node: int) -> Set[int]:
    """Get all stones in the same group as ``node`` (empty set for an empty node)"""
    color = board[node]
    if color == EMPTY:
        return set()

    group = set()
    queue = deque([node])
    while queue:
        current = queue.popleft()
        if current in group:
            continue
        group.add(current)
        for nb in graph.neighbors(current):
            if board[nb] == color and nb not in group:
                queue.append(nb)
    return group


def get_liberties(graph: BoardGraph, board: np.ndarray, group: Iterable[int]) -> Set[int]:
    """Empty nodes adjacent to any stone of ``group``"""
    liberties = set()
    for node in group:
        for nb in graph.neighbors(node):
            if board[nb] == EMPTY:
                liberties.add(nb)
    return liberties


def find_groups(graph: BoardGraph, board: np.ndarray, color: int) -> List[Tuple[Set[int], Set[int]]]:
    """All groups of ``color`` with their liberties, each group computed once"""
    groups = []
    checked = set()
    for node in np.flatnonzero(board == color):
        node = int(node)
        if node in checked:
            continue
        group = get_group(graph, board, node)
        checked.update(group)
        groups.append((group, get_liberties(graph, board, group)))
    return groups


def resolve_captures(graph: BoardGraph, board: np.ndarray, played_color: int) -> Tuple[np.ndarray, Dict[int, int]]:
    """Remove every opponent group left without liberties.

    All dead groups are found on the same post-move board and removed together.
    Returns a fresh board and ``{BLUE: n, RED: n}`` with the captured stones
    credited to ``played_color``.
    """
    new = board.copy()
    captured = {BLUE: 0, RED: 0}
    target = opponent(played_color)

    regions = summarize_regions(graph, new)
    dead = (regions.colors == target) & (regions.liberties == 0)
    if dead.any():
        removed = dead[regions.labels]
        captured[played_color] = int(np.count_nonzero(removed))
        new[removed] = EMPTY
    return new, captured


def apply_move(graph: BoardGraph, board: np.ndarray, node: int, color: int) -> Optional[Tuple[np.ndarray, int]]:
    """Place, resolve opponent captures, then reject suicide.

    Returns ``(new_board, captured_count)`` or ``None`` for an illegal move.
    The input board is never modified.
    """
    if not graph.contains(node) or board[node] != EMPTY:
        return None

    placed = board.copy()
    placed[node] = color
    new, captured = resolve_captures(graph, placed, color)

    for nb in graph.neighbors(node):
        if new[nb] == EMPTY:
            return new, captured[color]
    if not get_liberties(graph, new, get_group(graph, new, node)):
        return None
    return new, captured[color]


def is_legal_move(graph: BoardGraph, board: np.ndarray, node: int, color: int) -> bool:
    """Check if a move is legal (empty target, not suicide after captures)"""
    if not graph.contains(node) or board[node] != EMPTY:
        return False
    # An empty neighbour is a liberty no capture can take away
    for nb in graph.neighbors(node):
        if board[nb] == EMPTY:
            return True
    return apply_move(graph, board, node, color) is not None


def legal_moves(graph: BoardGraph, board: np.ndarray, color: int) -> List[int]:
    """Get all legal moves for ``color`` in ascending node order"""
    return [int(node) for node in np.flatnonzero(board == EMPTY)
            if is_legal_move(graph, board, int(node), color)]


@dataclass
class TerritoryScore:
    """Territory sizes per owner and the owner of every empty node"""
    scores: Dict[int, int]
    ownership: Dict[int, int]

    def to_dict(self) -> Dict:
        return {
            'scores': {COLOR_NAMES[c]: n for c, n in self.scores.items()},
            'ownership': {str(node): COLOR_NAMES[owner] for node, owner in self.ownership.items()},
        }


_BLUE_ONLY = 1 << BLUE
_RED_ONLY = 1 << RED


def score_territory(graph: BoardGraph, board: np.ndarray) -> TerritoryScore:
    """Flood fill empty regions and attribute each to its single bordering color"""
    scores = {BLUE: 0, RED: 0, NEUTRAL: 0}
    ownership: Dict[int, int] = {}

    empty_nodes = np.flatnonzero(board == EMPTY)
    if len(empty_nodes) == 0:
        return TerritoryScore(scores, ownership)

    labels, count = _label_regions(graph.indptr, graph.indices, board)
    masks = _region_border_masks(graph.indptr, graph.indices, board, labels, count)

    for node in empty_nodes:
        mask = masks[labels[node]]
        if mask == _BLUE_ONLY:
            owner = BLUE
        elif mask == _RED_ONLY:
            owner = RED
        else:
            owner = NEUTRAL
        ownership[int(node)] = owner
        scores[owner] += 1
    return TerritoryScore(scores, ownership)
