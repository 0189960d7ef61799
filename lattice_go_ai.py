"""
Computer opponents for Lattice Go: random, attack, greedy and minimax search
"""
import logging
import random
from typing import Dict, List, Optional, Tuple

import numpy as np

from lattice_go import (
    BoardGraph, RED, apply_move, find_groups, get_group, get_liberties,
    legal_moves, opponent, summarize_regions,
)

logger = logging.getLogger(__name__)


class LatticeGoAI:
    """Base class: every strategy returns a legal node, or ``None`` to pass"""

    name = 'base'

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def get_best_move(self, graph: BoardGraph, board: np.ndarray, color: int = RED) -> Optional[int]:
        raise NotImplementedError

    def get_legal_moves(self, graph: BoardGraph, board: np.ndarray, color: int) -> List[int]:
        return legal_moves(graph, board, color)

    def random_move(self, graph: BoardGraph, board: np.ndarray, color: int) -> Optional[int]:
        """Uniform choice among legal moves"""
        moves = self.get_legal_moves(graph, board, color)
        if not moves:
            return None
        return self.rng.choice(moves)

    @staticmethod
    def liberties_after(graph: BoardGraph, board: np.ndarray, node: int, color: int) -> Optional[int]:
        """Liberties of the mover's group after playing ``node``; ``None`` if illegal"""
        outcome = apply_move(graph, board, node, color)
        if outcome is None:
            return None
        new_board, _ = outcome
        return len(get_liberties(graph, new_board, get_group(graph, new_board, node)))


class RandomAI(LatticeGoAI):
    """Plays a uniformly random legal move"""

    name = 'random'

    def get_best_move(self, graph: BoardGraph, board: np.ndarray, color: int = RED) -> Optional[int]:
        return self.random_move(graph, board, color)


class AttackAI(LatticeGoAI):
    """Fills a liberty of the weakest opponent group"""

    name = 'attack'

    def get_best_move(self, graph: BoardGraph, board: np.ndarray, color: int = RED) -> Optional[int]:
        groups = [(group, libs) for group, libs in find_groups(graph, board, opponent(color)) if libs]
        if groups:
            fewest = min(len(libs) for _, libs in groups)
            weakest = [libs for _, libs in groups if len(libs) == fewest]
            target = self.rng.choice(weakest)
            moves = [node for node in sorted(target) if apply_move(graph, board, node, color) is not None]
            if moves:
                return self.rng.choice(moves)
        return self.random_move(graph, board, color)


class GreedyAI(LatticeGoAI):
    """Priority cascade: capture, rescue, attack, safe expansion, random"""

    name = 'greedy'

    def get_best_move(self, graph: BoardGraph, board: np.ndarray, color: int = RED) -> Optional[int]:
        moves = self.get_legal_moves(graph, board, color)
        if not moves:
            return None

        # Captures, largest first
        capturing: List[Tuple[int, int]] = []
        for node in moves:
            _, captured = apply_move(graph, board, node, color)
            if captured > 0:
                capturing.append((captured, node))
        if capturing:
            most = max(captured for captured, _ in capturing)
            return self.rng.choice([node for captured, node in capturing if captured == most])

        # Rescue own groups in atari
        rescues = []
        for group, libs in find_groups(graph, board, color):
            if len(libs) != 1:
                continue
            liberty = next(iter(libs))
            after = self.liberties_after(graph, board, liberty, color)
            if after is not None and after > 1:
                rescues.append(liberty)
        if rescues:
            return self.rng.choice(rescues)

        # Attack opponent groups with 1-3 liberties, fewest first
        attacks: Dict[int, set] = {}
        for group, libs in find_groups(graph, board, opponent(color)):
            if not 1 <= len(libs) <= 3:
                continue
            for liberty in libs:
                after = self.liberties_after(graph, board, liberty, color)
                if after is not None and after > 1:
                    attacks.setdefault(len(libs), set()).add(liberty)
        if attacks:
            return self.rng.choice(sorted(attacks[min(attacks)]))

        # Safe expansion
        safe = [node for node in moves if self.liberties_after(graph, board, node, color) > 1]
        if safe:
            return self.rng.choice(safe)

        return self.rng.choice(moves)


class MinimaxAI(LatticeGoAI):
    """Two-ply alpha-beta search over statically pre-ranked candidates"""

    name = 'advanced'

    CAPTURE_WEIGHT = 1000
    # own group liberty count -> score, anything else earns 5 per liberty
    OWN_LIBERTY_SCORES = {1: -50, 2: -20}
    # opponent group liberty count -> attack bonus
    ATTACK_BONUSES = {1: 100, 2: 30, 3: 10}

    def __init__(self, seed: Optional[int] = None, depth: int = 2,
                 top_candidates: int = 5, branch_limit: int = 8):
        super().__init__(seed)
        self.depth = depth
        self.top_candidates = top_candidates
        self.branch_limit = branch_limit
        self.nodes_searched = 0

    def evaluate_position(self, graph: BoardGraph, board: np.ndarray, color: int, material: int = 0) -> float:
        """Score ``board`` from ``color``'s point of view.

        ``material`` is the net number of stones ``color`` captured along the
        line that produced ``board``.
        """
        score = float(material * self.CAPTURE_WEIGHT)
        regions = summarize_regions(graph, board)
        enemy = opponent(color)
        for region_color, liberties in zip(regions.colors, regions.liberties):
            liberties = int(liberties)
            if region_color == color:
                score += self.OWN_LIBERTY_SCORES.get(liberties, 5 * liberties)
            elif region_color == enemy:
                score += self.ATTACK_BONUSES.get(liberties, 0)
        return score

    def _expand(self, graph: BoardGraph, board: np.ndarray, mover: int) -> List[Tuple[int, np.ndarray, int]]:
        children = []
        for node in self.get_legal_moves(graph, board, mover):
            new_board, captured = apply_move(graph, board, node, mover)
            children.append((node, new_board, captured))
        return children

    def _order_moves(self, graph: BoardGraph, children, mover: int):
        """Sort children best-first for ``mover`` by static evaluation (stable)"""
        scored = [(self.evaluate_position(graph, child, mover, captured), node, child, captured)
                  for node, child, captured in children]
        scored.sort(key=lambda item: item[0], reverse=True)
        return scored

    def get_best_move(self, graph: BoardGraph, board: np.ndarray, color: int = RED) -> Optional[int]:
        """Get best move using minimax with alpha-beta pruning"""
        children = self._expand(graph, board, color)
        if not children:
            return None

        self.nodes_searched = 0
        candidates = self._order_moves(graph, children, color)[:self.top_candidates]

        best_move = None
        best_score = -float('inf')
        alpha = -float('inf')
        beta = float('inf')
        for static_score, node, child, captured in candidates:
            score = self._minimax(graph, child, self.depth - 1, alpha, beta, False, color, captured)
            logger.debug("candidate %d static=%.1f searched=%.1f", node, static_score, score)
            # strict comparison keeps the first of equal candidates
            if score > best_score:
                best_score = score
                best_move = node
            alpha = max(alpha, score)

        logger.debug("advanced AI picked %s (score %.1f, %d nodes)", best_move, best_score, self.nodes_searched)
        return best_move

    def _minimax(self, graph: BoardGraph, board: np.ndarray, depth: int, alpha: float, beta: float,
                 is_maximizing: bool, ai_color: int, material: int) -> float:
        """Minimax with alpha-beta pruning; ``material`` is the AI's net captures so far"""
        self.nodes_searched += 1
        if depth == 0:
            return self.evaluate_position(graph, board, ai_color, material)

        mover = ai_color if is_maximizing else opponent(ai_color)
        children = self._expand(graph, board, mover)
        if not children:
            return self.evaluate_position(graph, board, ai_color, material)

        if len(children) > self.branch_limit:
            ordered = self._order_moves(graph, children, mover)[:self.branch_limit]
            children = [(node, child, captured) for _, node, child, captured in ordered]

        sign = 1 if is_maximizing else -1
        if is_maximizing:
            max_score = -float('inf')
            for _, child, captured in children:
                score = self._minimax(graph, child, depth - 1, alpha, beta, False,
                                      ai_color, material + sign * captured)
                max_score = max(max_score, score)
                alpha = max(alpha, score)
                if beta <= alpha:
                    break  # Beta cutoff
            return max_score
        else:
            min_score = float('inf')
            for _, child, captured in children:
                score = self._minimax(graph, child, depth - 1, alpha, beta, True,
                                      ai_color, material + sign * captured)
                min_score = min(min_score, score)
                beta = min(beta, score)
                if beta <= alpha:
                    break  # Alpha cutoff
            return min_score


AI_STRATEGIES = {
    'random': RandomAI,
    'attack': AttackAI,
    'greedy': GreedyAI,
    'advanced': MinimaxAI,
}


def create_ai(strategy: str, seed: Optional[int] = None) -> LatticeGoAI:
    """Instantiate the AI registered under ``strategy``"""
    try:
        ai_class = AI_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown AI strategy {strategy!r}, expected one of {tuple(AI_STRATEGIES)}") from None
    return ai_class(seed=seed)
