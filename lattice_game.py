"""
Game controller for Lattice Go: turns, passes, win conditions and the AI reply
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np

from lattice_go import (
    BLUE, COLOR_NAMES, EMPTY, RED, BoardGraph, TerritoryScore, apply_move,
    get_color_int, new_board, opponent, score_territory,
)
from lattice_go_ai import AI_STRATEGIES, LatticeGoAI, create_ai

logger = logging.getLogger(__name__)

WIN_CONDITIONS = ('capture1', 'capture3', 'territory')
GAME_MODES = ('explore', 'vsComputer', 'challenge')

# Captures needed for an early win under each capture-count condition
CAPTURE_TARGETS = {'capture1': 1, 'capture3': 3}

# level -> (win condition, AI strategy); levels 2 and 3 differ only in AI strength
CHALLENGE_LEVELS = {
    1: ('capture1', 'random'),
    2: ('capture3', 'attack'),
    3: ('capture3', 'greedy'),
}

HUMAN_COLOR = BLUE
COMPUTER_COLOR = RED

BLUE_WINS = 'blue_wins'
RED_WINS = 'red_wins'
TIE = 'tie'


@dataclass(frozen=True)
class GameConfig:
    """Settings fixed for the duration of one game"""
    win_condition: str = 'territory'
    ai_strategy: str = 'random'
    mode: str = 'vsComputer'
    challenge_level: Optional[int] = None
    defer_ai: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        if self.win_condition not in WIN_CONDITIONS:
            raise ValueError(f"Unknown win condition {self.win_condition!r}, expected one of {WIN_CONDITIONS}")
        if self.ai_strategy not in AI_STRATEGIES:
            raise ValueError(f"Unknown AI strategy {self.ai_strategy!r}, expected one of {tuple(AI_STRATEGIES)}")
        if self.mode not in GAME_MODES:
            raise ValueError(f"Unknown game mode {self.mode!r}, expected one of {GAME_MODES}")
        if self.mode == 'challenge':
            level = 1 if self.challenge_level is None else self.challenge_level
            if level not in CHALLENGE_LEVELS:
                raise ValueError(f"Unknown challenge level {self.challenge_level!r}")
            object.__setattr__(self, 'challenge_level', level)

    @property
    def vs_computer(self) -> bool:
        return self.mode in ('vsComputer', 'challenge')

    @property
    def effective_win_condition(self) -> str:
        if self.mode == 'challenge':
            return CHALLENGE_LEVELS[self.challenge_level][0]
        return self.win_condition

    @property
    def effective_ai_strategy(self) -> str:
        if self.mode == 'challenge':
            return CHALLENGE_LEVELS[self.challenge_level][1]
        return self.ai_strategy

    @classmethod
    def from_dict(cls, data: Dict) -> 'GameConfig':
        """Build from the camelCase options the UI sends"""
        return cls(
            win_condition=data.get('winCondition', cls.win_condition),
            ai_strategy=data.get('aiStrategy', cls.ai_strategy),
            mode=data.get('mode', cls.mode),
            challenge_level=data.get('challengeLevel'),
            defer_ai=data.get('deferAi', cls.defer_ai),
            seed=data.get('seed'),
        )


@dataclass
class AIResponse:
    """The computer's reply: a node, or ``None`` for a pass"""
    node: Optional[int]
    captured_count: int = 0

    @property
    def passed(self) -> bool:
        return self.node is None


@dataclass
class MoveResult:
    accepted: bool
    captured_count: int = 0
    game_ended: bool = False
    result: Optional[str] = None
    ai_response: Optional[AIResponse] = None


Listener = Callable[[str, Dict], None]


class LatticeGoGame:
    """One game of Lattice Go over a fixed board graph.

    The board is replaced, never edited in place, so snapshots handed out by
    ``get_state`` and boards passed to the AI stay valid.
    """

    def __init__(self, graph: BoardGraph, config: Optional[GameConfig] = None,
                 ai: Optional[LatticeGoAI] = None):
        self.graph = graph
        self.config = config or GameConfig()
        self.win_condition = self.config.effective_win_condition
        self.ai = ai
        if self.ai is None and self.config.vs_computer:
            self.ai = create_ai(self.config.effective_ai_strategy, seed=self.config.seed)
        self._listeners: List[Listener] = []
        self.restart(notify=False)

    def restart(self, notify: bool = True):
        """Reset the board and all counters for the same graph"""
        self.board = new_board(self.graph)
        self.captures = {BLUE: 0, RED: 0}
        self.current_player = BLUE
        self.last_action_was_pass = False
        self.game_over = False
        self.winner: Optional[int] = None
        self.result: Optional[str] = None
        self.final_scores: Optional[Dict[int, int]] = None
        self.last_move: Optional[int] = None
        self.last_computer_move: Optional[int] = None
        if notify:
            self._notify('restarted', {})

    def add_listener(self, listener: Listener):
        """Register ``listener(event, payload)`` for game notifications"""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        self._listeners.remove(listener)

    def _notify(self, event: str, payload: Dict):
        for listener in list(self._listeners):
            listener(event, payload)

    def get_state(self) -> np.ndarray:
        """Read-only snapshot of the board"""
        snapshot = self.board.copy()
        snapshot.flags.writeable = False
        return snapshot

    def get_territory_score(self) -> TerritoryScore:
        return score_territory(self.graph, self.board)

    def place_stone(self, node: int, color) -> MoveResult:
        """Place a stone for ``color``; rejected moves leave the game untouched"""
        try:
            color = get_color_int(color)
        except ValueError:
            return self._rejected()
        if self.game_over:
            return self._rejected()
        if self.config.vs_computer and (color != HUMAN_COLOR or self.current_player != HUMAN_COLOR):
            return self._rejected()

        captured = self._commit_stone(node, color)
        if captured is None:
            return self._rejected()

        result = MoveResult(accepted=True, captured_count=captured)
        if self._check_win_condition():
            return self._finish(result)
        if self.config.vs_computer and not self.config.defer_ai:
            result.ai_response = self._ai_turn()
        return self._finish(result)

    def pass_turn(self, color) -> MoveResult:
        """Pass; a pass straight after another pass ends the game by score"""
        try:
            color = get_color_int(color)
        except ValueError:
            return self._rejected()
        if self.game_over:
            return self._rejected()
        if self.config.vs_computer and (color != HUMAN_COLOR or self.current_player != HUMAN_COLOR):
            return self._rejected()

        self._record_pass(color)
        result = MoveResult(accepted=True)
        if not self.game_over and self.config.vs_computer and not self.config.defer_ai:
            result.ai_response = self._ai_turn()
        return self._finish(result)

    def play_ai_turn(self) -> MoveResult:
        """Let the computer move now (for hosts running with ``defer_ai``)"""
        if self.game_over or self.ai is None or self.current_player != COMPUTER_COLOR:
            return self._rejected()
        response = self._ai_turn()
        return self._finish(MoveResult(
            accepted=True, captured_count=response.captured_count, ai_response=response))

    def _rejected(self) -> MoveResult:
        return MoveResult(accepted=False, game_ended=self.game_over, result=self.result)

    def _finish(self, result: MoveResult) -> MoveResult:
        result.game_ended = self.game_over
        result.result = self.result
        return result

    def _commit_stone(self, node: int, color: int) -> Optional[int]:
        outcome = apply_move(self.graph, self.board, node, color)
        if outcome is None:
            return None
        self.board, captured = outcome
        self.captures[color] += captured
        self.last_action_was_pass = False
        self.last_move = int(node)
        self.current_player = opponent(color)
        self._notify('stone_placed', {'node': int(node), 'color': COLOR_NAMES[color], 'captured': captured})
        return captured

    def _record_pass(self, color: int):
        if self.last_action_was_pass:
            self._notify('passed', {'color': COLOR_NAMES[color]})
            self._end_by_score()
            return
        self.last_action_was_pass = True
        self.current_player = opponent(color)
        self._notify('passed', {'color': COLOR_NAMES[color]})

    def _ai_turn(self) -> AIResponse:
        node = self.ai.get_best_move(self.graph, self.board, COMPUTER_COLOR)
        if node is not None:
            captured = self._commit_stone(node, COMPUTER_COLOR)
            if captured is not None:
                self.last_computer_move = int(node)
                self._check_win_condition()
                return AIResponse(node=int(node), captured_count=captured)
            logger.warning("AI %s proposed illegal move %s, passing instead", self.ai.name, node)

        self.last_computer_move = None
        self._record_pass(COMPUTER_COLOR)
        return AIResponse(node=None)

    def _check_win_condition(self) -> bool:
        """Capture-count early ending; only games against the computer use it"""
        target = CAPTURE_TARGETS.get(self.win_condition)
        if target is None or not self.config.vs_computer:
            return False
        if self.captures[BLUE] >= target:
            self._end_game(BLUE)
        elif self.captures[RED] >= target:
            self._end_game(RED)
        return self.game_over

    def _end_by_score(self):
        territory = score_territory(self.graph, self.board)
        self.final_scores = {
            BLUE: territory.scores[BLUE] + self.captures[BLUE],
            RED: territory.scores[RED] + self.captures[RED],
        }
        if self.final_scores[BLUE] > self.final_scores[RED]:
            self._end_game(BLUE)
        elif self.final_scores[RED] > self.final_scores[BLUE]:
            self._end_game(RED)
        else:
            self._end_game(None)

    def _end_game(self, winner: Optional[int]):
        self.game_over = True
        self.winner = winner
        if winner == BLUE:
            self.result = BLUE_WINS
        elif winner == RED:
            self.result = RED_WINS
        else:
            self.result = TIE
        logger.info("Game over: %s (captures blue=%d red=%d)",
                    self.result, self.captures[BLUE], self.captures[RED])
        self._notify('game_over', {'result': self.result})

        if self.config.mode == 'challenge' and winner == HUMAN_COLOR:
            self._notify('level_completed', {'level': self.config.challenge_level})

    def to_dict(self) -> Dict:
        """JSON serializable snapshot for the UI"""
        state = {
            'board': [COLOR_NAMES[int(c)] for c in self.board],
            'currentPlayer': COLOR_NAMES[self.current_player],
            'captures': {'blue': int(self.captures[BLUE]), 'red': int(self.captures[RED])},
            'gameOver': self.game_over,
            'result': self.result,
            'winner': COLOR_NAMES[self.winner] if self.winner else None,
            'lastMove': self.last_move,
            'lastComputerMove': self.last_computer_move,
            'lastActionWasPass': self.last_action_was_pass,
            'winCondition': self.win_condition,
            'mode': self.config.mode,
            'challengeLevel': self.config.challenge_level,
            'emptyCount': int(np.count_nonzero(self.board == EMPTY)),
        }
        if self.game_over:
            state['territory'] = self.get_territory_score().to_dict()
            if self.final_scores:
                state['finalScores'] = {COLOR_NAMES[c]: s for c, s in self.final_scores.items()}
        return state


def create_game(graph: BoardGraph, config: Optional[GameConfig] = None,
                listener: Optional[Listener] = None) -> LatticeGoGame:
    """Start a game on ``graph``; ``config`` may also be a dict of UI options"""
    if isinstance(config, dict):
        config = GameConfig.from_dict(config)
    game = LatticeGoGame(graph, config)
    if listener is not None:
        game.add_listener(listener)
    return game
