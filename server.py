import asyncio
import logging
import os
from typing import Dict

from fastapi import FastAPI
import socketio

from diamond_lattice import generate_diamond_lattice
from lattice_go import BoardGraph
from lattice_game import (
    CHALLENGE_LEVELS, GAME_MODES, WIN_CONDITIONS, GameConfig, LatticeGoGame, create_game,
)
from lattice_go_ai import AI_STRATEGIES

logger = logging.getLogger(__name__)

DEFAULT_BOARD_SIZE = 3
MAX_BOARD_SIZE = 6
# Pause before the computer replies so the UI can show its thinking indicator
AI_MOVE_DELAY = float(os.environ.get("AI_MOVE_DELAY", 0.8))

# FastAPI and Socket.IO setup
app = FastAPI()
sio = socketio.AsyncServer(cors_allowed_origins="*", async_mode='asgi')
socket_app = socketio.ASGIApp(sio, app)

# Game storage
games: Dict[str, Dict] = {}


@app.get("/api/options")
async def read_options():
    return {
        'aiStrategies': list(AI_STRATEGIES),
        'winConditions': list(WIN_CONDITIONS),
        'modes': list(GAME_MODES),
        'challengeLevels': {
            level: {'winCondition': win, 'aiStrategy': strategy}
            for level, (win, strategy) in CHALLENGE_LEVELS.items()
        },
        'maxBoardSize': MAX_BOARD_SIZE,
    }


def game_state(sid: str) -> Dict:
    session = games[sid]
    state = session['game'].to_dict()
    state['completedLevels'] = sorted(session['completed_levels'])
    return state


def _track_levels(session: Dict):
    def listener(event, payload):
        if event == 'level_completed':
            session['completed_levels'].add(payload['level'])
            logger.info("Challenge level %s completed", payload['level'])
    return listener


@sio.event
async def connect(sid, environ):
    logger.info('New client connected: %s', sid)


@sio.event
async def disconnect(sid):
    logger.info('Client disconnected: %s', sid)
    if sid in games:
        del games[sid]


@sio.event
async def newGame(sid, data=None):
    data = data or {}
    if not isinstance(data, dict):
        await sio.emit('error', 'Game options must be an object', room=sid)
        return
    try:
        size = int(data.get('boardSize', DEFAULT_BOARD_SIZE))
        if not 1 <= size <= MAX_BOARD_SIZE:
            raise ValueError(f"Board size must be between 1 and {MAX_BOARD_SIZE}")
        config = GameConfig.from_dict({**data, 'deferAi': True})
    except (TypeError, ValueError) as e:
        await sio.emit('error', str(e), room=sid)
        return

    points, edges = generate_diamond_lattice(size)
    graph = BoardGraph(len(points), edges)

    # Completed levels survive new games within one connection
    previous = games.get(sid)
    session = {
        'graph': graph,
        'config': config,
        'completed_levels': previous['completed_levels'] if previous else set(),
    }
    session['game'] = create_game(graph, config, listener=_track_levels(session))
    games[sid] = session

    await sio.emit('lattice', {'points': points.round(4).tolist(), 'edges': [list(e) for e in graph.edges]}, room=sid)
    await sio.emit('gameState', game_state(sid), room=sid)


async def _computer_reply(sid: str, game: LatticeGoGame):
    if game.game_over or not game.config.vs_computer:
        return
    await sio.emit('aiThinking', True, room=sid)
    await asyncio.sleep(AI_MOVE_DELAY)
    # The client may have disconnected or started a new game meanwhile
    if games.get(sid, {}).get('game') is not game:
        logger.info('Dropping stale computer move for %s', sid)
        return
    game.play_ai_turn()
    await sio.emit('aiThinking', False, room=sid)
    await sio.emit('gameState', game_state(sid), room=sid)


@sio.event
async def makeMove(sid, data):
    if sid not in games:
        await sio.emit('error', 'No game found', room=sid)
        return

    game = games[sid]['game']
    if not isinstance(data, dict):
        await sio.emit('invalidMove', {'node': None}, room=sid)
        return
    try:
        node = int(data['node'])
    except (KeyError, TypeError, ValueError):
        await sio.emit('invalidMove', {'node': None}, room=sid)
        return
    color = data.get('color', 'blue') if game.config.mode == 'explore' else 'blue'

    result = game.place_stone(node, color)
    if not result.accepted:
        await sio.emit('invalidMove', {'node': node}, room=sid)
        return

    await sio.emit('gameState', game_state(sid), room=sid)
    await _computer_reply(sid, game)


@sio.event
async def pass_move(sid, data=None):
    if sid not in games:
        await sio.emit('error', 'No game found', room=sid)
        return

    game = games[sid]['game']
    data = data if isinstance(data, dict) else {}
    color = data.get('color', 'blue') if game.config.mode == 'explore' else 'blue'
    game.pass_turn(color)
    await sio.emit('gameState', game_state(sid), room=sid)
    await _computer_reply(sid, game)


@sio.event
async def restart(sid):
    if sid not in games:
        await sio.emit('error', 'No game found', room=sid)
        return

    games[sid]['game'].restart()
    await sio.emit('gameState', game_state(sid), room=sid)


@sio.event
async def getTerritory(sid):
    if sid not in games:
        await sio.emit('error', 'No game found', room=sid)
        return

    territory = games[sid]['game'].get_territory_score()
    await sio.emit('territory', territory.to_dict(), room=sid)


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    port = int(os.environ.get("PORT", 3000))
    uvicorn.run(socket_app, host="127.0.0.1", port=port)
