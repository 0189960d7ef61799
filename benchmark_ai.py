"""
Benchmark script to compare AI strategies against each other on a diamond lattice
"""
import argparse
import time

from tqdm import tqdm

from diamond_lattice import diamond_board_graph
from lattice_go import BLUE, RED, apply_move, new_board, opponent, score_territory
from lattice_go_ai import AI_STRATEGIES, create_ai


def play_match(graph, blue_ai, red_ai, max_moves=200):
    """Play one AI-vs-AI game; returns (winner, moves_made, seconds per player)"""
    board = new_board(graph)
    captures = {BLUE: 0, RED: 0}
    think_time = {BLUE: 0.0, RED: 0.0}
    players = {BLUE: blue_ai, RED: red_ai}
    color = BLUE
    passes = 0
    moves_made = 0

    for _ in range(max_moves):
        start_time = time.time()
        move = players[color].get_best_move(graph, board, color)
        think_time[color] += time.time() - start_time

        if move is None:
            passes += 1
            if passes >= 2:
                break
        else:
            passes = 0
            board, captured = apply_move(graph, board, move, color)
            captures[color] += captured
            moves_made += 1
        color = opponent(color)

    territory = score_territory(graph, board)
    blue_score = territory.scores[BLUE] + captures[BLUE]
    red_score = territory.scores[RED] + captures[RED]
    if blue_score > red_score:
        winner = BLUE
    elif red_score > blue_score:
        winner = RED
    else:
        winner = None
    return winner, moves_made, think_time


def benchmark(blue, red, size=2, games=10, max_moves=200, seed=None):
    graph = diamond_board_graph(size)
    wins = {BLUE: 0, RED: 0, None: 0}
    total_time = {BLUE: 0.0, RED: 0.0}
    total_moves = 0

    for game_index in tqdm(range(games), desc=f"{blue} vs {red}"):
        game_seed = None if seed is None else seed + game_index
        blue_ai = create_ai(blue, seed=game_seed)
        red_ai = create_ai(red, seed=None if game_seed is None else game_seed + 1)
        winner, moves_made, think_time = play_match(graph, blue_ai, red_ai, max_moves)
        wins[winner] += 1
        total_moves += moves_made
        for color in (BLUE, RED):
            total_time[color] += think_time[color]

    return wins, total_moves, total_time


def main():
    parser = argparse.ArgumentParser(description='Benchmark Lattice Go AI strategies against each other.')
    parser.add_argument('--blue', choices=list(AI_STRATEGIES), default='greedy', help='Strategy playing blue')
    parser.add_argument('--red', choices=list(AI_STRATEGIES), default='random', help='Strategy playing red')
    parser.add_argument('--size', type=int, default=2, help='Diamond lattice size (cells per axis)')
    parser.add_argument('--games', type=int, default=10, help='Number of games to play')
    parser.add_argument('--max-moves', type=int, default=200, help='Move cap per game')
    parser.add_argument('--seed', type=int, default=None, help='Base random seed')
    args = parser.parse_args()

    print("Lattice Go AI Benchmark")
    print("=" * 40)
    wins, total_moves, total_time = benchmark(
        args.blue, args.red, size=args.size, games=args.games,
        max_moves=args.max_moves, seed=args.seed)

    print(f"\nBlue ({args.blue}) wins: {wins[BLUE]}")
    print(f"Red ({args.red}) wins: {wins[RED]}")
    print(f"Ties: {wins[None]}")
    if total_moves:
        per_move = (total_time[BLUE] + total_time[RED]) / total_moves
        print(f"Average time per move: {per_move:.3f} seconds")
    print(f"Thinking time: blue {total_time[BLUE]:.2f}s, red {total_time[RED]:.2f}s")


if __name__ == "__main__":
    main()
