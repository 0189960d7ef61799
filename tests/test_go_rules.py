"""
Pytest tests for the Lattice Go rules engine: graph validation, groups,
captures, suicide and territory.
"""

import random

import pytest
import numpy as np
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lattice_go import (
    BLUE, EMPTY, NEUTRAL, RED, BoardGraph, BoardGraphError, apply_move, board_from_dict,
    find_groups, get_color_int, get_group, get_liberties, is_legal_move, label_regions,
    legal_moves, new_board, opponent, resolve_captures, score_territory,
)


def play_random_game(graph, moves, seed):
    """Random legal play from an empty board, yielding every intermediate board."""
    rng = random.Random(seed)
    board = new_board(graph)
    color = BLUE
    for _ in range(moves):
        options = legal_moves(graph, board, color)
        if not options:
            break
        board, _ = apply_move(graph, board, rng.choice(options), color)
        yield board
        color = opponent(color)


class TestBoardGraph:
    """Test construction and validation of the board topology."""

    @pytest.mark.unit
    def test_neighbors(self, path_graph):
        assert path_graph.neighbors(0) == {1}
        assert path_graph.neighbors(1) == {0, 2}
        assert path_graph.neighbors(3) == {2}
        assert len(path_graph) == 4

    @pytest.mark.unit
    def test_duplicate_edges_collapsed(self):
        graph = BoardGraph(3, [(0, 1), (1, 0), (0, 1), (1, 2)])
        assert graph.edges == ((0, 1), (1, 2))
        assert graph.degree(1) == 2
        assert list(graph.indptr) == [0, 1, 3, 4]

    @pytest.mark.unit
    def test_out_of_range_edge_rejected(self):
        with pytest.raises(BoardGraphError, match="outside"):
            BoardGraph(3, [(0, 1), (2, 3)])

    @pytest.mark.unit
    def test_negative_index_rejected(self):
        with pytest.raises(BoardGraphError):
            BoardGraph(3, [(-1, 1)])

    @pytest.mark.unit
    def test_self_loop_rejected(self):
        with pytest.raises(BoardGraphError, match="self-loop"):
            BoardGraph(3, [(1, 1)])

    @pytest.mark.unit
    def test_malformed_edge_rejected(self):
        with pytest.raises(BoardGraphError):
            BoardGraph(3, [(0, 1, 2)])
        with pytest.raises(BoardGraphError):
            BoardGraph(3, [(0, 'a')])

    @pytest.mark.unit
    def test_bad_node_count_rejected(self):
        with pytest.raises(BoardGraphError):
            BoardGraph(-1, [])
        with pytest.raises(BoardGraphError):
            BoardGraph(2.5, [])

    @pytest.mark.unit
    def test_graph_error_is_value_error(self):
        assert issubclass(BoardGraphError, ValueError)

    @pytest.mark.unit
    def test_from_edges_infers_node_count(self):
        graph = BoardGraph.from_edges([(0, 1), (1, 4)])
        assert graph.num_nodes == 5
        assert graph.degree(2) == 0


class TestColors:

    @pytest.mark.unit
    def test_opponent(self):
        assert opponent(BLUE) == RED
        assert opponent(RED) == BLUE

    @pytest.mark.unit
    def test_get_color_int(self):
        assert get_color_int('blue') == BLUE
        assert get_color_int('Red') == RED
        assert get_color_int(RED) == RED
        with pytest.raises(ValueError):
            get_color_int('green')
        with pytest.raises(ValueError):
            get_color_int(EMPTY)


class TestGroups:
    """Test group and liberty computation."""

    @pytest.mark.unit
    def test_group_of_empty_node_is_empty(self, path_graph):
        board = new_board(path_graph)
        assert get_group(path_graph, board, 2) == set()

    @pytest.mark.unit
    def test_group_and_liberties(self, path_graph):
        board = board_from_dict(path_graph, {0: BLUE, 1: BLUE, 2: RED})
        group = get_group(path_graph, board, 0)
        assert group == {0, 1}
        assert get_liberties(path_graph, board, group) == set()
        assert get_liberties(path_graph, board, get_group(path_graph, board, 2)) == {3}

    @pytest.mark.unit
    def test_find_groups(self, ring_graph):
        board = board_from_dict(ring_graph, {0: BLUE, 1: BLUE, 3: BLUE, 4: RED})
        groups = find_groups(ring_graph, board, BLUE)
        assert sorted(sorted(g) for g, _ in groups) == [[0, 1], [3]]
        for group, libs in groups:
            if group == {0, 1}:
                assert libs == {2, 5}
            else:
                assert libs == {2}

    @pytest.mark.unit
    def test_labels_match_groups(self, medium_lattice):
        for board in play_random_game(medium_lattice, 30, seed=3):
            pass
        labels, count = label_regions(medium_lattice, board)
        assert count == len(set(labels.tolist()))
        for node in np.flatnonzero(board != EMPTY):
            same_label = set(np.flatnonzero(labels == labels[node]).tolist())
            assert same_label == get_group(medium_lattice, board, int(node))


class TestCaptures:
    """Test capture mechanics."""

    @pytest.mark.unit
    def test_path_capture(self, path_graph):
        """Blue at 3 removes the red stone at 2."""
        board = board_from_dict(path_graph, {0: BLUE, 1: BLUE, 2: RED})
        new, captured = apply_move(path_graph, board, 3, BLUE)
        assert captured == 1
        assert new[2] == EMPTY
        assert new[3] == BLUE
        # Input board untouched
        assert board[2] == RED and board[3] == EMPTY

    @pytest.mark.unit
    def test_resolver_counts(self, path_graph):
        board = board_from_dict(path_graph, {0: BLUE, 1: BLUE, 2: RED, 3: BLUE})
        new, captured = resolve_captures(path_graph, board, BLUE)
        assert captured == {BLUE: 1, RED: 0}
        assert new is not board
        assert list(new) == [BLUE, BLUE, EMPTY, BLUE]

    @pytest.mark.unit
    def test_resolver_never_captures_own_color(self, path_graph):
        board = board_from_dict(path_graph, {0: BLUE, 1: BLUE, 2: RED})
        new, captured = resolve_captures(path_graph, board, RED)
        # Blue {0, 1} has no liberties and Red just played: blue is removed
        assert captured == {BLUE: 0, RED: 2}
        assert list(new) == [EMPTY, EMPTY, RED, EMPTY]
        # Same board, Blue just played: Red still has node 3, Blue's own group stays
        new, captured = resolve_captures(path_graph, board, BLUE)
        assert captured == {BLUE: 0, RED: 0}
        assert np.array_equal(new, board)

    @pytest.mark.unit
    def test_simultaneous_capture_of_several_groups(self, star_graph):
        board = board_from_dict(star_graph, {1: RED, 2: RED, 3: RED, 4: RED})
        new, captured = apply_move(star_graph, board, 0, BLUE)
        assert captured == 4
        assert list(new) == [BLUE, EMPTY, EMPTY, EMPTY, EMPTY]

    @pytest.mark.unit
    def test_capture_on_lattice(self, small_lattice):
        # node 0 is an A site in a corner cell: its neighbours are B sites
        target = 0
        neighbors = sorted(small_lattice.neighbors(target))
        stones = {target: RED}
        stones.update({nb: BLUE for nb in neighbors[:-1]})
        board = board_from_dict(small_lattice, stones)
        new, captured = apply_move(small_lattice, board, neighbors[-1], BLUE)
        assert captured == 1
        assert new[target] == EMPTY

    @pytest.mark.integration
    def test_no_group_without_liberties_during_play(self, medium_lattice):
        for board in play_random_game(medium_lattice, 80, seed=11):
            for color in (BLUE, RED):
                for group, libs in find_groups(medium_lattice, board, color):
                    assert libs, f"group {sorted(group)} has no liberties"


class TestSelfCapture:
    """Test self-capture (suicide) rules."""

    @pytest.fixture
    def line5(self):
        return BoardGraph(5, [(0, 1), (1, 2), (2, 3), (3, 4)])

    @pytest.mark.unit
    def test_suicide_move_prevention(self, line5):
        board = board_from_dict(line5, {1: BLUE, 3: BLUE})
        assert not is_legal_move(line5, board, 2, RED)
        assert apply_move(line5, board, 2, RED) is None
        assert 2 not in legal_moves(line5, board, RED)

    @pytest.mark.unit
    def test_connecting_move_is_legal(self, line5):
        board = board_from_dict(line5, {1: BLUE, 3: BLUE})
        assert is_legal_move(line5, board, 2, BLUE)

    @pytest.mark.unit
    def test_suicide_allowed_if_captures(self, star_graph):
        board = board_from_dict(star_graph, {1: BLUE, 2: BLUE, 3: BLUE, 4: BLUE})
        assert is_legal_move(star_graph, board, 0, RED)
        new, captured = apply_move(star_graph, board, 0, RED)
        assert captured == 4
        assert np.count_nonzero(new == BLUE) == 0

    @pytest.mark.unit
    def test_occupied_node_illegal(self, path_graph):
        board = board_from_dict(path_graph, {1: RED})
        assert not is_legal_move(path_graph, board, 1, BLUE)
        assert not is_legal_move(path_graph, board, 1, RED)

    @pytest.mark.unit
    def test_out_of_range_node_illegal(self, path_graph):
        board = new_board(path_graph)
        assert not is_legal_move(path_graph, board, 4, BLUE)
        assert not is_legal_move(path_graph, board, -1, BLUE)

    @pytest.mark.unit
    def test_isolated_node_rejects_every_stone(self, isolated_node_graph):
        board = new_board(isolated_node_graph)
        assert not is_legal_move(isolated_node_graph, board, 0, BLUE)
        assert not is_legal_move(isolated_node_graph, board, 0, RED)
        assert legal_moves(isolated_node_graph, board, BLUE) == []


class TestTerritory:
    """Test territory scoring."""

    @pytest.mark.unit
    def test_empty_board_is_neutral(self, small_lattice, empty_small_board):
        territory = score_territory(small_lattice, empty_small_board)
        assert territory.scores == {BLUE: 0, RED: 0, NEUTRAL: small_lattice.num_nodes}
        assert set(territory.ownership.values()) == {NEUTRAL}

    @pytest.mark.unit
    def test_single_owner_regions(self, path_graph):
        board = board_from_dict(path_graph, {1: BLUE})
        territory = score_territory(path_graph, board)
        assert territory.scores == {BLUE: 3, RED: 0, NEUTRAL: 0}
        assert territory.ownership == {0: BLUE, 2: BLUE, 3: BLUE}

    @pytest.mark.unit
    def test_contested_region_is_neutral(self, path_graph):
        board = board_from_dict(path_graph, {1: BLUE, 3: RED})
        territory = score_territory(path_graph, board)
        assert territory.ownership == {0: BLUE, 2: NEUTRAL}
        assert territory.scores == {BLUE: 1, RED: 0, NEUTRAL: 1}

    @pytest.mark.unit
    def test_full_board_has_no_territory(self, path_graph):
        board = board_from_dict(path_graph, {0: BLUE, 1: BLUE, 2: RED, 3: RED})
        territory = score_territory(path_graph, board)
        assert territory.scores == {BLUE: 0, RED: 0, NEUTRAL: 0}
        assert territory.ownership == {}

    @pytest.mark.unit
    def test_isolated_empty_node_is_neutral(self):
        graph = BoardGraph(3, [(0, 1)])
        board = board_from_dict(graph, {0: RED})
        territory = score_territory(graph, board)
        assert territory.ownership == {1: RED, 2: NEUTRAL}

    @pytest.mark.integration
    def test_partition_and_idempotence(self, medium_lattice):
        for index, board in enumerate(play_random_game(medium_lattice, 60, seed=5)):
            if index % 10:
                continue
            first = score_territory(medium_lattice, board)
            second = score_territory(medium_lattice, board)
            assert first == second
            empty = set(np.flatnonzero(board == EMPTY).tolist())
            assert set(first.ownership) == empty
            assert sum(first.scores.values()) == len(empty)
            for owner in (BLUE, RED, NEUTRAL):
                assert first.scores[owner] == sum(1 for o in first.ownership.values() if o == owner)

    @pytest.mark.unit
    def test_to_dict(self, path_graph):
        board = board_from_dict(path_graph, {1: BLUE, 3: RED})
        data = score_territory(path_graph, board).to_dict()
        assert data['scores'] == {'blue': 1, 'red': 0, 'neutral': 1}
        assert data['ownership'] == {'0': 'blue', '2': 'neutral'}


class TestValidMoves:
    """Test valid move generation."""

    @pytest.mark.unit
    def test_empty_lattice_all_moves_legal(self, small_lattice, empty_small_board):
        assert legal_moves(small_lattice, empty_small_board, BLUE) == list(range(16))

    @pytest.mark.unit
    def test_occupied_nodes_excluded(self, small_lattice, empty_small_board):
        board, _ = apply_move(small_lattice, empty_small_board, 5, BLUE)
        board, _ = apply_move(small_lattice, board, 6, RED)
        moves = legal_moves(small_lattice, board, BLUE)
        assert len(moves) == 14
        assert 5 not in moves and 6 not in moves
