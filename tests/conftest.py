"""Shared pytest fixtures and configuration for all tests."""

import pytest
import sys
import os
import random
import numpy as np

# Add parent directory to path so we can import modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lattice_go import BoardGraph, new_board
from diamond_lattice import diamond_board_graph


@pytest.fixture
def path_graph():
    """Fixture for the 4-node path 0-1-2-3."""
    return BoardGraph(4, [(0, 1), (1, 2), (2, 3)])


@pytest.fixture
def star_graph():
    """Fixture for a hub (node 0) with four leaves."""
    return BoardGraph(5, [(0, 1), (0, 2), (0, 3), (0, 4)])


@pytest.fixture
def ring_graph():
    """Fixture for a 6-node cycle."""
    return BoardGraph(6, [(i, (i + 1) % 6) for i in range(6)])


@pytest.fixture
def isolated_node_graph():
    """Fixture for a single node with no edges."""
    return BoardGraph(1, [])


@pytest.fixture
def small_lattice():
    """Diamond lattice with 2 cells per axis (16 nodes)."""
    return diamond_board_graph(2)


@pytest.fixture
def medium_lattice():
    """Diamond lattice with 3 cells per axis (54 nodes)."""
    return diamond_board_graph(3)


@pytest.fixture
def empty_small_board(small_lattice):
    return new_board(small_lattice)


@pytest.fixture
def random_seed():
    """Fixture to set random seeds for reproducibility."""
    seed = 42
    random.seed(seed)
    np.random.seed(seed)
    return seed
