"""
Diamond cubic lattice boards.

Each cubic cell (x, y, z) holds two sites: an A site at index ``2 * cell`` and a
B site at ``2 * cell + 1`` shifted by a quarter cell along every axis. An A site
bonds tetrahedrally to the B site of its own cell and of the cells one step back
along x, y and z, so interior A sites have degree 4.
"""
from typing import List, Tuple

import numpy as np

from lattice_go import BoardGraph

SPACING = 2.0
B_OFFSET = 0.25


def cell_index(size: int, x: int, y: int, z: int) -> int:
    return x * size * size + y * size + z


def generate_diamond_lattice(size: int) -> Tuple[np.ndarray, List[Tuple[int, int]]]:
    """Points (centred on the origin) and edges for a ``size``^3 cell lattice"""
    if size < 1:
        raise ValueError(f"Lattice size must be at least 1, got {size}")

    points = np.zeros((2 * size ** 3, 3), dtype=np.float64)
    for x in range(size):
        for y in range(size):
            for z in range(size):
                a_index = 2 * cell_index(size, x, y, z)
                points[a_index] = (x * SPACING, y * SPACING, z * SPACING)
                points[a_index + 1] = ((x + B_OFFSET) * SPACING,
                                       (y + B_OFFSET) * SPACING,
                                       (z + B_OFFSET) * SPACING)
    points -= points.mean(axis=0)

    edges = []
    for x in range(size):
        for y in range(size):
            for z in range(size):
                a_index = 2 * cell_index(size, x, y, z)
                for nx, ny, nz in ((x, y, z), (x - 1, y, z), (x, y - 1, z), (x, y, z - 1)):
                    if 0 <= nx < size and 0 <= ny < size and 0 <= nz < size:
                        edges.append((a_index, 2 * cell_index(size, nx, ny, nz) + 1))
    return points, edges


def diamond_board_graph(size: int) -> BoardGraph:
    """Board graph for a ``size``^3 cell diamond lattice"""
    points, edges = generate_diamond_lattice(size)
    return BoardGraph(len(points), edges)
