#!/usr/bin/env python3
"""
Enumeration of angles and torsions.

Walks the atom-to-atoms map to depth 4 from every atom. Each angle and torsion
is recorded once, in its canonical traversal direction. The same walk measures,
for every atom, the shortest cycle returning to it; cycles of 3 or 4 atoms are
not supported by the force field and abort the enumeration.
"""

import logging
from typing import Dict, Tuple

import numpy as np

from .Adjacency import neighbors
from .TopologyError import TopologyError, TopologyErrorKind
from .TopologyObjects import DEFAULT_RING_TYPE


# Marker for a relation that has been discovered but not yet given an index
PENDING = -2

# Largest number of entries of any relation (indices are int32)
MAX_INDEX = np.iinfo(np.int32).max

# Smallest ring the force field supports
MIN_RING_SIZE = 5

logger = logging.getLogger(__name__)


def enumerate_topology(atoms_to_atoms: np.ndarray) -> Tuple[Dict[Tuple[int, int, int], int],
                                                            Dict[Tuple[int, int, int, int], int],
                                                            np.ndarray]:
    """
    Discover every angle and torsion of the bond graph.

    For each path a1-a2-a3 with a1 < a3 the angle (a1, a2, a3) is recorded.
    For each path a1-a2-a3-a4 with a4 not in (a1, a2) the torsion
    (a1, a2, a3, a4) is recorded when a2 > a3 (or a2 == a3 and a1 > a4), so
    that its mirror image (a4, a3, a2, a1) is never recorded separately.

    Parameters
    ----------
    atoms_to_atoms : np.ndarray
        Atom-to-atoms map, shape (N, 4), unused slots -1

    Returns
    -------
    Tuple[Dict, Dict, np.ndarray]
        (angles, torsions, ring_sizes). The dictionaries map canonical tuples
        to PENDING, in discovery order. ring_sizes holds, per atom, the
        length of the shortest cycle through it (6 when there is none of
        length 5 or less).

    Raises
    ------
    TopologyError
        If any atom belongs to a 3- or 4-membered ring
    """
    atom_count = len(atoms_to_atoms)
    angles: Dict[Tuple[int, int, int], int] = {}
    torsions: Dict[Tuple[int, int, int, int], int] = {}
    ring_sizes = np.full(atom_count, DEFAULT_RING_TYPE, dtype=np.uint8)

    for atom1 in range(atom_count):
        ring_size = DEFAULT_RING_TYPE

        for atom2 in neighbors(atoms_to_atoms, atom1):
            for atom3 in neighbors(atoms_to_atoms, atom2):
                if atom3 == atom1:
                    continue
                if atom1 < atom3:
                    angles[(atom1, atom2, atom3)] = PENDING

                for atom4 in neighbors(atoms_to_atoms, atom3):
                    if atom4 == atom2:
                        continue
                    if atom4 == atom1:
                        ring_size = min(ring_size, 3)
                        continue
                    if atom2 > atom3 or (atom2 == atom3 and atom1 > atom4):
                        torsions[(atom1, atom2, atom3, atom4)] = PENDING
                    ring_size = min(ring_size, _closure_size(atoms_to_atoms, atom1, atom2, atom3, atom4))

        ring_sizes[atom1] = ring_size
        if ring_size < MIN_RING_SIZE:
            raise TopologyError(f"Atom {atom1} is part of a {ring_size}-membered ring. "
                                "3- and 4-membered rings are not supported.",
                                TopologyErrorKind.UNSUPPORTED_TOPOLOGY,
                                details={'atom': atom1, 'ring_size': int(ring_size)})

    logger.debug(f"Enumerated {len(angles)} angles and {len(torsions)} torsions")
    return angles, torsions, ring_sizes


def _closure_size(atoms_to_atoms: np.ndarray, atom1: int, atom2: int, atom3: int, atom4: int) -> int:
    """
    Length of the shortest cycle closing the path atom1-atom2-atom3-atom4
    back to atom1 within one or two more bonds, or DEFAULT_RING_TYPE.
    """
    map4 = atoms_to_atoms[atom4]
    if atom1 in map4:
        return 4
    for atom5 in neighbors(atoms_to_atoms, atom4):
        if atom5 == atom2 or atom5 == atom3:
            continue
        if atom1 in atoms_to_atoms[atom5]:
            return 5
    return DEFAULT_RING_TYPE


def assign_dense_indices(mapping: Dict[Tuple[int, ...], int]) -> list:
    """
    Give every pending entry its position in insertion order.

    Returns
    -------
    list
        The keys of the mapping, in insertion order
    """
    indices = list(mapping.keys())
    for position, key in enumerate(indices):
        mapping[key] = position
    return indices


def check_index_range(**counts: int) -> None:
    """
    Verify that every relation count fits the int32 index space.

    Raises
    ------
    TopologyError
        If any count reaches MAX_INDEX
    """
    for name, count in counts.items():
        if count >= MAX_INDEX:
            raise TopologyError(f"Too many {name}: {count} exceeds the index range",
                                TopologyErrorKind.INTERNAL_INCONSISTENCY,
                                details={name: count})
