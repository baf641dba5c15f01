#!/usr/bin/env python3
"""
Bounded-degree adjacency tables.

Builds, for every atom, the list of bonded atoms and the list of bond positions
as fixed-width rows of MAX_VALENCE slots. Unused slots hold SENTINEL.
"""

import logging
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from .TopologyError import TopologyError, TopologyErrorKind
from .TopologyObjects import SENTINEL


# The valence model assumes at most 4 covalent partners per atom
MAX_VALENCE = 4

logger = logging.getLogger(__name__)


def canonicalize_bonds(bonds: Sequence[Sequence[int]], atom_count: int) -> List[Tuple[int, int]]:
    """
    Bring bonds into canonical (min, max) form and sort them.

    Parameters
    ----------
    bonds : Sequence[Sequence[int]]
        Pairs of 0-based atom indices, in any order
    atom_count : int
        Number of atoms in the system

    Returns
    -------
    List[Tuple[int, int]]
        Sorted canonical bonds

    Raises
    ------
    TopologyError
        If a bond is not a pair, references an atom out of range, bonds an
        atom to itself, or is listed twice
    """
    canonical = []
    seen = set()
    for bond_idx, bond in enumerate(bonds):
        if len(bond) != 2:
            raise TopologyError(f"Bond {bond_idx} must contain 2 atom indices, got {len(bond)}",
                                TopologyErrorKind.MALFORMED_INPUT)
        atom1, atom2 = int(bond[0]), int(bond[1])
        for atom in (atom1, atom2):
            if atom < 0 or atom >= atom_count:
                raise TopologyError(f"Bond {bond_idx} atom index {atom} out of range [0, {atom_count - 1}]",
                                    TopologyErrorKind.MALFORMED_INPUT)
        if atom1 == atom2:
            raise TopologyError(f"Bond {bond_idx} connects atom {atom1} to itself",
                                TopologyErrorKind.MALFORMED_INPUT)
        pair = (min(atom1, atom2), max(atom1, atom2))
        if pair in seen:
            raise TopologyError(f"Bond {bond_idx} between atoms {pair[0]} and {pair[1]} is duplicated",
                                TopologyErrorKind.MALFORMED_INPUT)
        seen.add(pair)
        canonical.append(pair)
    canonical.sort()
    return canonical


def build_adjacency(atom_count: int, bonds: Sequence[Tuple[int, int]]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the atom-to-bonds and atom-to-atoms maps.

    Slot k of row i in the atom-to-atoms map holds the k-th neighbor of atom i;
    the same slot of the atom-to-bonds map holds the position of the bond to
    that neighbor. Neighbors appear in the order the bonds are given, which is
    ascending when the bonds come from canonicalize_bonds.

    Parameters
    ----------
    atom_count : int
        Number of atoms
    bonds : Sequence[Tuple[int, int]]
        Bonds (0-based atom indices)

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        (atoms_to_bonds, atoms_to_atoms), both int32 arrays of shape (atom_count, 4)

    Raises
    ------
    TopologyError
        If a bond references an atom out of range, or an atom has more than
        MAX_VALENCE bonds
    """
    atoms_to_bonds = np.full((atom_count, MAX_VALENCE), SENTINEL, dtype=np.int32)
    atoms_to_atoms = np.full((atom_count, MAX_VALENCE), SENTINEL, dtype=np.int32)
    degrees = np.zeros(atom_count, dtype=np.int32)

    for bond_idx, (atom1, atom2) in enumerate(bonds):
        for atom, other in ((atom1, atom2), (atom2, atom1)):
            if atom < 0 or atom >= atom_count:
                raise TopologyError(f"Bond {bond_idx} atom index {atom} out of range [0, {atom_count - 1}]",
                                    TopologyErrorKind.MALFORMED_INPUT)
            lane = degrees[atom]
            if lane >= MAX_VALENCE:
                raise TopologyError(f"Atom {atom} has more than {MAX_VALENCE} bonds",
                                    TopologyErrorKind.UNSUPPORTED_TOPOLOGY,
                                    details={'atom': int(atom)})
            atoms_to_bonds[atom, lane] = bond_idx
            atoms_to_atoms[atom, lane] = other
            degrees[atom] += 1

    logger.debug(f"Built adjacency for {atom_count} atoms and {len(bonds)} bonds")
    return atoms_to_bonds, atoms_to_atoms


def neighbors(table: np.ndarray, atom: int) -> Iterator[int]:
    """Iterate over the occupied slots of an atom's row."""
    for value in table[atom]:
        if value == SENTINEL:
            continue
        yield int(value)


def build_neighbors_dict(atoms_to_atoms: np.ndarray) -> dict:
    """
    Build a neighbors dictionary from the atom-to-atoms map.

    Returns
    -------
    Dict[int, Set[int]]
        Dictionary mapping atom indices to sets of their bonded neighbors
    """
    return {atom: set(neighbors(atoms_to_atoms, atom)) for atom in range(len(atoms_to_atoms))}
