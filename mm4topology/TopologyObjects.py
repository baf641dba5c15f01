#!/usr/bin/env python3
"""
Canonical Topology Collections

This module provides the containers for atoms and for the bonded relations
derived from them (bonds, angles, torsions and 5-membered rings), together with
the functions that bring a relation into its canonical form.

Every relation collection stores:
    - indices: canonical tuples in insertion order
    - map: canonical tuple -> position in indices
    - ring_types: smallest ring size (5 or 6) each relation belongs to

Canonical forms:
    - bond (a, b): a < b
    - angle (a, b, c): b is the central atom, a < c
    - torsion (a, b, c, d): (b, c) is the central bond, b > c (or b == c and a > d)
    - ring: 8 slots, 5 atoms starting at the smallest index, traversed towards
      the larger of its two neighbors, 3 trailing sentinels

Classes:
    Atoms: Per-atom data
    Bonds, Angles, Torsions, Rings: Canonical relation collections
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


# Value for unused slots in fixed-width index tuples
SENTINEL = -1

# Number of slots in a ring tuple, and number of them holding atoms
RING_SLOTS = 8
RING_SIZE = 5

# Ring type of anything that is not part of a 5-membered ring
DEFAULT_RING_TYPE = 6


# =============================================================================
# Canonical forms
# =============================================================================

def sort_bond(bond: Sequence[int]) -> Tuple[int, int]:
    """Return the bond as (min, max)."""
    a, b = int(bond[0]), int(bond[1])
    return (a, b) if a <= b else (b, a)


def sort_angle(angle: Sequence[int]) -> Tuple[int, int, int]:
    """Return the angle with its first atom index lower than its last."""
    a, b, c = int(angle[0]), int(angle[1]), int(angle[2])
    return (a, b, c) if a <= c else (c, b, a)


def sort_torsion(torsion: Sequence[int]) -> Tuple[int, int, int, int]:
    """
    Return the torsion in the traversal direction used for enumeration.

    Of the two directions of a torsion, the canonical one has its second atom
    greater than its third; if those are equal, its first atom greater than
    its last.
    """
    a, b, c, d = (int(x) for x in torsion)
    if b > c or (b == c and a > d):
        return (a, b, c, d)
    return (d, c, b, a)


def canonical_ring(atoms: Sequence[int]) -> Tuple[int, ...]:
    """
    Canonicalize a cyclic path of 5 atoms.

    The smallest atom index (anchor) goes to slot 0. The traversal direction
    is the one where the atom following the anchor is greater than the atom
    preceding it. Slots 5-7 hold the sentinel.

    Parameters
    ----------
    atoms : Sequence[int]
        The 5 atoms in the order they were discovered along the cycle

    Returns
    -------
    Tuple[int, ...]
        8-slot canonical ring tuple
    """
    if len(atoms) != RING_SIZE:
        raise ValueError(f"A ring must contain {RING_SIZE} atoms, got {len(atoms)}")
    array = [int(a) for a in atoms]

    def wrap(index: int) -> int:
        return (index + RING_SIZE) % RING_SIZE

    min_index = min(range(RING_SIZE), key=lambda i: array[i])
    previous = array[wrap(min_index - 1)]
    following = array[wrap(min_index + 1)]
    increment = 1 if following > previous else -1

    output = [SENTINEL] * RING_SLOTS
    for lane in range(RING_SIZE):
        output[lane] = array[wrap(min_index + lane * increment)]
    return tuple(output)


# =============================================================================
# Collections
# =============================================================================

class Atoms:
    """
    Per-atom data.

    Attributes
    ----------
    atomic_numbers : np.ndarray
        Number of protons in each atom's nucleus (uint8)
    ring_types : np.ndarray
        Smallest ring size each atom participates in (uint8)
    masses : np.ndarray
        Atomic masses in amu, after hydrogen mass repartitioning (float64)
    """

    def __init__(self, atomic_numbers: Optional[Sequence[int]] = None):
        atomic_numbers = [] if atomic_numbers is None else list(atomic_numbers)
        self.atomic_numbers = np.asarray(atomic_numbers, dtype=np.uint8)
        self.ring_types = np.full(len(atomic_numbers), DEFAULT_RING_TYPE, dtype=np.uint8)
        self.masses = np.zeros(len(atomic_numbers), dtype=np.float64)

    @property
    def count(self) -> int:
        """Number of atoms."""
        return len(self.atomic_numbers)

    @property
    def indices(self) -> range:
        """Range of atom indices."""
        return range(self.count)

    def append(self, other: 'Atoms') -> None:
        """Append the atoms of another collection after these ones."""
        self.atomic_numbers = np.concatenate([self.atomic_numbers, other.atomic_numbers])
        self.ring_types = np.concatenate([self.ring_types, other.ring_types])
        self.masses = np.concatenate([self.masses, other.masses])


class _RelationCollection:
    """
    Ordered set of canonical atom-index tuples with a parallel ring-type array.

    Subclasses define the tuple width and the canonicalization function.
    """

    WIDTH = 0

    def __init__(self):
        self.indices: List[Tuple[int, ...]] = []
        self.map: Dict[Tuple[int, ...], int] = {}
        self.ring_types = np.zeros(0, dtype=np.uint8)

    @staticmethod
    def canonicalize(relation: Sequence[int]) -> Tuple[int, ...]:
        raise NotImplementedError

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self):
        return iter(self.indices)

    def __contains__(self, relation) -> bool:
        return self.canonicalize(relation) in self.map

    def set_indices(self, indices: List[Tuple[int, ...]]) -> None:
        """
        Replace the content with the given canonical tuples.

        Positions in the map follow the order of the list, and every ring
        type is reset to the default.
        """
        self.indices = list(indices)
        self.map = {relation: position for position, relation in enumerate(self.indices)}
        self.ring_types = np.full(len(self.indices), DEFAULT_RING_TYPE, dtype=np.uint8)

    def index_of(self, relation: Sequence[int]) -> Optional[int]:
        """Position of the relation in any of its encodings, or None."""
        return self.map.get(self.canonicalize(relation))

    def as_array(self) -> np.ndarray:
        """The canonical tuples as an (n, WIDTH) int32 array."""
        return np.asarray(self.indices, dtype=np.int32).reshape(-1, self.WIDTH)

    @staticmethod
    def _offset(relation: Tuple[int, ...], atom_offset: int) -> Tuple[int, ...]:
        return tuple(a + atom_offset if a != SENTINEL else SENTINEL for a in relation)

    def append(self, other: '_RelationCollection', atom_offset: int) -> None:
        """
        Append the relations of another collection, shifting its atom indices.

        Parameters
        ----------
        other : _RelationCollection
            Collection of the same kind, indexed from atom 0
        atom_offset : int
            Number of atoms preceding the other collection's atoms
        """
        position_offset = len(self.indices)
        # Snapshot first: other may be this collection.
        relations = list(other.indices)
        ring_types = other.ring_types.copy()
        for position, relation in enumerate(relations):
            shifted = self._offset(relation, atom_offset)
            self.indices.append(shifted)
            self.map[shifted] = position + position_offset
        self.ring_types = np.concatenate([self.ring_types, ring_types])

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return (self.indices == other.indices
                and self.map == other.map
                and np.array_equal(self.ring_types, other.ring_types))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.indices)} entries)"


class Bonds(_RelationCollection):
    """Parameters for a group of 2 atoms."""
    WIDTH = 2

    @staticmethod
    def canonicalize(relation):
        return sort_bond(relation)


class Angles(_RelationCollection):
    """Parameters for a group of 3 atoms."""
    WIDTH = 3

    @staticmethod
    def canonicalize(relation):
        return sort_angle(relation)


class Torsions(_RelationCollection):
    """Parameters for a group of 4 atoms."""
    WIDTH = 4

    @staticmethod
    def canonicalize(relation):
        return sort_torsion(relation)


class Rings(_RelationCollection):
    """
    Parameters for a group of 5 atoms forming a ring.

    Ring tuples have 8 slots; the last 3 always hold the sentinel. Ring types
    are the number of atoms in the ring.
    """
    WIDTH = RING_SLOTS

    @staticmethod
    def canonicalize(relation):
        atoms = [a for a in relation if a != SENTINEL]
        return canonical_ring(atoms)

    def set_indices(self, indices):
        super().set_indices(indices)
        self.ring_types = np.full(len(self.indices), RING_SIZE, dtype=np.uint8)
