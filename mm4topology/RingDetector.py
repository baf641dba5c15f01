#!/usr/bin/env python3
"""
Detection of 5-membered rings.

A torsion a1-a2-a3-a4 lies on a 5-membered ring when some neighbor a5 of a4
is also a neighbor of a1. Each ring is found from several torsions; rings are
collected in canonical form so every ring is reported once.
"""

import logging
from typing import Dict, Iterable, Sequence, Tuple

import numpy as np

from .Adjacency import build_neighbors_dict
from .TopologyEnumerator import PENDING
from .TopologyObjects import canonical_ring


logger = logging.getLogger(__name__)


def detect_rings(torsions: Iterable[Sequence[int]],
                 atoms_to_atoms: np.ndarray) -> Dict[Tuple[int, ...], int]:
    """
    Find all 5-membered rings closed by a torsion and one more atom.

    Parameters
    ----------
    torsions : Iterable[Sequence[int]]
        Torsions (a1, a2, a3, a4)
    atoms_to_atoms : np.ndarray
        Atom-to-atoms map, shape (N, 4), unused slots -1

    Returns
    -------
    Dict[Tuple[int, ...], int]
        Canonical 8-slot ring tuples mapped to PENDING, in discovery order
    """
    rings: Dict[Tuple[int, ...], int] = {}
    neighbor_sets = build_neighbors_dict(atoms_to_atoms)
    for torsion in torsions:
        atom1, atom2, atom3, atom4 = (int(a) for a in torsion)
        map1 = neighbor_sets[atom1] - {atom2}

        for atom5 in sorted(neighbor_sets[atom4]):
            if atom5 in (atom1, atom2, atom3):
                continue
            if atom5 not in map1:
                continue
            ring = canonical_ring([atom1, atom2, atom3, atom4, atom5])
            if ring not in rings:
                rings[ring] = PENDING

    logger.debug(f"Detected {len(rings)} 5-membered rings")
    return rings
