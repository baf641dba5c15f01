#!/usr/bin/env python3
"""
Partition of atoms into rigid bodies.

A rigid body is a connected component of the bond graph. The simulation engine
requires the atoms of each rigid body to occupy one contiguous range of the
atom list, and the ranges to cover every atom exactly once.

Classes:
    AtomGroups: Disjoint-set union over atoms, tracking each group's members
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from .TopologyError import TopologyError, TopologyErrorKind


logger = logging.getLogger(__name__)


class AtomGroups:
    """
    Disjoint-set union over atom indices.

    Every atom starts in its own group. Merging two groups moves the member
    list of the smaller one into the larger one and leaves a forwarding
    pointer (parent) from the absorbed group to the surviving group.

    Attributes
    ----------
    parent : List[int]
        Forwarding pointer of each group; a group is a root when it points
        to itself
    members : List[Optional[List[int]]]
        Atom indices of each root group; None for absorbed groups
    """

    def __init__(self, atom_count: int):
        self.parent = list(range(atom_count))
        self.members = [[i] for i in range(atom_count)]

    def find(self, atom: int) -> int:
        """Return the root group of an atom, compressing the path to it."""
        root = atom
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[atom] != root:
            self.parent[atom], atom = root, self.parent[atom]
        return root

    def union(self, atom1: int, atom2: int) -> int:
        """
        Merge the groups of two atoms.

        The smaller group is absorbed; on equal sizes the group of atom2 is
        absorbed into the group of atom1.

        Returns
        -------
        int
            Root of the merged group
        """
        root1 = self.find(atom1)
        root2 = self.find(atom2)
        if root1 == root2:
            return root1
        if len(self.members[root1]) < len(self.members[root2]):
            root1, root2 = root2, root1
        self.members[root1].extend(self.members[root2])
        self.members[root2] = None
        self.parent[root2] = root1
        return root1

    def roots(self) -> List[int]:
        """Groups that have not been absorbed."""
        return [i for i, p in enumerate(self.parent) if p == i]


def partition_rigid_bodies(atom_count: int,
                           bonds: Sequence[Tuple[int, int]]) -> Tuple[List[range], np.ndarray]:
    """
    Group atoms into rigid bodies and validate their layout.

    Parameters
    ----------
    atom_count : int
        Number of atoms
    bonds : Sequence[Tuple[int, int]]
        Bonds (0-based atom indices)

    Returns
    -------
    Tuple[List[range], np.ndarray]
        Rigid-body atom ranges sorted by lower bound, and the int32 map from
        atom index to rigid-body index

    Raises
    ------
    TopologyError
        If a rigid body's atoms are not contiguous, or the rigid bodies do not
        cover all atoms exactly once
    """
    groups = AtomGroups(atom_count)
    for atom1, atom2 in bonds:
        groups.union(int(atom1), int(atom2))

    # Check that each group is internally contiguous.
    ranges = []
    for root in groups.roots():
        indices = sorted(groups.members[root])
        for previous, current in zip(indices, indices[1:]):
            if previous + 1 != current:
                raise TopologyError(f"Rigid body containing atom {indices[0]} is not contiguous: "
                                    f"atom {previous} is followed by atom {current}",
                                    TopologyErrorKind.MALFORMED_INPUT,
                                    details={'atoms': indices})
        ranges.append(range(indices[0], indices[-1] + 1))

    # Check that the ranges span all the atoms, with a 1-to-1 mapping.
    ranges.sort(key=lambda r: r.start)
    if atom_count > 0:
        if ranges[0].start != 0 or ranges[-1].stop != atom_count:
            raise TopologyError("Rigid bodies did not cover the entire system",
                                TopologyErrorKind.MALFORMED_INPUT)
        for previous, current in zip(ranges, ranges[1:]):
            if previous.stop != current.start:
                raise TopologyError(f"Rigid bodies {previous} and {current} do not abut",
                                    TopologyErrorKind.MALFORMED_INPUT)

    atoms_to_rigid_bodies = np.full(atom_count, -1, dtype=np.int32)
    for rigid_body_id, rigid_body in enumerate(ranges):
        atoms_to_rigid_bodies[rigid_body.start:rigid_body.stop] = rigid_body_id

    logger.debug(f"Partitioned {atom_count} atoms into {len(ranges)} rigid bodies")
    return ranges, atoms_to_rigid_bodies
