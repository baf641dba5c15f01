#!/usr/bin/env python3
"""
Unit tests for angle and torsion enumeration, ring detection and ring types.
"""

import unittest
import numpy as np
import sys
from pathlib import Path

# Add parent directory to path for package imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from molecules import (
    BUTANE, CYCLOPENTANE, CYCLOHEXANE, BICYCLOOCTANE,
    SUBSTITUTED_CYCLOPENTANE, CYCLOBUTANE, CYCLOPROPANE
)
from mm4topology.Adjacency import build_adjacency, canonicalize_bonds
from mm4topology.RingDetector import detect_rings
from mm4topology.RingTypes import assign_ring_types
from mm4topology.TopologyEnumerator import (
    MAX_INDEX, PENDING,
    assign_dense_indices, check_index_range, enumerate_topology
)
from mm4topology.TopologyError import TopologyError, TopologyErrorKind
from mm4topology.TopologyObjects import (
    Atoms, Bonds, Angles, Torsions, Rings,
    SENTINEL, canonical_ring, sort_angle, sort_torsion
)


def _adjacency(molecule):
    atomic_numbers, bonds = molecule
    bonds = canonicalize_bonds(bonds, len(atomic_numbers))
    _, atoms_to_atoms = build_adjacency(len(atomic_numbers), bonds)
    return bonds, atoms_to_atoms


class TestEnumerateTopology(unittest.TestCase):
    """Test enumerate_topology function."""

    def test_butane(self):
        """Test angles and the single torsion of a 4-atom chain."""
        _, atoms_to_atoms = _adjacency(BUTANE)
        angles, torsions, ring_sizes = enumerate_topology(atoms_to_atoms)
        self.assertEqual(list(angles), [(0, 1, 2), (1, 2, 3)])
        self.assertEqual(list(torsions), [(3, 2, 1, 0)])
        self.assertTrue(all(v == PENDING for v in angles.values()))
        np.testing.assert_array_equal(ring_sizes, [6, 6, 6, 6])

    def test_single_bond(self):
        """Test that two bonded atoms have no angles or torsions."""
        _, atoms_to_atoms = _adjacency(([1, 1], [(0, 1)]))
        angles, torsions, _ = enumerate_topology(atoms_to_atoms)
        self.assertEqual(len(angles), 0)
        self.assertEqual(len(torsions), 0)

    def test_no_atoms(self):
        angles, torsions, ring_sizes = enumerate_topology(np.zeros((0, 4), dtype=np.int32))
        self.assertEqual(len(angles), 0)
        self.assertEqual(len(torsions), 0)
        self.assertEqual(len(ring_sizes), 0)

    def test_counts_in_rings(self):
        """Test relation counts of 5- and 6-membered rings."""
        _, atoms_to_atoms = _adjacency(CYCLOPENTANE)
        angles, torsions, ring_sizes = enumerate_topology(atoms_to_atoms)
        self.assertEqual(len(angles), 5)
        self.assertEqual(len(torsions), 5)
        np.testing.assert_array_equal(ring_sizes, [5] * 5)

        _, atoms_to_atoms = _adjacency(CYCLOHEXANE)
        angles, torsions, ring_sizes = enumerate_topology(atoms_to_atoms)
        self.assertEqual(len(angles), 6)
        self.assertEqual(len(torsions), 6)
        np.testing.assert_array_equal(ring_sizes, [6] * 6)

    def test_canonical_and_unique(self):
        """Test that only canonical forms are recorded, each once."""
        _, atoms_to_atoms = _adjacency(SUBSTITUTED_CYCLOPENTANE)
        angles, torsions, _ = enumerate_topology(atoms_to_atoms)
        for angle in angles:
            self.assertEqual(sort_angle(angle), angle)
            self.assertNotIn(angle[::-1], angles)
        for torsion in torsions:
            self.assertEqual(sort_torsion(torsion), torsion)
            self.assertNotIn(torsion[::-1], torsions)

    def test_every_path_is_covered(self):
        """Test that every 3- and 4-atom path appears in one direction."""
        _, atoms_to_atoms = _adjacency(SUBSTITUTED_CYCLOPENTANE)
        angles, torsions, _ = enumerate_topology(atoms_to_atoms)
        neighbor_lists = [[int(a) for a in row if a != SENTINEL] for row in atoms_to_atoms]
        for a2 in range(len(neighbor_lists)):
            for a1 in neighbor_lists[a2]:
                for a3 in neighbor_lists[a2]:
                    if a1 == a3:
                        continue
                    self.assertIn(sort_angle((a1, a2, a3)), angles)
                    for a4 in neighbor_lists[a3]:
                        if a4 in (a1, a2):
                            continue
                        self.assertIn(sort_torsion((a1, a2, a3, a4)), torsions)

    def test_four_membered_ring_rejected(self):
        _, atoms_to_atoms = _adjacency(CYCLOBUTANE)
        with self.assertRaises(TopologyError) as cm:
            enumerate_topology(atoms_to_atoms)
        self.assertEqual(cm.exception.kind, TopologyErrorKind.UNSUPPORTED_TOPOLOGY)
        self.assertEqual(cm.exception.json_error['ERROR_DETAILS']['ring_size'], 4)

    def test_three_membered_ring_rejected(self):
        _, atoms_to_atoms = _adjacency(CYCLOPROPANE)
        with self.assertRaises(TopologyError) as cm:
            enumerate_topology(atoms_to_atoms)
        self.assertEqual(cm.exception.kind, TopologyErrorKind.UNSUPPORTED_TOPOLOGY)
        self.assertEqual(cm.exception.json_error['ERROR_DETAILS']['ring_size'], 3)


class TestDenseIndices(unittest.TestCase):
    """Test index assignment helpers."""

    def test_assign_dense_indices(self):
        mapping = {(2, 1, 0): PENDING, (0, 1, 3): PENDING}
        keys = assign_dense_indices(mapping)
        self.assertEqual(keys, [(2, 1, 0), (0, 1, 3)])
        self.assertEqual(mapping, {(2, 1, 0): 0, (0, 1, 3): 1})

    def test_check_index_range(self):
        check_index_range(angles=10, torsions=MAX_INDEX - 1)
        with self.assertRaises(TopologyError) as cm:
            check_index_range(torsions=MAX_INDEX)
        self.assertEqual(cm.exception.kind, TopologyErrorKind.INTERNAL_INCONSISTENCY)


class TestDetectRings(unittest.TestCase):
    """Test detect_rings function."""

    def test_cyclopentane(self):
        """Test that the ring is found once, from several torsions."""
        _, atoms_to_atoms = _adjacency(CYCLOPENTANE)
        _, torsions, _ = enumerate_topology(atoms_to_atoms)
        rings = detect_rings(torsions.keys(), atoms_to_atoms)
        self.assertEqual(list(rings), [(0, 4, 3, 2, 1, SENTINEL, SENTINEL, SENTINEL)])

    def test_no_ring(self):
        for molecule in (BUTANE, CYCLOHEXANE):
            _, atoms_to_atoms = _adjacency(molecule)
            _, torsions, _ = enumerate_topology(atoms_to_atoms)
            self.assertEqual(len(detect_rings(torsions.keys(), atoms_to_atoms)), 0)

    def test_fused_rings(self):
        """Test that two rings sharing a bond are both found."""
        _, atoms_to_atoms = _adjacency(BICYCLOOCTANE)
        _, torsions, _ = enumerate_topology(atoms_to_atoms)
        rings = detect_rings(torsions.keys(), atoms_to_atoms)
        self.assertEqual(len(rings), 2)
        self.assertIn(canonical_ring([0, 1, 2, 3, 4]), rings)
        self.assertIn(canonical_ring([3, 4, 5, 6, 7]), rings)

    def test_substituents_not_in_ring(self):
        _, atoms_to_atoms = _adjacency(SUBSTITUTED_CYCLOPENTANE)
        _, torsions, _ = enumerate_topology(atoms_to_atoms)
        rings = detect_rings(torsions.keys(), atoms_to_atoms)
        self.assertEqual(list(rings), [canonical_ring([0, 1, 2, 3, 4])])


class TestAssignRingTypes(unittest.TestCase):
    """Test assign_ring_types function."""

    def _collections(self, molecule):
        bonds_list, atoms_to_atoms = _adjacency(molecule)
        angles_map, torsions_map, _ = enumerate_topology(atoms_to_atoms)
        rings_map = detect_rings(torsions_map.keys(), atoms_to_atoms)
        atoms = Atoms(molecule[0])
        bonds, angles, torsions, rings = Bonds(), Angles(), Torsions(), Rings()
        bonds.set_indices(bonds_list)
        angles.set_indices(assign_dense_indices(angles_map))
        torsions.set_indices(assign_dense_indices(torsions_map))
        rings.set_indices(assign_dense_indices(rings_map))
        return atoms, bonds, angles, torsions, rings

    def test_cyclopentane_all_five(self):
        atoms, bonds, angles, torsions, rings = self._collections(CYCLOPENTANE)
        assign_ring_types(atoms, bonds, angles, torsions, rings)
        for collection in (atoms, bonds, angles, torsions):
            np.testing.assert_array_equal(collection.ring_types, [5] * len(collection.ring_types))

    def test_cyclohexane_all_six(self):
        atoms, bonds, angles, torsions, rings = self._collections(CYCLOHEXANE)
        assign_ring_types(atoms, bonds, angles, torsions, rings)
        for collection in (atoms, bonds, angles, torsions):
            np.testing.assert_array_equal(collection.ring_types, [6] * len(collection.ring_types))

    def test_substituents_keep_six(self):
        """Test that only relations lying inside the ring get type 5."""
        atoms, bonds, angles, torsions, rings = self._collections(SUBSTITUTED_CYCLOPENTANE)
        assign_ring_types(atoms, bonds, angles, torsions, rings)
        np.testing.assert_array_equal(atoms.ring_types, [5, 5, 5, 5, 5, 6, 6, 6])
        ring_atoms = {0, 1, 2, 3, 4}
        for collection in (bonds, angles, torsions):
            for relation, ring_type in zip(collection.indices, collection.ring_types):
                inside = set(relation) <= ring_atoms
                self.assertEqual(int(ring_type), 5 if inside else 6, relation)

    def test_missing_torsion_is_inconsistent(self):
        """Test that a ring without its torsions is reported."""
        atoms, bonds, angles, _, rings = self._collections(CYCLOPENTANE)
        with self.assertRaises(TopologyError) as cm:
            assign_ring_types(atoms, bonds, angles, Torsions(), rings)
        self.assertEqual(cm.exception.kind, TopologyErrorKind.INTERNAL_INCONSISTENCY)

    def test_resets_previous_types(self):
        atoms, bonds, angles, torsions, rings = self._collections(BUTANE)
        atoms.ring_types[:] = 5
        assign_ring_types(atoms, bonds, angles, torsions, rings)
        np.testing.assert_array_equal(atoms.ring_types, [6, 6, 6, 6])


if __name__ == '__main__':
    unittest.main()
