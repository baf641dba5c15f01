#!/usr/bin/env python3
"""
Force Field Parameters

This module provides the Parameters class, which derives the complete bonded
topology of a system from its atomic numbers and covalent bonds: canonical
bonds, angles, torsions and 5-membered rings, ring types, nonbonded
exceptions, atomic masses and the partition into rigid bodies.

Classes:
    LevelOfTheory: Level of theory used for simulation
    ParametersDescriptor: Configuration for a set of parameters
    Parameters: Topology and per-atom data consumed by the simulation engine
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
import openmm.unit as unit
from openmm.app import Element

from .Adjacency import build_adjacency, canonicalize_bonds
from .RigidBodies import partition_rigid_bodies
from .RingDetector import detect_rings
from .RingTypes import assign_ring_types
from .TopologyEnumerator import assign_dense_indices, check_index_range, enumerate_topology
from .TopologyError import TopologyError, TopologyErrorKind
from .TopologyObjects import Atoms, Bonds, Angles, Torsions, Rings, SENTINEL


# Mass (amu) moved from a heavy atom to each hydrogen bonded to it
DEFAULT_HYDROGEN_MASS_REPARTITIONING = 1.0

# Largest atomic number known to the element table
MAX_ATOMIC_NUMBER = 118

logger = logging.getLogger(__name__)


class LevelOfTheory(Enum):
    """Level of theory used for simulation."""
    MOLECULAR_MECHANICS = "molecularMechanics"
    RIGID_BODY = "rigidBody"


@dataclass
class ParametersDescriptor:
    """
    A configuration for a set of force field parameters.

    Attributes
    ----------
    atomic_numbers : Optional[List[int]]
        Required. The number of protons in each atom's nucleus.
    bonds : Optional[List[Tuple[int, int]]]
        Required. Pairs of 0-based atom indices representing sigma bonds.
        The atoms of each rigid body (connected component) must be contiguous
        in the atom list, otherwise creating the parameters fails.
    hydrogen_mass_repartitioning : float
        Mass (amu) to move from a substituent atom to each covalently
        bonded hydrogen. The default is 1 amu.
    level_of_theory : LevelOfTheory
        Only MOLECULAR_MECHANICS is supported.
    """
    atomic_numbers: Optional[List[int]] = None
    bonds: Optional[List[Tuple[int, int]]] = None
    hydrogen_mass_repartitioning: float = DEFAULT_HYDROGEN_MASS_REPARTITIONING
    level_of_theory: LevelOfTheory = field(default=LevelOfTheory.MOLECULAR_MECHANICS)


class Parameters:
    """
    A set of force field parameters.

    The constructor either builds the whole topology or raises TopologyError;
    there is no partially built state. Afterwards the object is only changed
    by append().

    Attributes
    ----------
    atoms : Atoms
        Parameters for one atom
    bonds : Bonds
        Parameters for a group of 2 atoms
    angles : Angles
        Parameters for a group of 3 atoms
    torsions : Torsions
        Parameters for a group of 4 atoms
    rings : Rings
        Parameters for a group of 5 atoms
    level_of_theory : LevelOfTheory
        The level of theory used for simulation
    rigid_bodies : List[range]
        Atom index range of each rigid body
    atoms_to_rigid_bodies_map : np.ndarray
        Rigid-body index of each atom
    nonbonded_exceptions_13 : np.ndarray
        Atom pairs excluded from nonbonded interactions, shape (n, 2)
    nonbonded_exceptions_14 : np.ndarray
        Atom pairs with reduced nonbonded interactions, shape (n, 2)
    atoms_to_bonds_map : np.ndarray
        Bond positions per atom, shape (N, 4), unused slots -1
    atoms_to_atoms_map : np.ndarray
        Bonded atoms per atom, shape (N, 4), unused slots -1
    """

    def __init__(self, descriptor: ParametersDescriptor):
        """
        Create a set of parameters using the specified configuration.

        Parameters
        ----------
        descriptor : ParametersDescriptor
            Atoms, bonds and simulation settings

        Raises
        ------
        TopologyError
            If the descriptor is incomplete or invalid, or the bonding
            topology is not supported
        """
        if descriptor.atomic_numbers is None or descriptor.bonds is None:
            raise TopologyError("Descriptor did not have the required properties.",
                                TopologyErrorKind.MALFORMED_INPUT)
        if descriptor.level_of_theory != LevelOfTheory.MOLECULAR_MECHANICS:
            raise TopologyError(f"Unsupported level of theory: {descriptor.level_of_theory}",
                                TopologyErrorKind.MALFORMED_INPUT)
        self.level_of_theory = descriptor.level_of_theory

        atomic_numbers = [int(z) for z in descriptor.atomic_numbers]
        for atom_idx, z in enumerate(atomic_numbers):
            if z < 1 or z > MAX_ATOMIC_NUMBER:
                raise TopologyError(f"Atom {atom_idx} has invalid atomic number {z}",
                                    TopologyErrorKind.MALFORMED_INPUT)

        self.atoms = Atoms(atomic_numbers)
        self.bonds = Bonds()
        self.angles = Angles()
        self.torsions = Torsions()
        self.rings = Rings()

        # Topology
        self.bonds.set_indices(canonicalize_bonds(descriptor.bonds, self.atoms.count))
        self.atoms_to_bonds_map, self.atoms_to_atoms_map = build_adjacency(
            self.atoms.count, self.bonds.indices)
        self._create_topology()
        self.rigid_bodies, self.atoms_to_rigid_bodies_map = partition_rigid_bodies(
            self.atoms.count, self.bonds.indices)

        # Atom parameters
        self._create_masses(descriptor.hydrogen_mass_repartitioning)
        self._create_nonbonded_exceptions()

        logger.debug(f"Created parameters: {self.atoms.count} atoms, {len(self.bonds)} bonds, "
                     f"{len(self.angles)} angles, {len(self.torsions)} torsions, "
                     f"{len(self.rings)} rings, {len(self.rigid_bodies)} rigid bodies")

    @classmethod
    def from_data(cls, atomic_numbers: Sequence[int],
                  bonds: Sequence[Tuple[int, int]],
                  hydrogen_mass_repartitioning: float = DEFAULT_HYDROGEN_MASS_REPARTITIONING) -> 'Parameters':
        """
        Create parameters from raw data.

        Parameters
        ----------
        atomic_numbers : Sequence[int]
            Atomic number of each atom
        bonds : Sequence[Tuple[int, int]]
            Bonds (0-based atom indices)
        hydrogen_mass_repartitioning : float
            Mass (amu) moved to each hydrogen from its bonded heavy atom

        Returns
        -------
        Parameters
            Parameters with molecular-mechanics level of theory
        """
        descriptor = ParametersDescriptor(
            atomic_numbers=list(atomic_numbers),
            bonds=[tuple(bond) for bond in bonds],
            hydrogen_mass_repartitioning=hydrogen_mass_repartitioning
        )
        return cls(descriptor)

    # =========================================================================
    # Topology
    # =========================================================================

    def _create_topology(self) -> None:
        """
        Enumerate angles, torsions and rings, and assign ring types.

        The per-atom ring sizes measured by the enumeration are checked
        against the atom ring types derived from the detected rings.
        """
        angles_map, torsions_map, ring_sizes = enumerate_topology(self.atoms_to_atoms_map)
        rings_map = detect_rings(torsions_map.keys(), self.atoms_to_atoms_map)

        check_index_range(bonds=len(self.bonds), angles=len(angles_map),
                          torsions=len(torsions_map), rings=len(rings_map))
        self.angles.set_indices(assign_dense_indices(angles_map))
        self.torsions.set_indices(assign_dense_indices(torsions_map))
        self.rings.set_indices(assign_dense_indices(rings_map))

        assign_ring_types(self.atoms, self.bonds, self.angles, self.torsions, self.rings)

        # Atoms closing a 5-cycle during enumeration are exactly the atoms of detected rings.
        mismatched = np.flatnonzero(ring_sizes != self.atoms.ring_types)
        if len(mismatched) > 0:
            raise TopologyError(f"Ring types of atoms {mismatched.tolist()} disagree with the "
                                "ring sizes found during enumeration",
                                TopologyErrorKind.INTERNAL_INCONSISTENCY,
                                details={'atoms': mismatched.tolist()})

    # =========================================================================
    # Atom parameters
    # =========================================================================

    def _create_masses(self, hydrogen_mass_repartitioning: float) -> None:
        """
        Assign atomic masses and move mass from heavy atoms to hydrogens.

        Parameters
        ----------
        hydrogen_mass_repartitioning : float
            Mass (amu) moved to each hydrogen from its bonded heavy atom
        """
        masses = np.zeros(self.atoms.count, dtype=np.float64)
        for atom_idx, z in enumerate(self.atoms.atomic_numbers):
            try:
                element = Element.getByAtomicNumber(int(z))
            except KeyError:
                raise TopologyError(f"Atom {atom_idx} has unknown atomic number {int(z)}",
                                    TopologyErrorKind.MALFORMED_INPUT)
            masses[atom_idx] = element.mass.value_in_unit(unit.dalton)

        for atom1, atom2 in self.bonds.indices:
            z1 = self.atoms.atomic_numbers[atom1]
            z2 = self.atoms.atomic_numbers[atom2]
            if z1 == 1 and z2 != 1:
                masses[atom1] += hydrogen_mass_repartitioning
                masses[atom2] -= hydrogen_mass_repartitioning
            elif z2 == 1 and z1 != 1:
                masses[atom2] += hydrogen_mass_repartitioning
                masses[atom1] -= hydrogen_mass_repartitioning

        self.atoms.masses = masses

    def _create_nonbonded_exceptions(self) -> None:
        """
        Collect the 1-3 and 1-4 atom pairs.

        A pair belongs to the tightest relation it is in: bonded pairs are
        neither 1-3 nor 1-4 exceptions, and 1-3 pairs are not 1-4 exceptions.
        """
        bonded = set(self.bonds.map.keys())

        exceptions_13 = {}
        for atom1, _, atom3 in self.angles.indices:
            pair = (min(atom1, atom3), max(atom1, atom3))
            if pair not in bonded:
                exceptions_13[pair] = None

        exceptions_14 = {}
        for atom1, _, _, atom4 in self.torsions.indices:
            pair = (min(atom1, atom4), max(atom1, atom4))
            if pair not in bonded and pair not in exceptions_13:
                exceptions_14[pair] = None

        self.nonbonded_exceptions_13 = _pairs_to_array(exceptions_13.keys())
        self.nonbonded_exceptions_14 = _pairs_to_array(exceptions_14.keys())

    # =========================================================================
    # Merging
    # =========================================================================

    def append(self, other: 'Parameters') -> None:
        """
        Append another set of parameters, placing its atoms after these ones.

        All atom, bond and rigid-body indices of the other set are shifted;
        sentinel slots are preserved. The result equals the parameters of the
        combined system built from scratch.

        Parameters
        ----------
        other : Parameters
            Parameters of a system built independently

        Raises
        ------
        TopologyError
            If the two sets use different levels of theory, or the merged
            relation counts exceed the index range
        """
        if other.level_of_theory != self.level_of_theory:
            raise TopologyError("Cannot combine parameters with different levels of theory",
                                TopologyErrorKind.MALFORMED_INPUT)
        check_index_range(bonds=len(self.bonds) + len(other.bonds),
                          angles=len(self.angles) + len(other.angles),
                          torsions=len(self.torsions) + len(other.torsions),
                          rings=len(self.rings) + len(other.rings))
        atom_offset = self.atoms.count
        other_atom_count = other.atoms.count
        bond_offset = len(self.bonds)
        rigid_body_offset = len(self.rigid_bodies)
        other_rigid_bodies = list(other.rigid_bodies)

        self.atoms.append(other.atoms)
        self.bonds.append(other.bonds, atom_offset)
        self.angles.append(other.angles, atom_offset)
        self.torsions.append(other.torsions, atom_offset)
        self.rings.append(other.rings, atom_offset)

        self.nonbonded_exceptions_13 = np.concatenate(
            [self.nonbonded_exceptions_13, other.nonbonded_exceptions_13 + np.uint32(atom_offset)])
        self.nonbonded_exceptions_14 = np.concatenate(
            [self.nonbonded_exceptions_14, other.nonbonded_exceptions_14 + np.uint32(atom_offset)])
        self.atoms_to_bonds_map = np.concatenate(
            [self.atoms_to_bonds_map, _offset_map(other.atoms_to_bonds_map, bond_offset)])
        self.atoms_to_atoms_map = np.concatenate(
            [self.atoms_to_atoms_map, _offset_map(other.atoms_to_atoms_map, atom_offset)])

        self.rigid_bodies = self.rigid_bodies + [
            range(r.start + atom_offset, r.stop + atom_offset) for r in other_rigid_bodies]
        self.atoms_to_rigid_bodies_map = np.concatenate(
            [self.atoms_to_rigid_bodies_map,
             _offset_map(other.atoms_to_rigid_bodies_map, rigid_body_offset)])

        logger.debug(f"Appended {other_atom_count} atoms at offset {atom_offset}")


def _pairs_to_array(pairs) -> np.ndarray:
    return np.asarray(list(pairs), dtype=np.uint32).reshape(-1, 2)


def _offset_map(table: np.ndarray, offset: int) -> np.ndarray:
    """Shift every non-sentinel entry of an int32 index table."""
    return np.where(table == SENTINEL, table, table + np.int32(offset)).astype(np.int32)
