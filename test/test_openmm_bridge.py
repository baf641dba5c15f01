#!/usr/bin/env python3
"""
Unit tests for the OpenMMBridge module.

Tests the translation of Parameters into OpenMM Topology and System objects.
"""

import unittest
import numpy as np
import sys
from pathlib import Path

# Add parent directory to path for package imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import openmm as mm
import openmm.unit as unit

from molecules import BUTANE, CYCLOPENTANE, METHANE
from mm4topology.OpenMMBridge import (
    EXTERNAL_FORCE_NAME,
    FORCE_GROUP,
    build_topology,
    create_simulation_from_system,
    create_system,
    get_external_force,
    load_plugins,
    update_external_forces
)
from mm4topology.Parameters import Parameters
from mm4topology.TopologyError import TopologyError, TopologyErrorKind


def _two_molecules():
    parameters = Parameters.from_data(*CYCLOPENTANE)
    parameters.append(Parameters.from_data(*BUTANE))
    return parameters


class TestBuildTopology(unittest.TestCase):
    """Test build_topology function."""

    def test_atoms_bonds_residues(self):
        parameters = _two_molecules()
        topo = build_topology(parameters)
        self.assertEqual(topo.getNumAtoms(), 9)
        self.assertEqual(topo.getNumBonds(), 8)
        self.assertEqual(topo.getNumResidues(), 2)
        self.assertEqual(topo.getNumChains(), 1)

    def test_residues_follow_rigid_bodies(self):
        parameters = _two_molecules()
        topo = build_topology(parameters)
        for residue, rigid_body in zip(topo.residues(), parameters.rigid_bodies):
            self.assertEqual([atom.index for atom in residue.atoms()], list(rigid_body))

    def test_elements(self):
        topo = build_topology(Parameters.from_data(*METHANE))
        symbols = [atom.element.symbol for atom in topo.atoms()]
        self.assertEqual(symbols, ['C', 'H', 'H', 'H', 'H'])
        self.assertEqual(next(topo.atoms()).name, 'C0')


class TestCreateSystem(unittest.TestCase):
    """Test create_system and the external force."""

    def test_particles_and_masses(self):
        parameters = Parameters.from_data(*METHANE)
        system = create_system(parameters)
        self.assertEqual(system.getNumParticles(), 5)
        for atom_idx, mass in enumerate(parameters.atoms.masses):
            self.assertAlmostEqual(system.getParticleMass(atom_idx).value_in_unit(unit.amu), mass)

    def test_external_force(self):
        system = create_system(Parameters.from_data(*BUTANE))
        force = get_external_force(system)
        self.assertEqual(force.getName(), EXTERNAL_FORCE_NAME)
        self.assertEqual(force.getForceGroup(), FORCE_GROUP)
        self.assertEqual(force.getNumParticles(), 4)
        _, params = force.getParticleParameters(2)
        self.assertEqual(list(params), [0.0, 0.0, 0.0])

    def test_missing_external_force(self):
        with self.assertRaises(TopologyError) as cm:
            get_external_force(mm.System())
        self.assertEqual(cm.exception.kind, TopologyErrorKind.INTERNAL_INCONSISTENCY)

    def test_update_external_forces_shape(self):
        system = create_system(Parameters.from_data(*BUTANE))
        with self.assertRaises(ValueError):
            update_external_forces(system, np.zeros((3, 3)))

    def test_update_external_forces_in_context(self):
        """Test that the requested forces act on the atoms."""
        parameters = Parameters.from_data(*BUTANE)
        system = create_system(parameters)
        platform = mm.Platform.getPlatformByName('Reference')
        context = mm.Context(system, mm.VerletIntegrator(0.001), platform)
        context.setPositions(np.random.default_rng(3).random((4, 3)) * unit.nanometer)

        forces = np.array([[1.0, 0.0, 0.0],
                           [0.0, -2.0, 0.0],
                           [0.0, 0.0, 3.0],
                           [0.5, 0.5, 0.5]])
        update_external_forces(system, forces, context)
        state = context.getState(getForces=True)
        computed = state.getForces(asNumpy=True).value_in_unit(unit.kilojoule_per_mole / unit.nanometer)
        np.testing.assert_allclose(computed, forces, atol=1e-6)


class TestSimulation(unittest.TestCase):
    """Test plugin loading and simulation construction."""

    def test_load_plugins_once(self):
        load_plugins()
        self.assertEqual(load_plugins(), [])

    def test_create_simulation_from_system(self):
        parameters = Parameters.from_data(*BUTANE)
        positions = np.array([[0.0, 0.0, 0.0],
                              [0.15, 0.0, 0.0],
                              [0.2, 0.14, 0.0],
                              [0.35, 0.14, 0.0]]) * unit.nanometer
        simulation = create_simulation_from_system(build_topology(parameters),
                                                   create_system(parameters), positions,
                                                   step_length=0.001, platform_name='Reference')
        self.assertEqual(simulation.context.getPlatform().getName(), 'Reference')
        self.assertAlmostEqual(simulation.integrator.getStepSize().value_in_unit(unit.picosecond), 0.001)
        state = simulation.context.getState(getPositions=True)
        np.testing.assert_allclose(state.getPositions(asNumpy=True).value_in_unit(unit.nanometer),
                                   positions.value_in_unit(unit.nanometer), atol=1e-6)

    def test_unknown_platform(self):
        parameters = Parameters.from_data(*BUTANE)
        positions = np.zeros((4, 3)) * unit.nanometer
        with self.assertRaises(ValueError):
            create_simulation_from_system(build_topology(parameters), create_system(parameters),
                                          positions, platform_name='NoSuchPlatform')


if __name__ == '__main__':
    unittest.main()
