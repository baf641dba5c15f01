#!/usr/bin/env python3
"""
Hand-off of the derived topology to the OpenMM engine.

Force evaluation, integration and minimization happen inside OpenMM. This
module only translates Parameters into OpenMM objects: a Topology with one
residue per rigid body, a System with one particle per atom, and an external
force that callers use to push atoms around.

Classes:
    Plugins: Loads OpenMM plugins once per process
"""

import logging
from typing import Any, List, Optional, Sequence

import numpy as np
import openmm as mm
import openmm.unit as unit
from openmm import Platform, VerletIntegrator
from openmm.app import Element, Simulation, Topology

from .Parameters import Parameters
from .TopologyError import TopologyError, TopologyErrorKind


# Name given to the external force
EXTERNAL_FORCE_NAME = 'ExternalForce'

# Force group holding every force created here
FORCE_GROUP = 1

# Platform used when the caller does not choose one
DEFAULT_PLATFORM = 'CPU'

logger = logging.getLogger(__name__)


class Plugins:
    """Loads the OpenMM plugins from the default directory, once."""

    _loaded = False

    @classmethod
    def load(cls) -> List[str]:
        """
        Load plugins unless already loaded.

        Returns
        -------
        List[str]
            Names of the plugin libraries loaded by this call
        """
        if cls._loaded:
            return []
        # Importing openmm already loads the default plugins in most builds;
        # only the Reference platform is built in.
        if Platform.getNumPlatforms() > 1:
            cls._loaded = True
            return []
        directory = Platform.getDefaultPluginsDirectory()
        loaded = list(Platform.loadPluginsFromDirectory(directory))
        cls._loaded = True
        logger.debug(f"Loaded {len(loaded)} OpenMM plugins from {directory}")
        return loaded


def load_plugins() -> List[str]:
    """Load OpenMM plugins once per process."""
    return Plugins.load()


def build_topology(parameters: Parameters) -> Topology:
    """
    Build OpenMM Topology from parameters.

    Each rigid body becomes one residue of a single chain.

    Parameters
    ----------
    parameters : Parameters
        Parameters of the system

    Returns
    -------
    topo : openmm.app.Topology
        The topology object with atoms and bonds
    """
    topo = Topology()
    c0 = topo.addChain()
    atoms = []
    for rigid_body_id, rigid_body in enumerate(parameters.rigid_bodies):
        residue = topo.addResidue(f'rb{rigid_body_id}', c0)
        for atom_idx in rigid_body:
            elem = Element.getByAtomicNumber(int(parameters.atoms.atomic_numbers[atom_idx]))
            atoms.append(topo.addAtom(elem.symbol + str(atom_idx), elem, residue))

    for atom1_idx, atom2_idx in parameters.bonds.indices:
        topo.addBond(atoms[atom1_idx], atoms[atom2_idx])

    return topo


def create_system(parameters: Parameters) -> mm.System:
    """
    Build a System object holding one particle per atom and the external force.

    Parameters
    ----------
    parameters : Parameters
        Parameters of the system

    Returns
    -------
    openmm.System
        System with masses (amu) after hydrogen mass repartitioning
    """
    system = mm.System()
    for mass in parameters.atoms.masses:
        system.addParticle(float(mass) * unit.amu)

    force = mm.CustomExternalForce('x * fx + y * fy + z * fz')
    force.setName(EXTERNAL_FORCE_NAME)
    force.addPerParticleParameter('fx')
    force.addPerParticleParameter('fy')
    force.addPerParticleParameter('fz')
    for atom_idx in parameters.atoms.indices:
        force.addParticle(atom_idx, [0.0, 0.0, 0.0])
    force.setForceGroup(FORCE_GROUP)
    system.addForce(force)

    logger.debug(f"Created OpenMM system with {system.getNumParticles()} particles")
    return system


def get_external_force(system: mm.System) -> mm.CustomExternalForce:
    """Return the external force of a system made by create_system."""
    for force in system.getForces():
        if force.getName() == EXTERNAL_FORCE_NAME:
            return force
    raise TopologyError("External force was not found in the system.",
                        TopologyErrorKind.INTERNAL_INCONSISTENCY)


def update_external_forces(system: mm.System, forces: Optional[Sequence[Sequence[float]]] = None,
                           context: Optional[mm.Context] = None) -> None:
    """
    Set the constant force on each atom.

    Parameters
    ----------
    system : openmm.System
        System made by create_system
    forces : Optional[Sequence[Sequence[float]]]
        Force on each atom in kJ/mol/nm. If None, only the context is updated.
    context : Optional[openmm.Context]
        Context to push the new parameters to
    """
    force_object = get_external_force(system)
    if forces is not None:
        forces = np.asarray(forces, dtype=np.float64)
        if forces.shape != (force_object.getNumParticles(), 3):
            raise ValueError(f"Expected forces of shape ({force_object.getNumParticles()}, 3), "
                             f"got {forces.shape}")
        for atom_idx, atom_force in enumerate(forces):
            # Force is the negative gradient of potential energy.
            force_object.setParticleParameters(atom_idx, atom_idx, [float(-f) for f in atom_force])
    if context is not None:
        force_object.updateParametersInContext(context)


def create_simulation_from_system(topo: Topology, system: mm.System, positions: Any,
                                  step_length: float = 0.0002,
                                  platform_name: str = DEFAULT_PLATFORM) -> Simulation:
    """
    Build a Simulation for a system made by create_system.

    Parameters
    ----------
    topo : openmm.app.Topology
        Topology made by build_topology
    system : openmm.System
        System made by create_system
    positions : openmm.unit.Quantity
        Atom positions, shape (N, 3)
    step_length : float
        Integration time step in picoseconds
    platform_name : str
        Name of the OpenMM platform to run on

    Returns
    -------
    openmm.app.Simulation
        Simulation with a Verlet integrator and the positions set

    Raises
    ------
    ValueError
        If the named platform is not available
    """
    load_plugins()
    available = [Platform.getPlatform(i).getName() for i in range(Platform.getNumPlatforms())]
    if platform_name not in available:
        raise ValueError(f"OpenMM platform '{platform_name}' is not available. "
                         f"Available platforms: {', '.join(available)}")
    integrator = VerletIntegrator(step_length)
    platform = Platform.getPlatformByName(platform_name)
    simulation = Simulation(topo, system, integrator, platform)
    simulation.context.setPositions(positions)
    logger.debug(f"Created simulation on the {platform_name} platform")
    return simulation
