"""
MM4Topology

This package derives the bonded topology of a molecular system from its atoms
and covalent bonds:
- Canonical bonds, angles, torsions and 5-membered rings
- Ring types (5 or 6) of atoms, bonds, angles and torsions
- Partition of atoms into contiguous rigid bodies
and hands it to OpenMM for simulation.
"""

try:
    from ._version import version as __version__
except ImportError:
    # Fallback for when _version.py doesn't exist (e.g., installed from sdist)
    __version__ = "0.0.0.dev0"

# Import main classes for easier access
from .Parameters import Parameters, ParametersDescriptor, LevelOfTheory
from .TopologyError import TopologyError, TopologyErrorKind
from .TopologyObjects import (
    Atoms, Bonds, Angles, Torsions, Rings,
    sort_bond, sort_angle, sort_torsion, canonical_ring
)
from .RigidBodies import partition_rigid_bodies

__all__ = [
    'Parameters',
    'ParametersDescriptor',
    'LevelOfTheory',
    'TopologyError',
    'TopologyErrorKind',
    'Atoms',
    'Bonds',
    'Angles',
    'Torsions',
    'Rings',
    'sort_bond',
    'sort_angle',
    'sort_torsion',
    'canonical_ring',
    'partition_rigid_bodies',
]
