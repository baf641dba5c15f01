#!/usr/bin/env python3
"""
Ring-type classification.

Propagates ring membership from the detected rings onto the atoms, bonds,
angles and torsions that lie entirely inside a ring. Anything outside a
5-membered ring keeps ring type 6.
"""

import logging

from .TopologyError import TopologyError, TopologyErrorKind
from .TopologyObjects import (
    Atoms, Bonds, Angles, Torsions, Rings,
    DEFAULT_RING_TYPE, RING_SIZE, SENTINEL,
    sort_bond, sort_angle, sort_torsion
)


logger = logging.getLogger(__name__)


def assign_ring_types(atoms: Atoms, bonds: Bonds, angles: Angles,
                      torsions: Torsions, rings: Rings) -> None:
    """
    Set the ring type of every atom, bond, angle and torsion in place.

    Raises
    ------
    TopologyError
        If a ring contains a bond, angle or torsion that was never enumerated
    """
    atoms.ring_types[:] = DEFAULT_RING_TYPE
    bonds.ring_types[:] = DEFAULT_RING_TYPE
    angles.ring_types[:] = DEFAULT_RING_TYPE
    torsions.ring_types[:] = DEFAULT_RING_TYPE

    def wrap(index: int) -> int:
        return (index + RING_SIZE) % RING_SIZE

    for ring in rings.indices:
        for lane in range(RING_SIZE):
            atom = ring[lane]
            bond = sort_bond((atom, ring[wrap(lane + 1)]))
            angle = sort_angle((atom, ring[wrap(lane + 1)], ring[wrap(lane + 2)]))
            torsion = sort_torsion((atom, ring[wrap(lane + 1)], ring[wrap(lane + 2)], ring[wrap(lane + 3)]))

            bond_id = bonds.map.get(bond)
            angle_id = angles.map.get(angle)
            torsion_id = torsions.map.get(torsion)
            if atom == SENTINEL or atom >= atoms.count or \
                    bond_id is None or angle_id is None or torsion_id is None:
                raise TopologyError(f"Invalid atom, bond, angle, or torsion in ring {ring[:RING_SIZE]}",
                                    TopologyErrorKind.INTERNAL_INCONSISTENCY,
                                    details={'ring': list(ring[:RING_SIZE])})

            atoms.ring_types[atom] = RING_SIZE
            bonds.ring_types[bond_id] = RING_SIZE
            angles.ring_types[angle_id] = RING_SIZE
            torsions.ring_types[torsion_id] = RING_SIZE

    logger.debug(f"{int((atoms.ring_types == RING_SIZE).sum())} atoms are in 5-membered rings")
