#!/usr/bin/env python3
"""
Command-line interface for topology derivation.

This script builds the force field parameters of a system given by its atomic
numbers and bonds, and reports the derived bonded topology and rigid bodies.

Example usage:
    # Cyclopentane carbon skeleton
    mm4-topology -a 6 6 6 6 6 -b 1 2 2 3 3 4 4 5 5 1 --print-topology

    # As a Python module
    python -m mm4topology -a 6 6 6 6 6 -b 1 2 2 3 3 4 4 5 5 1
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from . import __version__
from .Parameters import Parameters, DEFAULT_HYDROGEN_MASS_REPARTITIONING
from .TopologyError import TopologyError
from .TopologyObjects import RING_SIZE


# Custom formatter that removes "(default: False)" from boolean flags
class CustomHelpFormatter(argparse.ArgumentDefaultsHelpFormatter):
    def _get_help_string(self, action: argparse.Action) -> Optional[str]:
        help_str = super()._get_help_string(action)
        # Remove "(default: False)" from help text
        if help_str and "(default: False)" in help_str:
            help_str = help_str.replace(" (default: False)", "")
        return help_str


LOG_FORMAT = "%(name)s %(asctime)s %(levelname)s %(message)s"


def configure_logging(verbose: bool) -> None:
    """Send package log records to stdout."""
    logger = logging.getLogger('mm4topology')
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not logger.handlers:
        log_stream_handler = logging.StreamHandler(sys.stdout)
        log_stream_handler.setLevel(logging.DEBUG)
        log_stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(log_stream_handler)


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Derive bonded topology, ring types and rigid bodies from atoms and bonds',
        formatter_class=CustomHelpFormatter,
        epilog='For more information, see the Parameters module documentation.'
    )

    required = parser.add_argument_group('Required Arguments')
    required.add_argument('-a', '--atomic-numbers', required=True, nargs='+', type=int,
                          help='Atomic number of each atom, in atom order. '
                               'Example: --atomic-numbers 6 6 1 1')
    required.add_argument('-b', '--bonds', nargs='+', type=int, default=None,
                          help='Bonds as space-separated pairs of atom indices (1-based). '
                               'Each pair is two integers: atom1 atom2 atom3 atom4 ... '
                               'Example: --bonds 1 2 2 3. '
                               'If not provided, the atoms are not bonded.')

    options_group = parser.add_argument_group('Parameters')
    options_group.add_argument('--hmr', type=float,
                               default=DEFAULT_HYDROGEN_MASS_REPARTITIONING,
                               help='Mass (amu) moved from each heavy atom to every bonded hydrogen')

    print_group = parser.add_argument_group('Topology Printing Options')
    print_group.add_argument('--print-topology', action='store_true',
                             help='Print every bond, angle, torsion and ring with its ring type.')
    print_group.add_argument('--max-sample-size', type=int, default=None,
                             help='Maximum number of entries to print for each kind of relation. '
                                  'If None, all entries are printed.')

    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}',
                        help='Show version number and exit')
    parser.add_argument('-v', '--verbose', action='store_true',
                        default=False,
                        help='Print verbose progress output')
    args = parser.parse_args(argv)

    # Validate bonds if provided (must be even number for pairs)
    if args.bonds and len(args.bonds) % 2 != 0:
        parser.error("Bonds must be specified as pairs. "
                     f"Got {len(args.bonds)} values, need even number.")

    if args.max_sample_size is not None and args.max_sample_size < 0:
        parser.error("--max-sample-size must not be negative")

    return args


def _one_based(relation) -> str:
    return '-'.join(str(a + 1) for a in relation)


def print_relations(title: str, relations: List, ring_types, max_sample_size: Optional[int] = None) -> None:
    """Print a relation collection with 1-based atom indices."""
    print(f"\n{title}: {len(relations)}")
    shown = relations if max_sample_size is None else relations[:max_sample_size]
    for relation, ring_type in zip(shown, ring_types):
        print(f"  {_one_based(relation):<24s} ring type {int(ring_type)}")
    if len(shown) < len(relations):
        print(f"  ... and {len(relations) - len(shown)} more")


def print_topology(parameters: Parameters, max_sample_size: Optional[int] = None) -> None:
    """Print every bonded relation of the parameters."""
    print_relations("Bonds", parameters.bonds.indices, parameters.bonds.ring_types, max_sample_size)
    print_relations("Angles", parameters.angles.indices, parameters.angles.ring_types, max_sample_size)
    print_relations("Torsions", parameters.torsions.indices, parameters.torsions.ring_types, max_sample_size)
    print_relations("Rings", [ring[:RING_SIZE] for ring in parameters.rings.indices],
                    parameters.rings.ring_types, max_sample_size)


def print_summary(parameters: Parameters) -> None:
    """Print counts and rigid bodies."""
    print(f"Atoms:        {parameters.atoms.count}")
    print(f"Bonds:        {len(parameters.bonds)}")
    print(f"Angles:       {len(parameters.angles)}")
    print(f"Torsions:     {len(parameters.torsions)}")
    print(f"Rings:        {len(parameters.rings)}")
    print(f"Rigid bodies: {len(parameters.rigid_bodies)}")
    for rigid_body_id, rigid_body in enumerate(parameters.rigid_bodies):
        print(f"  {rigid_body_id:4d}: atoms {rigid_body.start + 1}-{rigid_body.stop}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main execution function."""
    args = parse_arguments(argv)
    configure_logging(args.verbose)

    # Convert from 1-based (user input) to 0-based (internal representation)
    bonds = []
    if args.bonds:
        bonds = [(args.bonds[i] - 1, args.bonds[i+1] - 1)
                 for i in range(0, len(args.bonds), 2)]

    print("=" * 70)
    print("MM4 Topology")
    print("=" * 70)

    try:
        parameters = Parameters.from_data(args.atomic_numbers, bonds,
                                          hydrogen_mass_repartitioning=args.hmr)
    except TopologyError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print_summary(parameters)
    if args.print_topology:
        print_topology(parameters, max_sample_size=args.max_sample_size)
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
