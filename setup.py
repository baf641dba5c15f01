#!/usr/bin/env python3
"""
Setup script for MM4Topology - bonded topology and rigid bodies for MM4.

Installation:
    pip install -e .                    # Development install
    pip install -e .[test]              # Development install with test tools
    pip install .                       # Regular install

Usage after installation:
    mm4-topology -a 6 6 6 6 6 -b 1 2 2 3 3 4 4 5 5 1
    python -m mm4topology -a 6 6 6 6 6 -b 1 2 2 3 3 4 4 5 5 1
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding='utf-8') if readme_file.exists() else ""

# Read requirements if exists
requirements_file = Path(__file__).parent / "requirements.txt"
if requirements_file.exists():
    requirements = [line.strip() for line in requirements_file.read_text().splitlines()
                   if line.strip() and not line.startswith('#')]
else:
    # Fallback: specify requirements directly
    requirements = [
        'numpy>=1.20.0',
        'openmm>=7.7.0',
    ]

setup(
    name="mm4topology",
    version="1.0.0",
    description="Bonded topology, ring types and rigid-body partition for the MM4 force field on OpenMM",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package configuration
    packages=find_packages(include=['mm4topology', 'mm4topology.*']),
    package_dir={'': '.'},

    # Dependencies
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=7.0'],
    },

    python_requires='>=3.8',

    # Entry points for command-line tools
    entry_points={
        'console_scripts': [
            'mm4-topology=mm4topology.__main__:main',
        ],
    },

    # Classifiers for PyPI
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Chemistry',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
    ],

    # Keywords for PyPI
    keywords='molecular-mechanics topology rings rigid-body openmm chemistry',
)
