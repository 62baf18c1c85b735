"""
FabricSim: a transaction-flow simulator for permissioned blockchain networks

FabricSim models how a transaction moves through the proposal, endorsement, ordering,
distribution and commit phases of a Fabric-style network, and records the result in a
hash-chained in-memory ledger.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh.readlines() if line.strip() and not line.startswith("#")]

# Get version from the package
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '.'))
from fabricsim.units.version import get_version
from fabricsim import VERSION

setup(
    name="FabricSim",
    version=get_version(VERSION),
    description="Transaction-flow simulator for permissioned blockchain networks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=['fabricsim', 'fabricsim.*'], exclude=['tests*']),
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
            "pytest-asyncio>=0.21",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "fsim=fabricsim.cli:fsim",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    keywords="blockchain, simulation, hyperledger, fabric, education",
)
