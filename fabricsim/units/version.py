"""
Version utility functions for FabricSim.

This module turns the VERSION tuple into PEP 440 version strings.
"""

from typing import Tuple, Optional

VersionTuple = Tuple[int, int, int, str, int]


def _resolve(version: Optional[VersionTuple]) -> VersionTuple:
    if version is None:
        from fabricsim import VERSION
        return VERSION
    return version


def get_version(version: Optional[VersionTuple] = None) -> str:
    """
    Return a PEP 440-compliant version number from VERSION.

    Args:
        version: Version tuple (major, minor, micro, releaselevel, serial)
                If not provided, uses the package VERSION tuple

    Returns:
        PEP 440-compliant version string
    """
    major, minor, micro, releaselevel, serial = _resolve(version)

    version_str = f"{major}.{minor}"
    if micro is not None:
        version_str += f".{micro}"

    if releaselevel != "final":
        if releaselevel == "dev":
            version_str += ".dev"
        else:
            version_str += f"-{releaselevel}"
        if serial > 0:
            version_str += str(serial)

    return version_str


def get_complete_version(version: Optional[VersionTuple] = None) -> VersionTuple:
    """Return the version tuple, defaulting to the package VERSION."""
    return _resolve(version)


def get_major_version(version: Optional[VersionTuple] = None) -> str:
    """Return the "major.minor" part of the version (e.g. "0.1")."""
    major, minor, _, _, _ = _resolve(version)
    return f"{major}.{minor}"
