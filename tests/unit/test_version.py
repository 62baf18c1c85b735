"""
Test version management functionality for FabricSim.
"""

import unittest
from fabricsim.units.version import get_version, get_complete_version, get_major_version
from fabricsim import VERSION, __version__


class TestVersion(unittest.TestCase):
    """Test version management functions."""

    def test_get_version(self):
        """Test get_version function."""
        self.assertEqual(get_version(), "0.1.0.dev2")
        self.assertEqual(__version__, get_version(VERSION))
        self.assertEqual(get_version((1, 0, 0, "final", 0)), "1.0.0")
        self.assertEqual(get_version((2, 1, 3, "alpha", 0)), "2.1.3-alpha")
        self.assertEqual(get_version((3, 2, 0, "beta", 1)), "3.2.0-beta1")
        self.assertEqual(get_version((5, 0, 0, "dev", 0)), "5.0.0.dev")

    def test_get_complete_version(self):
        """Test get_complete_version function."""
        self.assertEqual(get_complete_version(), VERSION)
        test_version = (1, 0, 0, "final", 0)
        self.assertEqual(get_complete_version(test_version), test_version)

    def test_get_major_version(self):
        """Test get_major_version function."""
        self.assertEqual(get_major_version(), "0.1")
        self.assertEqual(get_major_version((5, 10, 0, "beta", 1)), "5.10")


if __name__ == '__main__':
    unittest.main()
