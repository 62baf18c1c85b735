"""
Network topology module for FabricSim.
"""

from fabricsim.network.topology import NetworkTopology, NetworkNode, NodeKind, DirectedEdge

__all__ = ["NetworkTopology", "NetworkNode", "NodeKind", "DirectedEdge"]
