"""
API v1 for FabricSim.
"""
