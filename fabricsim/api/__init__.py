"""
REST API for FabricSim.
"""
