"""
Scale deployments on a remote control plane and verify the scale converged.
"""
