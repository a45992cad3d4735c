"""
API router package for the VoxPay checkout service.

Routers for health, checkout sessions and the demo store inventory.
"""
