"""
PlaceGate - canonical identity resolution for multi-site public URLs.
"""

__version__ = "0.1.0"
