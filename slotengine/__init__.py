"""
slotengine - provider availability and bookable slot computation.
"""

__version__ = "0.1.0"
