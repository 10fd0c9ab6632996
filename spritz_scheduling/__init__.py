"""
Spritz scheduling - bookable slot calculation for Spritz user profiles.
"""

__version__ = "0.1.0"
