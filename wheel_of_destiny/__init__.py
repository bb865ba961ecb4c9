"""
Wheel of Destiny - turn-based word-guessing game engine with versioned,
store-synchronised sessions.
"""

__version__ = "1.0.0"
