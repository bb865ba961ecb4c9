"""
Wheel of Destiny game engine.
Pure, synchronous core: no web framework, database, or event loop.
"""

VOWEL_COST = 250

VOWELS = "AEIOU"
CONSONANTS = "BCDFGHJKLMNPQRSTVWXYZ"
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# Synthetic identity occupying seat 2 in single-player sessions
COMPUTER_PLAYER_ID = "computer"

# How many applied action ids a session remembers for duplicate-retry coalescing
RECENT_ACTION_IDS = 16
