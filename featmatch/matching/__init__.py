"""Descriptor matching."""

from .brute_force import BruteForceMatcher, descriptor_match
from .hamming import hamming_distance

__all__ = ['BruteForceMatcher', 'descriptor_match', 'hamming_distance']
