"""Decoders for the timeless jewel passive-tree lookup tables."""
