"""Unpack and rebuild WAD archives, level containers and collision meshes."""

__version__ = "0.1.0"
