"""Compile abstract rig descriptions into Helix ``.hlx`` preset documents."""

__version__ = "0.1.0"
