"""Geospatial anchoring and proximity state for an AR campus tour."""

__version__ = "0.1.0"
