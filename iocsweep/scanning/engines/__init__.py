"""Concrete pattern engine implementations."""
