"""Embedded engine handle bindings."""
