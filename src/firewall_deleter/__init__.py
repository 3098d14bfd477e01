"""Firewall deleter: bus worker that removes AWS security groups."""

__version__ = "0.1.0"
