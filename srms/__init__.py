"""Operational toolkit for the multi-school student records management system."""

__version__ = "0.1.0"
