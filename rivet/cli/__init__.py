"""
Rivet CLI Package

Command-line interface for running Rivet applications.
"""

from .main import main

__all__ = ["main"]
