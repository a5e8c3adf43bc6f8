"""SUBSWEEP: recursive DNS subdomain discovery."""

__version__ = "0.3.0"
