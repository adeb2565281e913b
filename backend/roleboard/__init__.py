"""Roleboard: role-based admin dashboard backend"""

__version__ = "0.1.0"
