"""
Credora API: rental marketplace and lease cosigner service.
"""

__version__ = "1.0.0"
