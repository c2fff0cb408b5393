"""
Utility modules for the Credora API.

Submodules are imported directly where needed to avoid circular imports
between models and the auth helpers.
"""
