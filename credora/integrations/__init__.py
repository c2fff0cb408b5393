"""
Vendor clients for Stripe and identity verification.
"""
