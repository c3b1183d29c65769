"""
Calldata guard services - identity resolution, protocol directory, condition packs.
"""
