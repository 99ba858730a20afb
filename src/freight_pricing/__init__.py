"""
Freight Pricing Package

Standardized route pricing for trucking operations.
Resolves a freight price using the Fundamental Pricing Hierarchy:
Cost basis → Market overlay (IQR-cleaned medians) → Strategic finalization.
"""

__version__ = "1.0.0"
