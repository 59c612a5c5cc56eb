"""
Larder household-inventory engine.

The package exposes the domain facade that owns inventory items, the subcategory taxonomy,
the shopping-list workflow and the undoable activity ledger, plus thin HTTP and CLI surfaces.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
