"""Inventory engine components and the facade that composes them."""

from larder.engine.facade import LarderEngine

__all__ = ["LarderEngine"]
