"""Persistence gateways for the Larder engine."""

from larder.db.gateway import TABLES, InMemoryGateway, PersistenceGateway

__all__ = ["InMemoryGateway", "PersistenceGateway", "TABLES"]
