"""Adapters between models and external graph representations."""

from .networkx_adapter import to_networkx

__all__ = ["to_networkx"]
