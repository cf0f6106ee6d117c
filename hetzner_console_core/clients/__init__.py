"""Upstream API clients."""

from .hetzner_client import HetznerClient

__all__ = ["HetznerClient"]
