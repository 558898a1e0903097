"""Aggregate model imports so every mapper is registered on Base."""

from arqos.models.organization import Organization
from arqos.models.profile import Profile

__all__ = ["Organization", "Profile"]
