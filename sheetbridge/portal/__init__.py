"""Commerce portal API access."""

from .client import PortalClient

__all__ = ["PortalClient"]
