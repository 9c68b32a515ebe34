"""Object storage access."""

from .object_store import ObjectStore, S3ObjectStore, StoredObject

__all__ = ["ObjectStore", "S3ObjectStore", "StoredObject"]
