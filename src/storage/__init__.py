"""Storage backends and factory."""

from __future__ import annotations

from pathlib import Path

from miniblog.config import StorageSectionConfig
from miniblog.storage.base import StorageBackend
from miniblog.storage.filesystem import FileSystemStorage


def create_storage(config: StorageSectionConfig) -> StorageBackend:
    """Create the backend named by ``config.backend``.

    Raises:
        ValueError: If the backend is unknown.
    """
    if config.backend == "file":
        return FileSystemStorage(Path(config.directory))
    if config.backend == "s3":
        from miniblog.storage.s3 import S3Storage

        return S3Storage(
            config.bucket,
            prefix=config.prefix,
            endpoint_url=config.endpoint_url or None,
            public_url=config.public_url or None,
        )
    raise ValueError(f"Unknown storage backend: {config.backend!r}")


__all__ = ["FileSystemStorage", "StorageBackend", "create_storage"]
