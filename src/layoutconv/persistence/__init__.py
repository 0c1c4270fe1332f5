"""Pluggable cache and file-store backends behind Protocol interfaces."""

from __future__ import annotations

from layoutconv.core.config import AppSettings
from layoutconv.core.protocols import ICacheBackend, IFileStore
from layoutconv.persistence.memory_backend import MemoryCacheBackend, MemoryFileStore


def create_cache(settings: AppSettings) -> ICacheBackend:
    if settings.cache_backend == "redis":
        from layoutconv.persistence.redis_backend import RedisCacheBackend

        return RedisCacheBackend(
            host=settings.redis.host,
            port=settings.redis.port,
            db=settings.redis.db,
        )
    return MemoryCacheBackend()


def create_file_store(settings: AppSettings) -> IFileStore:
    if settings.file_store == "s3":
        from layoutconv.persistence.s3_backend import S3FileStore

        return S3FileStore(
            bucket=settings.s3.bucket,
            region=settings.s3.region,
            endpoint_url=settings.s3.endpoint_url,
        )
    return MemoryFileStore()


def create_persistence(settings: AppSettings | None = None) -> tuple[ICacheBackend, IFileStore]:
    """Create wired-up backends from application settings.

    Returns:
        Tuple of (cache, file_store).
    """
    if settings is None:
        settings = AppSettings()
    return create_cache(settings), create_file_store(settings)
