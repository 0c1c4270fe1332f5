"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class ConversionConfig(BaseSettings):
    """Defaults applied while building and rendering output layouts."""

    model_config = {"env_prefix": "LAYOUTCONV_CONVERSION_"}

    default_encoding: Literal["UTF-8", "ISO-8859-1", "Windows-1252"] = "UTF-8"
    default_delimiter: str = "|"
    default_length: int = 10  # positional width when nothing else is configured


class ExtractionConfig(BaseSettings):
    """AI-backed PDF table extraction configuration."""

    model_config = {"env_prefix": "LAYOUTCONV_EXTRACTION_"}

    provider: Literal["mock", "bedrock"] = "mock"
    bedrock_model: str = "anthropic.claude-3-5-haiku-20241022-v1:0"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override
    max_tokens: int = 8192
    cache_ttl_seconds: int = 86400


class RedisConfig(BaseSettings):
    """Redis cache configuration."""

    model_config = {"env_prefix": "LAYOUTCONV_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0


class S3Config(BaseSettings):
    """S3 delivery bucket for converted files."""

    model_config = {"env_prefix": "LAYOUTCONV_S3_"}

    bucket: str = "layoutconv-output"
    region: str = "us-east-1"
    endpoint_url: str | None = None  # LocalStack override


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "LAYOUTCONV_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"
    cache_backend: Literal["memory", "redis"] = "memory"
    file_store: Literal["memory", "s3"] = "memory"

    conversion: ConversionConfig = ConversionConfig()
    extraction: ExtractionConfig = ExtractionConfig()
    redis: RedisConfig = RedisConfig()
    s3: S3Config = S3Config()
