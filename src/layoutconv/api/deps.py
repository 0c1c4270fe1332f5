"""FastAPI dependencies resolving shared state from ``app.state``."""

from __future__ import annotations

from fastapi import Request

from layoutconv.core.protocols import IFileStore
from layoutconv.ingest.loader import DatasetLoader
from layoutconv.session import ConversionSession, SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_loader(request: Request) -> DatasetLoader:
    return request.app.state.loader


def get_file_store(request: Request) -> IFileStore:
    return request.app.state.file_store


def get_session(session_id: str, request: Request) -> ConversionSession:
    return get_registry(request).get(session_id)
