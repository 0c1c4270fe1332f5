"""Predefined field catalog endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from layoutconv.api.deps import get_registry
from layoutconv.api.schemas import NewFieldRequest
from layoutconv.models.catalog import PredefinedField
from layoutconv.session import SessionRegistry

router = APIRouter(tags=["catalog"])


@router.get("")
async def list_fields(registry: SessionRegistry = Depends(get_registry)) -> list[PredefinedField]:
    return list(registry.catalog)


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_field(
    body: NewFieldRequest, registry: SessionRegistry = Depends(get_registry),
) -> PredefinedField:
    return registry.catalog.add(body.name)


@router.delete("/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_field(field_id: str, registry: SessionRegistry = Depends(get_registry)) -> None:
    """Remove a custom field; columns mapped to it are unmapped in every session."""
    if registry.remove_catalog_field(field_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Field {field_id!r} not found")


@router.post("/reset")
async def reset_catalog(registry: SessionRegistry = Depends(get_registry)) -> list[PredefinedField]:
    """Drop every custom field."""
    for field in [f for f in registry.catalog if not f.core]:
        registry.remove_catalog_field(field.id)
    return list(registry.catalog)
