"""Conversion session endpoints: upload, configure, convert, download."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from layoutconv.api.deps import get_file_store, get_loader, get_registry, get_session
from layoutconv.api.schemas import (
    ConversionSummary,
    ConvertRequest,
    DelimiterRequest,
    FormatRequest,
    IssuesResponse,
    MappingUpdate,
    OutputFieldUpdate,
    PublishRequest,
    PublishResponse,
    SessionState,
    StaticFieldRequest,
)
from layoutconv.core.protocols import IFileStore
from layoutconv.ingest.loader import DatasetLoader
from layoutconv.session import ConversionSession, SessionRegistry

router = APIRouter(tags=["sessions"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload(
    file: UploadFile = File(...),
    registry: SessionRegistry = Depends(get_registry),
    loader: DatasetLoader = Depends(get_loader),
) -> SessionState:
    """Start a session from an uploaded XLSX, CSV or PDF file."""
    content = await file.read()
    session = registry.create()
    try:
        await session.load(loader, file.filename or "", content, file.content_type or "")
    except Exception:
        registry.discard(session.id)
        raise
    return SessionState.of(session)


@router.get("/{session_id}")
async def get_state(session: ConversionSession = Depends(get_session)) -> SessionState:
    return SessionState.of(session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> None:
    registry.discard(session_id)


@router.post("/{session_id}/reset")
async def reset(session: ConversionSession = Depends(get_session)) -> SessionState:
    session.reset()
    return SessionState.of(session)


@router.post("/{session_id}/upload")
async def reload(
    file: UploadFile = File(...),
    session: ConversionSession = Depends(get_session),
    loader: DatasetLoader = Depends(get_loader),
) -> SessionState:
    """Replace the session's dataset with a new file."""
    content = await file.read()
    await session.load(loader, file.filename or "", content, file.content_type or "")
    return SessionState.of(session)


@router.get("/{session_id}/preview")
async def preview(
    limit: int = Query(default=5, ge=0, le=100),
    session: ConversionSession = Depends(get_session),
) -> list[dict[str, str]]:
    return session.preview(limit)


@router.patch("/{session_id}/mappings/{index}")
async def update_mapping(
    index: int,
    body: MappingUpdate,
    session: ConversionSession = Depends(get_session),
) -> SessionState:
    session.update_mapping(index, **body.model_dump(exclude_unset=True))
    return SessionState.of(session)


@router.put("/{session_id}/output/format")
async def set_format(body: FormatRequest, session: ConversionSession = Depends(get_session)) -> SessionState:
    session.set_output_format(body.format)
    return SessionState.of(session)


@router.put("/{session_id}/output/delimiter")
async def set_delimiter(body: DelimiterRequest, session: ConversionSession = Depends(get_session)) -> SessionState:
    session.set_delimiter(body.delimiter)
    return SessionState.of(session)


@router.post("/{session_id}/output/fields")
async def add_mapped_field(session: ConversionSession = Depends(get_session)) -> SessionState:
    """Append the first mapped field that is missing from the output."""
    session.add_mapped_output_field()
    return SessionState.of(session)


@router.post("/{session_id}/output/static", status_code=status.HTTP_201_CREATED)
async def add_static_field(
    body: StaticFieldRequest, session: ConversionSession = Depends(get_session),
) -> SessionState:
    session.save_static_field(**body.model_dump())
    return SessionState.of(session)


@router.put("/{session_id}/output/static/{field_id}")
async def edit_static_field(
    field_id: str,
    body: StaticFieldRequest,
    session: ConversionSession = Depends(get_session),
) -> SessionState:
    session.save_static_field(field_id=field_id, **body.model_dump())
    return SessionState.of(session)


@router.patch("/{session_id}/output/fields/{field_id}")
async def update_output_field(
    field_id: str,
    body: OutputFieldUpdate,
    session: ConversionSession = Depends(get_session),
) -> SessionState:
    session.update_output_field(field_id, **body.model_dump(exclude_unset=True))
    return SessionState.of(session)


@router.delete("/{session_id}/output/fields/{field_id}")
async def remove_output_field(field_id: str, session: ConversionSession = Depends(get_session)) -> SessionState:
    session.remove_output_field(field_id)
    return SessionState.of(session)


@router.get("/{session_id}/issues")
async def issues(session: ConversionSession = Depends(get_session)) -> IssuesResponse:
    found = session.issues()
    return IssuesResponse(convertible=not found, issues=found)


@router.post("/{session_id}/convert")
async def convert(
    body: ConvertRequest | None = None,
    session: ConversionSession = Depends(get_session),
) -> ConversionSummary:
    document = session.convert(body.encoding if body else None)
    return ConversionSummary(
        file_name=document.file_name,
        record_count=document.record_count,
        format=document.output_format,
        encoding=document.encoding,
        media_type=document.media_type,
        size=len(document.content),
    )


@router.get("/{session_id}/download")
async def download(session: ConversionSession = Depends(get_session)) -> Response:
    document = session.require_document()
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )


@router.post("/{session_id}/publish")
async def publish(
    body: PublishRequest | None = None,
    session: ConversionSession = Depends(get_session),
    file_store: IFileStore = Depends(get_file_store),
) -> PublishResponse:
    """Store the converted document in the configured file store."""
    return PublishResponse(path=session.publish(file_store, body.prefix if body else "converted"))
