"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from layoutconv.core.exceptions import ConfigurationIssue
from layoutconv.models.enums import DateFormat, OutputEncoding, OutputFormat, PaddingDirection, SemanticType
from layoutconv.models.mapping import ColumnMapping
from layoutconv.models.output import OutputConfiguration
from layoutconv.session import ConversionSession


class SessionState(BaseModel):
    id: str
    file_name: Optional[str] = None
    headers: list[str] = Field(default_factory=list)
    row_count: int = 0
    mappings: list[ColumnMapping] = Field(default_factory=list)
    output: OutputConfiguration
    encoding: OutputEncoding
    warnings: list[str] = Field(default_factory=list)
    converted: bool = False

    @classmethod
    def of(cls, session: ConversionSession) -> SessionState:
        dataset = session.dataset
        return cls(
            id=session.id,
            file_name=session.file_name,
            headers=list(dataset.headers) if dataset else [],
            row_count=len(dataset.rows) if dataset else 0,
            mappings=session.mappings,
            output=session.output,
            encoding=session.encoding,
            warnings=session.warnings,
            converted=session.document is not None,
        )


class MappingUpdate(BaseModel):
    """Partial column-mapping edit; only the keys sent are applied."""

    mapped_field: Optional[str] = None
    data_type: Optional[SemanticType] = None
    length: Optional[int] = None
    remove_mask: Optional[bool] = None


class FormatRequest(BaseModel):
    format: OutputFormat


class DelimiterRequest(BaseModel):
    delimiter: str = Field(min_length=1)


class StaticFieldRequest(BaseModel):
    field_name: str
    static_value: str = ""
    length: Optional[int] = None
    padding_char: Optional[str] = " "
    padding_direction: Optional[PaddingDirection] = PaddingDirection.RIGHT


class OutputFieldUpdate(BaseModel):
    """Partial output-field edit; only the keys sent are applied."""

    length: Optional[int] = None
    order: Optional[int] = None
    padding_char: Optional[str] = None
    padding_direction: Optional[PaddingDirection] = None
    date_format: Optional[DateFormat] = None
    mapped_field: Optional[str] = None


class ConvertRequest(BaseModel):
    encoding: Optional[OutputEncoding] = None


class ConversionSummary(BaseModel):
    file_name: str
    record_count: int
    format: OutputFormat
    encoding: OutputEncoding
    media_type: str
    size: int


class PublishRequest(BaseModel):
    prefix: str = "converted"


class PublishResponse(BaseModel):
    path: str


class IssuesResponse(BaseModel):
    convertible: bool
    issues: list[ConfigurationIssue] = Field(default_factory=list)


class NewFieldRequest(BaseModel):
    name: str
