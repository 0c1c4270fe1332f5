"""Pre-conversion validation. Conversion is refused wholesale on any issue."""

from __future__ import annotations

from layoutconv.core.exceptions import ConfigurationError, ConfigurationIssue
from layoutconv.models.catalog import FieldCatalog
from layoutconv.models.dataset import Dataset
from layoutconv.models.enums import SemanticType
from layoutconv.models.mapping import ColumnMapping, find_mapping
from layoutconv.models.output import MappedOutputField, OutputConfiguration


def collect_issues(
    dataset: Dataset | None,
    mappings: list[ColumnMapping],
    config: OutputConfiguration,
    catalog: FieldCatalog | None = None,
) -> list[ConfigurationIssue]:
    """Every problem that blocks conversion, each naming the field involved."""
    issues: list[ConfigurationIssue] = []

    if dataset is None or dataset.is_empty:
        issues.append(ConfigurationIssue(message="There are no input rows to convert"))
    if not config.fields:
        issues.append(ConfigurationIssue(message="The output layout has no fields"))

    for field in config.ordered_fields():
        if isinstance(field, MappedOutputField):
            mapping = find_mapping(mappings, field.mapped_field)
            if mapping is not None and mapping.data_type is None:
                issues.append(ConfigurationIssue(
                    field_id=field.mapped_field,
                    message=f"Set a type for mapped field {field.mapped_field!r}",
                ))
            if catalog is not None and field.mapped_field not in catalog:
                issues.append(ConfigurationIssue(
                    field_id=field.mapped_field,
                    message=f"Field {field.mapped_field!r} is not in the field catalog",
                ))
            if mapping is not None and mapping.data_type is SemanticType.DATE and field.date_format is None:
                issues.append(ConfigurationIssue(
                    field_id=field.mapped_field,
                    message=f"Choose a date format for date field {field.mapped_field!r}",
                ))

        if config.is_positional:
            if field.length is None or field.length < 1:
                issues.append(ConfigurationIssue(
                    field_id=field.label,
                    message=f"Set a length greater than 0 for field {field.label!r}",
                ))
            if not field.padding_char or len(field.padding_char) != 1:
                issues.append(ConfigurationIssue(
                    field_id=field.label,
                    message=f"Set a single padding character for field {field.label!r}",
                ))

    if not config.is_positional and not config.delimiter:
        issues.append(ConfigurationIssue(message="Set a delimiter for delimited output"))

    return issues


def ensure_convertible(
    dataset: Dataset | None,
    mappings: list[ColumnMapping],
    config: OutputConfiguration,
    catalog: FieldCatalog | None = None,
) -> None:
    """Raise ConfigurationError listing every issue, if any."""
    issues = collect_issues(dataset, mappings, config, catalog)
    if issues:
        raise ConfigurationError(issues)
