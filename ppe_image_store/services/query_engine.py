"""Filtering, ordering and pagination over image records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from ..models.detection import ImageRecord, LabelVocabulary
from ..models.query import ImageFilters, PaginatedResponse
from ..utils import parse_datetime
from .error_handler import InvalidInputError

RecordPredicate = Callable[[ImageRecord], bool]


@dataclass(frozen=True)
class ResolvedFilters:
    """Filters after parsing and validation."""
    label: Optional[str]
    from_date: Optional[datetime]
    to_date: Optional[datetime]
    limit: int
    offset: int


def resolve_filters(filters: ImageFilters,
                    vocabulary: LabelVocabulary,
                    default_limit: int) -> ResolvedFilters:
    """Parse and validate raw filters; malformed values raise InvalidInputError."""
    label = vocabulary.validate(filters.label) if filters.label not in (None, "") else None
    return ResolvedFilters(
        label=label,
        from_date=_parse_bound("from", filters.from_date),
        to_date=_parse_bound("to", filters.to_date),
        limit=_non_negative_int("limit", default_limit if filters.limit is None else filters.limit),
        offset=_non_negative_int("offset", 0 if filters.offset is None else filters.offset),
    )


def build_predicates(resolved: ResolvedFilters) -> List[RecordPredicate]:
    """One predicate per active filter; a record must satisfy all of them."""
    predicates: List[RecordPredicate] = []

    if resolved.label is not None:
        label = resolved.label
        predicates.append(lambda record: record.has_label(label))

    if resolved.from_date is not None:
        from_date = resolved.from_date
        predicates.append(lambda record: record.uploaded_at >= from_date)

    if resolved.to_date is not None:
        to_date = resolved.to_date
        predicates.append(lambda record: record.uploaded_at <= to_date)

    return predicates


def sort_newest_first(records: Iterable[ImageRecord]) -> List[ImageRecord]:
    """Order by upload time descending; equal times fall back to id ascending."""
    by_id = sorted(records, key=lambda record: record.id)
    return sorted(by_id, key=lambda record: record.uploaded_at, reverse=True)


def paginate(records: List[ImageRecord], limit: int, offset: int) -> List[ImageRecord]:
    if limit <= 0 or offset >= len(records):
        return []
    return records[offset:offset + limit]


def query_records(records: Iterable[ImageRecord],
                  filters: ImageFilters,
                  vocabulary: LabelVocabulary,
                  default_limit: int) -> PaginatedResponse[ImageRecord]:
    """Filter, sort and slice records into one page plus the filtered total."""
    resolved = resolve_filters(filters, vocabulary, default_limit)
    predicates = build_predicates(resolved)

    matching = [record for record in records if all(p(record) for p in predicates)]
    ordered = sort_newest_first(matching)

    return PaginatedResponse(
        data=paginate(ordered, resolved.limit, resolved.offset),
        total=len(ordered),
        limit=resolved.limit,
        offset=resolved.offset,
    )


def _parse_bound(name: str, value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise InvalidInputError(f"Invalid '{name}' date filter: {e}") from e


def _non_negative_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInputError(f"'{name}' must be an integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidInputError(f"'{name}' must be an integer, got {value!r}") from None
    if not isinstance(value, int):
        raise InvalidInputError(f"'{name}' must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"'{name}' must not be negative, got {value}")
    return value
