"""
Lenient-mode normalization.

Real feeds often publish ``"1"`` for booleans, numeric strings for counts,
integer coordinates and human-readable dates. With lenient mode on, the
validator normalizes those fields before structural validation and records
every change, so the report can still tell operators what they got wrong.

Which fields are eligible is fixed per document type by the dispatch table
in :mod:`gbfs_validator.feeds.registry`. Within a field group, rules run in
the order booleans, integers, numbers, coordinates, timestamps; the envelope
fields (``ttl``, ``last_updated``) are handled for every document first.

The output is compact JSON with key order preserved, so a second pass over
coerced bytes yields the same bytes and an empty log.

Usage:
    coercer = Coercer(CoerceOptions())
    result = coercer.coerce(raw_bytes, "station_status")
    for record in result.log:
        print(record.path, record.field, record.from_value, "->", record.to_value)
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from gbfs_validator.feeds.options import CoerceOptions
from gbfs_validator.feeds.registry import COMMON_FIELDS, FieldGroup, document_kind
from gbfs_validator.feeds.report import CoercionRecord, CoercionSummary
from gbfs_validator.feeds.rules import load_document

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_RFC3339_RE = re.compile(r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$")
_TIMESTAMP_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off", ""})

# Sentinel for "leave the value alone"
_UNCHANGED = object()


# =============================================================================
# VALUE CONVERTERS
# =============================================================================


def to_bool(value: Any) -> Any:
    if isinstance(value, bool):
        return _UNCHANGED
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return _UNCHANGED


def _parse_float(text: str) -> float | None:
    """Decimal text as a finite float, else ``None``."""
    if not _FLOAT_RE.match(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


def to_int(value: Any) -> Any:
    if not isinstance(value, str):
        return _UNCHANGED
    text = value.strip()
    if _INT_RE.match(text):
        return int(text)
    number = _parse_float(text)
    return _UNCHANGED if number is None else int(number)


def to_number(value: Any) -> Any:
    if not isinstance(value, str):
        return _UNCHANGED
    text = value.strip()
    if _INT_RE.match(text):
        return int(text)
    number = _parse_float(text)
    return _UNCHANGED if number is None else number


def to_coordinate(value: Any) -> Any:
    if isinstance(value, bool) or isinstance(value, float):
        return _UNCHANGED
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return _UNCHANGED
    if isinstance(value, str):
        number = _parse_float(value.strip())
        if number is not None:
            return number
    return _UNCHANGED


def to_timestamp(value: Any) -> Any:
    if isinstance(value, bool) or isinstance(value, int):
        return _UNCHANGED
    if isinstance(value, float):
        if not math.isfinite(value) or value.is_integer():
            return _UNCHANGED
        return int(value)
    if not isinstance(value, str):
        return _UNCHANGED

    text = value.strip()
    if _INT_RE.match(text):
        return int(text)
    if _RFC3339_RE.match(text):
        return _UNCHANGED
    for fmt in _TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return int(parsed.replace(tzinfo=timezone.utc).timestamp())
    return _UNCHANGED


# =============================================================================
# LOG
# =============================================================================


@dataclass
class CoercionLog:
    """Ordered, append-only record of the coercions made by one call."""

    records: list[CoercionRecord] = field(default_factory=list)

    def record(self, path: str, name: str, before: Any, after: Any) -> None:
        self.records.append(
            CoercionRecord(
                path=path,
                field=name,
                from_type=type(before).__name__,
                to_type=type(after).__name__,
                from_value=before,
                to_value=after,
            )
        )

    def summarize(self) -> CoercionSummary:
        return CoercionSummary.from_records(self.records)

    def __iter__(self) -> Iterator[CoercionRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class CoercionResult:
    data: bytes
    log: CoercionLog


# =============================================================================
# COERCER
# =============================================================================


class Coercer:
    """Apply the enabled coercions to one document at a time. Stateless between calls."""

    def __init__(self, options: CoerceOptions | None = None):
        self.options = options or CoerceOptions()

    def _steps(self, group: FieldGroup) -> list[tuple[tuple[str, ...], Callable[[Any], Any]]]:
        opts = self.options
        steps = []
        if opts.coerce_booleans:
            steps.append((group.booleans, to_bool))
        if opts.coerce_numeric_strings:
            steps.append((group.integers, to_int))
            steps.append((group.numbers, to_number))
        if opts.coerce_coordinates:
            steps.append((group.coordinates, to_coordinate))
        if opts.coerce_timestamps:
            steps.append((group.timestamps, to_timestamp))
        return steps

    def coerce(self, raw: bytes, document_type: str) -> CoercionResult:
        """
        Normalize ``raw`` as a document of ``document_type``.

        A document holding a non-finite number (``1e400`` decodes to ``inf``)
        cannot be written back as JSON, so it is returned as it came with an
        empty log.

        Raises:
            ParseError: ``raw`` is not JSON or its top level is not an object
        """
        document = load_document(raw)
        log = CoercionLog()

        for group in (COMMON_FIELDS, *document_kind(document_type).field_groups):
            self._apply(group, document, log)

        try:
            data = json.dumps(document, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except ValueError:
            return CoercionResult(data=raw, log=CoercionLog())
        return CoercionResult(data=data.encode("utf-8"), log=log)

    def _apply(self, group: FieldGroup, document: dict[str, Any], log: CoercionLog) -> None:
        steps = self._steps(group)
        for pointer, target in group.targets(document):
            for names, convert in steps:
                for name in names:
                    if name not in target:
                        continue
                    before = target[name]
                    after = convert(before)
                    if after is _UNCHANGED:
                        continue
                    if type(after) is type(before) and after == before:
                        continue
                    target[name] = after
                    log.record(pointer, name, before, after)
            if self.options.treat_null_as_absent:
                for name in [k for k, v in target.items() if v is None]:
                    del target[name]
