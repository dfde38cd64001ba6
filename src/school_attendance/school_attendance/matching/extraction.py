"""Decoding of optical extraction output.

The extraction service itself lives outside this package; it is modelled as a
blocking `ExtractionClient` that either returns name/status guesses or fails.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, Sequence, Union

from ..core.enums import AttendanceStatus
from ..core.exceptions import ExternalServiceFailure
from .model import ExtractedItem

logger = logging.getLogger(__name__)

RawPayload = Union[str, bytes, Sequence[Any]]


class ExtractionClient(Protocol):
    def extract(self, image: bytes, mime_type: str) -> RawPayload:
        raise NotImplementedError


def _field(raw: dict, *names: str):
    for n in names:
        if n in raw and raw[n] is not None:
            return raw[n]
    return None


def _parse_item(raw: Any, index: int) -> ExtractedItem:
    if not isinstance(raw, dict):
        raise ExternalServiceFailure(f"Item {index} is not an object")

    name = _field(raw, "studentName", "student_name", "extracted_name", "name")
    if not isinstance(name, str) or not name.strip():
        raise ExternalServiceFailure(f"Item {index} has no student name")

    status_raw = _field(raw, "status")
    try:
        status = AttendanceStatus(str(status_raw).strip().lower())
    except ValueError:
        raise ExternalServiceFailure(f"Item {index} has unknown status {status_raw!r}")

    late_raw = _field(raw, "minutesLate", "minutes_late")
    try:
        minutes_late = int(late_raw or 0)
    except (TypeError, ValueError):
        raise ExternalServiceFailure(f"Item {index} has invalid minutesLate {late_raw!r}")
    if minutes_late < 0:
        raise ExternalServiceFailure(f"Item {index} has negative minutesLate")
    if status != AttendanceStatus.LATE:
        minutes_late = 0

    notes = _field(raw, "notes")
    return ExtractedItem(
        extracted_name=name.strip(),
        status=status,
        minutes_late=minutes_late,
        notes=str(notes) if notes is not None else None,
    )


def parse_extraction_payload(payload: RawPayload) -> list[ExtractedItem]:
    """Turn a JSON string or decoded list into extracted items; all or nothing."""

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExternalServiceFailure("Extraction returned text that is not UTF-8") from e

    if isinstance(payload, str):
        if not payload.strip():
            return []
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ExternalServiceFailure(f"Extraction returned invalid JSON: {e}") from e

    if not isinstance(payload, (list, tuple)):
        raise ExternalServiceFailure("Extraction payload must be a list of items")

    return [_parse_item(raw, i) for i, raw in enumerate(payload)]


def run_extraction(client: ExtractionClient, image: bytes, mime_type: str = "image/jpeg") -> list[ExtractedItem]:
    try:
        payload = client.extract(image, mime_type)
    except ExternalServiceFailure:
        raise
    except Exception as e:
        logger.exception("Extraction service call failed")
        raise ExternalServiceFailure("Failed to process image") from e
    return parse_extraction_payload(payload)
