from __future__ import annotations

import re
import unicodedata
from typing import Any, Iterator, Mapping


def sanitize_key(key: Any) -> str:
    """Lowercase and keep only ``a-z0-9_-`` (FluentCRM/WordPress key rules)."""
    return re.sub(r"[^a-z0-9_\-]", "", str(key or "").lower())


def slugify(value: str | None, fallback: str) -> str:
    """Accent-folded, lowercase, dash separated slug for file names."""
    folded = unicodedata.normalize("NFKD", value or "")
    ascii_text = folded.encode("ascii", "ignore").decode("ascii").lower()
    slug = re.sub(r"[^a-z0-9\s-]+", "", ascii_text)
    slug = re.sub(r"[\s-]+", "-", slug.strip()).strip("-")
    return slug or fallback


def candidate_keys(canonical_key: str) -> Iterator[str]:
    """Yield the canonical key followed by its naming-drift variants."""
    yield canonical_key
    tried = {canonical_key}
    for variant in (
        canonical_key.replace("_", "-"),
        canonical_key.replace("-", "_"),
        canonical_key.rstrip("_"),
    ):
        if variant not in tried:
            tried.add(variant)
            yield variant


def _display_value(entry: Any) -> str:
    if isinstance(entry, Mapping):
        entry = entry.get("value")
    if entry is None:
        return ""
    return str(entry)


def resolve_field(fields: Mapping[str, Any] | None, canonical_key: str) -> str:
    """Value of ``canonical_key`` in ``fields`` tolerating dash/underscore drift.

    Entries may be plain values or ``{"value": ...}`` mappings. Absent keys
    and empty values both come back as ``""``.
    """
    if not fields:
        return ""
    for key in candidate_keys(canonical_key):
        if key in fields:
            return _display_value(fields[key])
    return ""
