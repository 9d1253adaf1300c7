"""Validation and normalisation of heading lines."""

from __future__ import annotations

import logging
import re
import unicodedata
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from gridsync.errors import SchemaMismatchError

logger = logging.getLogger(__name__)

_INVALID_CHARS_RE = re.compile(r"[^\w\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")
_WORD_RE = re.compile(r"\w")


class WarningKind(Enum):
    BAD_HEADINGS = "bad-headings"
    RANGE_NOT_PROVIDED = "range-not-provided"
    SHEET_CREATED = "sheet-created"


@dataclass(frozen=True)
class DecodeWarning:
    """A non-fatal anomaly found while reading or writing a sheet."""

    kind: WarningKind
    headings: Tuple[str, ...] = ()
    detail: str = ""

    def __str__(self) -> str:
        if self.headings:
            listed = ", ".join(repr(heading) for heading in self.headings)
            return f"{self.kind.value}: {listed}"
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


@dataclass(frozen=True)
class HeadingResult:
    raw: Tuple[str, ...]
    keys: Tuple[Optional[str], ...]
    warnings: Tuple[DecodeWarning, ...] = ()

    @property
    def warning_kinds(self) -> FrozenSet[WarningKind]:
        return frozenset(warning.kind for warning in self.warnings)


def idify(heading: str) -> str:
    """Turn ``heading`` into a lowercase identifier such as ``first_name``."""

    text = unicodedata.normalize("NFD", str(heading or ""))
    text = "".join(char for char in text if not unicodedata.combining(char))
    text = _INVALID_CHARS_RE.sub("", text).strip()
    text = _WHITESPACE_RE.sub("-", text).lower()
    return _HYPHENS_RE.sub("_", text)


def is_bad_heading(heading: str) -> bool:
    """Return ``True`` for blank headings, headings starting with a digit, or headings without word characters."""

    text = (heading or "").strip()
    if not text:
        return True
    if text[0].isdigit():
        return True
    return _WORD_RE.search(text) is None


def _key_for(heading: str, transform: bool) -> Optional[str]:
    if not (heading or "").strip():
        return None
    if not transform:
        return heading
    key = idify(heading)
    return key or None


def _duplicates(keys: Iterable[Optional[str]]) -> List[str]:
    counts = Counter(key for key in keys if key is not None)
    return [key for key, count in counts.items() if count > 1]


def normalize_headings(
    headings: Sequence[str],
    *,
    transform: bool = False,
    range_provided: bool = True,
) -> HeadingResult:
    """Validate ``headings`` and derive the record keys for each column.

    Raw headings are returned unchanged alongside the keys so a later write
    can restore the author's text.  Blank headings produce a ``None`` key.
    Raises :class:`SchemaMismatchError` when two columns end up with the same
    key.
    """

    raw = tuple(str(heading) if heading is not None else "" for heading in headings)
    warnings: List[DecodeWarning] = []

    bad = tuple(heading for heading in raw if is_bad_heading(heading))
    if bad:
        logger.warning("Suspicious headings found: %s", ", ".join(repr(heading) for heading in bad))
        warnings.append(DecodeWarning(WarningKind.BAD_HEADINGS, headings=bad))
        if not range_provided:
            warnings.append(DecodeWarning(WarningKind.RANGE_NOT_PROVIDED))

    keys = tuple(_key_for(heading, transform) for heading in raw)
    collisions = _duplicates(keys)
    if collisions:
        raise SchemaMismatchError(
            "Headings collide after normalisation: " + ", ".join(sorted(collisions))
        )

    return HeadingResult(raw=raw, keys=keys, warnings=tuple(warnings))


__all__ = [
    "DecodeWarning",
    "HeadingResult",
    "WarningKind",
    "idify",
    "is_bad_heading",
    "normalize_headings",
]
