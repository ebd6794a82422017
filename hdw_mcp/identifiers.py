"""Identifier normalization for HDW URNs.

HDW identifiers are strings shaped ``<prefix>:<opaque-id>``. Some upstream
fields want them rewritten into tagged form ``{"type": prefix, "value": id}``;
bare names pass through untouched so upstream treats them as keywords.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Union

from .exceptions import InvalidIdentifierError

__all__ = [
    "UrnType",
    "TaggedIdentifier",
    "ensure_prefixed",
    "has_prefix",
    "to_tagged_or_passthrough",
    "tag_scalar",
    "comment_target",
    "normalize_profile_urn",
]

TaggedIdentifier = Dict[str, str]


class UrnType(str, Enum):
    """Known identifier prefixes."""

    COMPANY = "company"
    GEO = "geo"
    INDUSTRY = "industry"
    FSD_COMPANY = "fsd_company"
    ACTIVITY = "activity"
    COMMENT = "comment"
    FSD_PROFILE = "fsd_profile"

    @property
    def marker(self) -> str:
        return f"{self.value}:"


def _prefix(prefix: Union[UrnType, str]) -> str:
    return UrnType(prefix).value


def ensure_prefixed(raw: str, prefix: Union[UrnType, str]) -> str:
    """Prepend ``prefix:`` when ``raw`` carries no prefix at all.

    >>> ensure_prefixed("ACoAA1234", UrnType.FSD_PROFILE)
    'fsd_profile:ACoAA1234'
    """
    if ":" not in raw:
        return f"{_prefix(prefix)}:{raw}"
    return raw


def has_prefix(value: str, prefix: Union[UrnType, str]) -> bool:
    return value.startswith(f"{_prefix(prefix)}:")


def to_tagged_or_passthrough(raw: Any, prefix: Union[UrnType, str]) -> Union[TaggedIdentifier, Any]:
    """Convert ``"company:123"`` into ``{"type": "company", "value": "123"}``.

    Strings without the marker, lists and already tagged dicts are returned
    unchanged. Only the first occurrence of the marker is removed.
    """
    name = _prefix(prefix)
    marker = f"{name}:"
    if isinstance(raw, str) and marker in raw:
        return {"type": name, "value": raw.replace(marker, "", 1)}
    return raw


def tag_scalar(raw: Any, prefix: Union[UrnType, str]) -> Union[List[TaggedIdentifier], Any]:
    """Like :func:`to_tagged_or_passthrough`, wrapping a tagged result in a list.

    Upstream search filters expect a list of tagged identifiers.
    """
    tagged = to_tagged_or_passthrough(raw, prefix)
    if tagged is raw:
        return raw
    return [tagged]


def comment_target(raw: str) -> Union[TaggedIdentifier, str]:
    """Normalize the target of a new comment.

    ``activity:...`` and ``comment:...`` become tagged identifiers; strings
    that merely contain one of the markers pass through.

    Raises:
        InvalidIdentifierError: If neither marker occurs in ``raw``
    """
    for urn_type in (UrnType.ACTIVITY, UrnType.COMMENT):
        if raw.startswith(urn_type.marker):
            return {"type": urn_type.value, "value": raw.replace(urn_type.marker, "", 1)}
    if UrnType.ACTIVITY.marker in raw or UrnType.COMMENT.marker in raw:
        return raw
    raise InvalidIdentifierError(
        raw, "activity:|comment:", message="URN must be for an activity or comment"
    )


def normalize_profile_urn(raw: str) -> str:
    """Default bare profile ids to ``fsd_profile:`` and reject other prefixes.

    Raises:
        InvalidIdentifierError: If the result does not start with ``fsd_profile:``
    """
    normalized = ensure_prefixed(raw, UrnType.FSD_PROFILE)
    if not has_prefix(normalized, UrnType.FSD_PROFILE):
        raise InvalidIdentifierError(raw, UrnType.FSD_PROFILE.marker)
    return normalized
