"""Identifier resolution by exact id or unique prefix."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from director_ops.core.errors import AmbiguousReference, NotFound

T = TypeVar("T")


def resolve_reference(
    items: Sequence[T],
    reference: str,
    *,
    key: Callable[[T], str],
    entity: str,
) -> T:
    """Find the single item whose id equals, or starts with, `reference`.

    An exact match always wins. Otherwise exactly one prefix match is required.

    Raises:
        NotFound: No item matches (an empty reference never matches).
        AmbiguousReference: More than one item shares the prefix.
    """

    ref = reference.strip()
    if not ref:
        raise NotFound(entity=entity, reference=reference)

    for item in items:
        if key(item) == ref:
            return item

    matches = [item for item in items if key(item).startswith(ref)]
    if not matches:
        raise NotFound(entity=entity, reference=reference)
    if len(matches) > 1:
        raise AmbiguousReference(
            entity=entity, reference=reference, matches=[key(m) for m in matches]
        )
    return matches[0]
