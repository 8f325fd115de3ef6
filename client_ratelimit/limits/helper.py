"""Naming and validation of the limits declared by one owner."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping

from client_ratelimit.core.errors import DuplicateLimitNameError
from client_ratelimit.limits.limit import Clock, Limit

LimitDeclarations = Mapping[Any, Any] | Iterable[Any]


def configure_limits(
    limits: LimitDeclarations,
    owner_label: str,
    *,
    clock: Clock | None = None,
) -> list[Limit]:
    """Name, validate and order the limits declared by an owner.

    String keys of a mapping become explicit limit names; every other limit is
    scoped to ``owner_label`` and gets a derived default name. Entries that are
    not ``Limit`` instances are dropped.

    Args:
        limits: Mapping or sequence of limit declarations.
        owner_label: Stable short label of the owning connector/request.
        clock: Optional time source shared by every returned limit.

    Returns:
        Limits in declaration order.

    Raises:
        InvalidConfigurationError: If a limit is incomplete.
        DuplicateLimitNameError: If two limits resolve to the same store key.
    """

    items = limits.items() if isinstance(limits, Mapping) else enumerate(limits)

    configured: list[Limit] = []
    for key, limit in items:
        if not isinstance(limit, Limit):
            continue
        if isinstance(key, str):
            limit.name(key)
        else:
            limit.set_object_name(owner_label)
        if clock is not None:
            limit.use_clock(clock)
        limit.validate()
        configured.append(limit)

    counts = Counter(limit.get_name() for limit in configured)
    duplicates = [name for name, count in counts.items() if count > 1]
    if duplicates:
        raise DuplicateLimitNameError(
            code="duplicate_limit_name",
            message=(
                f'Duplicate limit name "{duplicates[0]}". '
                "Consider adding a custom name to the limit."
            ),
            details={"names": duplicates, "limit_name": duplicates[0]},
        )

    return configured
