"""Query parameter coercion."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def coerce_params(
    params: Mapping[str, Any] | tuple[Any, ...] | list[Any] | Any,
) -> dict[str, Any] | tuple[Any, ...]:
    """Normalize *params* to a dict or a tuple.

    * ``None`` → empty tuple (no placeholders bound).
    * ``dict`` / mapping → dict (named binding, ``:name`` placeholders).
    * ``tuple`` / ``list`` → tuple (positional binding, ``?`` placeholders,
      substituted in statement order).
    * Any other scalar → wrapped in a single-element tuple.
    """
    if params is None:
        return ()
    if isinstance(params, Mapping):
        return dict(params)
    if isinstance(params, (tuple, list)):
        return tuple(params)
    return (params,)
