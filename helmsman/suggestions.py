"""
Helmsman suggestion engine: "did you mean" candidates for mistyped names.

Scope
- distance(a, b): Levenshtein edit distance (insert, delete, substitute; cost 1).
- suggest(query, candidates): close candidates, nearest first, ties alphabetical.

Host overrides
- __main__.__suggestions__ = {"max_distance": 3, "limit": 5} changes the defaults
  used when a call does not pass them explicitly.
"""
from .utils import Unset, host

MAX_DISTANCE = 2
LIMIT = 3


def distance(a, b, /):
    """
    Return the Levenshtein distance between strings `a` and `b`.

    >>> distance("kitten", "sitting")
    3
    """
    if not isinstance(a, str) or not isinstance(b, str):
        raise TypeError("distance() arguments must be strings")
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, left in enumerate(a, 1):
        current = [i]
        for j, right in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (left != right),
            ))
        previous = current
    return previous[-1]


def suggest(query, candidates, /, max_distance=Unset, limit=Unset):
    """
    Return up to `limit` candidates within `max_distance` edits of `query`.

    Results are sorted by ascending distance, then alphabetically, and never
    contain duplicates. An empty list means nothing is close enough.

    >>> suggest("sav", {"save", "load", "list"})
    ['save']
    """
    overrides = host("__suggestions__", {})
    max_distance = overrides.get("max_distance", MAX_DISTANCE) if max_distance is Unset else max_distance
    limit = overrides.get("limit", LIMIT) if limit is Unset else limit

    if not isinstance(query, str):
        raise TypeError("suggest() query must be a string")
    if max_distance < 0 or limit < 0:
        raise ValueError("suggest() bounds cannot be negative")

    scored = sorted(
        (score, candidate)
        for candidate in set(candidates)
        if (score := distance(query, candidate)) <= max_distance
    )
    return [candidate for _, candidate in scored[:limit]]


__all__ = (
    "MAX_DISTANCE",
    "LIMIT",
    "distance",
    "suggest",
)
