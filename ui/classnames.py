"""
CSS class-name merging for panel payloads.

    class_names("panel", {"panel--error": has_error}, ["panel--chart"])
"""

from collections.abc import Iterable, Mapping


def _tokens(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Mapping):
        out = []
        for name, enabled in value.items():
            if enabled:
                out.extend(_tokens(name))
        return out
    if isinstance(value, Iterable):
        out = []
        for item in value:
            out.extend(_tokens(item))
        return out
    return [str(value)]


def class_names(*inputs) -> str:
    """Join class names from strings, iterables and {name: bool} mappings. Later duplicates win."""
    tokens = _tokens(inputs)
    seen: set[str] = set()
    merged = []
    for token in reversed(tokens):
        if token not in seen:
            seen.add(token)
            merged.append(token)
    return " ".join(reversed(merged))
