"""Helpers for working with GitHub labels in their various shapes."""

from typing import Any, Iterable, Protocol, runtime_checkable


@runtime_checkable
class HasName(Protocol):
    """Protocol for objects that have a name attribute."""

    name: str


LabelType = str | dict[str, Any] | HasName


def label_names(labels: Iterable[LabelType] | None) -> list[str]:
    """Extract label names from GitHub label objects, strings, or dicts.

    Order of first appearance is kept and duplicates are dropped, so the
    result behaves like an ordered set. Labels without a usable name are
    skipped.
    """
    names: list[str] = []
    seen: set[str] = set()
    for label in labels or []:
        if isinstance(label, str):
            name = label
        elif isinstance(label, dict):
            name = label.get("name")
        elif isinstance(label, HasName):
            name = label.name
        else:
            name = None
        if not isinstance(name, str) or not name or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names
