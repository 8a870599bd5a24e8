"""Tags and tag specifications.

A tag is a named numeric counter. Entries add tags to a journey, and
outcomes use tags as thresholds (the tag value is the minimum required).

Wherever tags are accepted, callers may write any of:

    [Tag("danger", 2), Tag("gold", 5)]      literal list
    {"danger": 2, "gold": 5}                mapping sugar
    lambda journey: {"danger": 1}           modifier, evaluated lazily
    [Tag("gold", 1), some_modifier, {...}]  any mix of the above

normalize() converts that input once, at construction time, into a tuple
of Tag and Computed parts. evaluate() is the single step that turns a
normalized spec into concrete tags for the current journey: each Computed
part is called (every time, never memoized) and whatever it returns is
normalized and evaluated again, so a modifier may return further
modifiers.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from numbers import Real
from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel

from tablewalk.errors import ConfigurationError

if TYPE_CHECKING:
    from tablewalk.journey import Journey


class Tag(BaseModel):
    """A named numeric value. Same-named tags accumulate additively."""

    model_config = {"frozen": True, "strict": True}

    name: str
    value: int | float

    def __init__(self, name: str, value: int | float, **data: Any) -> None:
        super().__init__(name=name, value=value, **data)


class Computed:
    """A tag modifier: a function of the journey so far returning tags.

    The wrapped function receives the live Journey (tags and path) and may
    return anything normalize() accepts, including an empty list or mapping.
    """

    __slots__ = ("fn",)

    def __init__(self, fn: Callable[[Journey], Any]) -> None:
        self.fn = fn

    def __call__(self, journey: Journey) -> TagSpec:
        return normalize(self.fn(journey))

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", repr(self.fn))
        return f"Computed({name})"


TagPart = Union[Tag, Computed]
TagSpec = tuple[TagPart, ...]


def _tags_from_mapping(mapping: Mapping[Any, Any]) -> list[Tag]:
    tags = []
    for name, value in mapping.items():
        tags.append(_make_tag(name, value))
    return tags


def _make_tag(name: Any, value: Any) -> Tag:
    if not isinstance(name, str):
        raise ConfigurationError(f"Tag name must be a string, got {name!r}")
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ConfigurationError(f"Tag {name!r} must have a numeric value, got {value!r}")
    return Tag(name, value)


def normalize(raw: Any) -> TagSpec:
    """Turn any accepted tag input into a tuple of Tag and Computed parts."""
    if raw is None:
        return ()
    if isinstance(raw, Tag):
        return (raw,)
    if isinstance(raw, Computed):
        return (raw,)
    if isinstance(raw, Mapping):
        return tuple(_tags_from_mapping(raw))
    if callable(raw):
        return (Computed(raw),)
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ConfigurationError(f"Cannot interpret {raw!r} as tags")

    parts: list[TagPart] = []
    for item in raw:
        if isinstance(item, (Tag, Computed)):
            parts.append(item)
        elif isinstance(item, Mapping):
            parts.extend(_tags_from_mapping(item))
        elif callable(item):
            parts.append(Computed(item))
        else:
            raise ConfigurationError(f"Cannot interpret {item!r} as a tag")
    return tuple(parts)


def evaluate(spec: Any, journey: Journey) -> list[Tag]:
    """Expand every modifier in ``spec`` against ``journey``.

    ``spec`` may already be normalized or still be raw input.
    """
    result: list[Tag] = []
    for part in normalize(spec):
        if isinstance(part, Tag):
            result.append(part)
        else:
            result.extend(evaluate(part(journey), journey))
    return result
