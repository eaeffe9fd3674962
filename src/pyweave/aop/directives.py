# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Directive declaration, reading and schema checks."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar, runtime_checkable

from pyweave.aop.types import Directive
from pyweave.kernel.exceptions import SchemaMismatchError

F = TypeVar("F")

DIRECTIVES_ATTR = "__pyweave_directives__"


# ---------------------------------------------------------------------------
# @directive — attaches a Directive to a method
# ---------------------------------------------------------------------------


def _unwrap(obj: Any) -> Any:
    if isinstance(obj, (staticmethod, classmethod)):
        return obj.__func__
    return obj


def directive(kind: str, **attributes: str) -> Callable[[F], F]:
    """Attach a ``kind`` directive carrying *attributes* to the decorated method.

    A trailing underscore is stripped from attribute names so Python
    keywords can be used (``with_="audit"`` becomes ``with``). Stacked
    directives keep their top-to-bottom source order. Works above or below
    ``@staticmethod`` and ``@classmethod``::

        @directive("log", what="a", when="start")
        @directive("log", what="self.a", when="end")
        def __init__(self, a): ...
    """
    normalized: dict[str, str] = {}
    for name, value in attributes.items():
        if not isinstance(value, str):
            raise TypeError(f"Directive '{kind}' attribute '{name}' must be a string, got {type(value).__name__}")
        normalized[name[:-1] if name.endswith("_") else name] = value

    entry = Directive(schema_kind=kind, attributes=normalized)

    def decorator(fn: F) -> F:
        target = _unwrap(fn)
        existing = getattr(target, DIRECTIVES_ATTR, ())
        # Decorators apply bottom-up: prepend to keep source order.
        setattr(target, DIRECTIVES_ATTR, (entry, *existing))
        return fn

    return decorator


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


@runtime_checkable
class DirectiveReader(Protocol):
    """Port for reading the directives declared on a method, in source order."""

    def get_method_directives(self, function: Any) -> list[Directive]: ...


class AttributeDirectiveReader:
    """Reads directives attached by :func:`directive`, caching per function."""

    def __init__(self) -> None:
        self._cache: dict[Any, tuple[Directive, ...]] = {}

    def get_method_directives(self, function: Any) -> list[Directive]:
        function = _unwrap(function)
        cached = self._cache.get(function)
        if cached is None:
            cached = tuple(getattr(function, DIRECTIVES_ATTR, ()))
            self._cache[function] = cached
        return list(cached)

    def clear(self) -> None:
        self._cache.clear()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DirectiveSchema:
    """Declared shape of one directive kind.

    Attributes:
        kind: The ``schema_kind`` this schema describes.
        required: Attributes every directive of this kind must carry.
        optional: Further attributes that may appear.
        choices: Allowed values per attribute, for enumerated attributes.
    """

    kind: str
    required: frozenset[str] = frozenset()
    optional: frozenset[str] = frozenset()
    choices: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def validate(self, entry: Directive, method: str | None = None) -> None:
        """Raise :class:`SchemaMismatchError` if *entry* does not fit this schema."""
        for name in sorted(self.required):
            if name not in entry.attributes:
                raise SchemaMismatchError(self.kind, name, "missing required attribute", method)

        allowed = self.required | self.optional
        for name, value in entry.attributes.items():
            if name not in allowed:
                raise SchemaMismatchError(self.kind, name, "attribute is not declared by the schema", method)
            options = self.choices.get(name)
            if options is not None and value not in options:
                raise SchemaMismatchError(
                    self.kind,
                    name,
                    f"value {value!r} is not one of {', '.join(options)}",
                    method,
                )
