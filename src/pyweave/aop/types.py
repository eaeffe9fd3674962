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
"""AOP core types — structural descriptors, directives and woven identities."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path


class Stage(str, enum.Enum):
    """Point relative to the delegate call where an aspect fragment runs."""

    START = "start"
    END = "end"


class ParameterKind(str, enum.Enum):
    """Calling convention of a parameter, mirroring :class:`inspect.Parameter` kinds."""

    POSITIONAL_ONLY = "positional_only"
    POSITIONAL_OR_KEYWORD = "positional_or_keyword"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


@dataclass(frozen=True)
class TypeReference:
    """Reference to an object type used as a parameter annotation.

    Attributes:
        module: Module the type is importable from.
        qualname: Qualified name inside that module (``Outer.Inner`` for
            nested classes).
    """

    module: str
    qualname: str

    @property
    def short_name(self) -> str:
        return self.qualname.rsplit(".", 1)[-1]

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.qualname}"


@dataclass(frozen=True)
class ParameterDescriptor:
    """One parameter of a target method, receiver excluded.

    Attributes:
        name: Parameter name.
        kind: Calling convention.
        declared_type: Object type annotation, when there is one.
        container: Builtin container name (``list``, ``dict`` ...) for
            array-like parameters. Mutually exclusive with *declared_type*.
        is_optional: Whether the parameter has a default value.
        default_literal: ``repr`` of the default when it round-trips through
            :func:`ast.literal_eval`; ``None`` otherwise.
    """

    name: str
    kind: ParameterKind = ParameterKind.POSITIONAL_OR_KEYWORD
    declared_type: TypeReference | None = None
    container: str | None = None
    is_optional: bool = False
    default_literal: str | None = None

    @property
    def is_array_like(self) -> bool:
        return self.container is not None

    @property
    def is_variadic(self) -> bool:
        return self.kind in (ParameterKind.VAR_POSITIONAL, ParameterKind.VAR_KEYWORD)


@dataclass(frozen=True)
class Directive:
    """A single declarative annotation attached to a method."""

    schema_kind: str
    attributes: dict[str, str] = field(default_factory=dict)

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)


@dataclass(frozen=True)
class MethodDescriptor:
    """Structural description of one method of the target type."""

    name: str
    owner: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    directives: tuple[Directive, ...] = ()
    is_static: bool = False
    is_classmethod: bool = False
    is_async: bool = False

    @property
    def is_constructor(self) -> bool:
        return self.name == "__init__"

    @property
    def is_allocator(self) -> bool:
        return self.name == "__new__" and self.is_static

    @property
    def is_public(self) -> bool:
        if self.name.startswith("__") and self.name.endswith("__"):
            return True
        return not self.name.startswith("_")

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parameters)


@dataclass(frozen=True)
class TypeDescriptor:
    """Structural description of a target class.

    Attributes:
        module: Module path of the class (the namespace).
        qualname: Qualified name inside the module.
        methods: Declared methods, most-derived declarations first.
        native_init: A builtin base (``dict``, ``Exception``...) defines ``__init__``.
        native_new: A builtin base (``int``, ``str``, ``tuple``...) defines ``__new__``.
    """

    module: str
    qualname: str
    methods: tuple[MethodDescriptor, ...] = ()
    native_init: bool = False
    native_new: bool = False

    @property
    def short_name(self) -> str:
        return self.qualname.rsplit(".", 1)[-1]

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.qualname}"

    def method(self, name: str) -> MethodDescriptor | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None


@dataclass(frozen=True)
class WovenTypeIdentity:
    """Identity of a woven wrapper: the module it lives in and its class name."""

    module: str
    short_name: str

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.short_name}"

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class WovenType:
    """A synthesized wrapper as written by the output sink."""

    identity: WovenTypeIdentity
    source_text: str
    path: Path
