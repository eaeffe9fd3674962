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
"""Synthesis — builds the wrapper IR from a TypeDescriptor and an Aspect.

The IR is a small tree (class → methods → start / delegate call / end
statements) that :mod:`pyweave.aop.rendering` turns into source in a single
pass. Aspect fragments are parsed and normalized here, so an invalid
fragment fails before anything is rendered or written.
"""

from __future__ import annotations

import ast
import keyword
import textwrap
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from pyweave.aop.aspect import Aspect
from pyweave.aop.index import DirectiveIndex
from pyweave.aop.types import (
    Directive,
    MethodDescriptor,
    ParameterDescriptor,
    ParameterKind,
    Stage,
    TypeDescriptor,
    WovenTypeIdentity,
)
from pyweave.kernel.exceptions import AspectRenderError, WeavingException

T = TypeVar("T")

TARGET_ALIAS = "_woven_target"
DEFAULT_HELPER = "original_default"
RESULT_NAME = "result"


# ---------------------------------------------------------------------------
# IR nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportNode:
    """``from module import name as alias``."""

    module: str
    name: str
    alias: str


@dataclass(frozen=True)
class ParameterNode:
    """A parameter of a synthesized method.

    Attributes:
        default: Source expression of the default, ``None`` when required.
        injected: True for aspect dependencies appended to a constructor.
    """

    name: str
    kind: ParameterKind
    annotation: str | None = None
    default: str | None = None
    injected: bool = False


@dataclass(frozen=True)
class DelegateCallNode:
    """The call to the original method.

    Attributes:
        receiver: ``super()`` or the base class expression for static methods.
        arguments: Argument expressions, original parameters only.
    """

    receiver: str
    method: str
    arguments: tuple[str, ...]
    awaited: bool = False


@dataclass(frozen=True)
class MethodNode:
    name: str
    parameters: tuple[ParameterNode, ...]
    call: DelegateCallNode
    decorator: str | None = None
    is_async: bool = False
    field_assignments: tuple[tuple[str, str], ...] = ()
    start: tuple[str, ...] = ()
    end: tuple[str, ...] = ()
    result_name: str = RESULT_NAME

    @property
    def original_parameters(self) -> tuple[ParameterNode, ...]:
        return tuple(p for p in self.parameters if not p.injected)

    @property
    def injected_parameters(self) -> tuple[ParameterNode, ...]:
        return tuple(p for p in self.parameters if p.injected)


@dataclass(frozen=True)
class ClassNode:
    """The whole wrapper module.

    Attributes:
        module: Module the wrapper is written to.
        short_name: Wrapper class name (same as the target's).
        target_module: Module the target class is imported from.
        target_root: Top-level name imported from *target_module*.
        base_expression: Expression naming the target class in the wrapper.
    """

    module: str
    short_name: str
    target_qualified_name: str
    target_module: str
    target_root: str
    base_expression: str
    aspect: str
    imports: tuple[ImportNode, ...]
    dependencies: tuple[str, ...]
    methods: tuple[MethodNode, ...]

    @property
    def uses_default_helper(self) -> bool:
        return any(
            p.default is not None and p.default.startswith(f"{DEFAULT_HELPER}(")
            for m in self.methods
            for p in m.parameters
        )

    def method(self, name: str) -> MethodNode | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def build_class_node(
    descriptor: TypeDescriptor,
    aspect: Aspect,
    identity: WovenTypeIdentity,
    index: DirectiveIndex | None = None,
) -> ClassNode:
    """Synthesize the wrapper IR of *descriptor* instrumented by *aspect*."""
    index = index or DirectiveIndex()
    root, _, nested = descriptor.qualname.partition(".")
    base_expression = f"{TARGET_ALIAS}.{nested}" if nested else TARGET_ALIAS
    constructor = f"{descriptor.qualified_name}.__init__"

    dependencies = tuple(_guarded(aspect, constructor, "dependencies", aspect.dependencies))
    _check_dependencies(aspect, constructor, dependencies)

    imports = _ImportTable(reserved={identity.short_name, TARGET_ALIAS, DEFAULT_HELPER})
    methods = list(descriptor.methods)
    silent: set[str] = set()
    if dependencies:
        allocates = descriptor.native_new or descriptor.method("__new__") is not None
        if descriptor.native_new and descriptor.method("__new__") is None:
            methods.insert(0, _pass_through_allocator(descriptor.qualified_name))
        if descriptor.method("__init__") is None:
            methods.insert(0, _pass_through_constructor(descriptor.qualified_name))
            # object.__init__ rejects the arguments a custom __new__ consumes.
            if allocates and not descriptor.native_init:
                silent.add("__init__")

    builder = _MethodBuilder(aspect, index, imports, base_expression, dependencies)
    built = tuple(builder.build(m, forward=m.name not in silent) for m in methods)
    return ClassNode(
        module=identity.module,
        short_name=identity.short_name,
        target_qualified_name=descriptor.qualified_name,
        target_module=descriptor.module,
        target_root=root,
        base_expression=base_expression,
        aspect=aspect.name,
        imports=imports.nodes(),
        dependencies=dependencies,
        methods=built,
    )


def _pass_through_constructor(owner: str) -> MethodDescriptor:
    """Constructor for targets that declare no ``__init__`` of their own."""
    return MethodDescriptor(
        name="__init__",
        owner=owner,
        parameters=(
            ParameterDescriptor(name="args", kind=ParameterKind.VAR_POSITIONAL),
            ParameterDescriptor(name="kwargs", kind=ParameterKind.VAR_KEYWORD),
        ),
    )


def _pass_through_allocator(owner: str) -> MethodDescriptor:
    """``__new__`` for targets whose allocator comes from a builtin base."""
    return MethodDescriptor(
        name="__new__",
        owner=owner,
        parameters=(
            ParameterDescriptor(name="cls"),
            ParameterDescriptor(name="args", kind=ParameterKind.VAR_POSITIONAL),
            ParameterDescriptor(name="kwargs", kind=ParameterKind.VAR_KEYWORD),
        ),
        is_static=True,
    )


def _check_dependencies(aspect: Aspect, where: str, dependencies: tuple[str, ...]) -> None:
    seen: set[str] = set()
    for name in dependencies:
        if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
            raise AspectRenderError(aspect.name, where, "dependencies", f"{name!r} is not a valid dependency name")
        if name in ("self", "cls"):
            raise AspectRenderError(aspect.name, where, "dependencies", f"{name!r} names the method receiver")
        if name in seen:
            raise AspectRenderError(aspect.name, where, "dependencies", f"dependency {name!r} is declared twice")
        seen.add(name)


class _MethodBuilder:
    def __init__(
        self,
        aspect: Aspect,
        index: DirectiveIndex,
        imports: _ImportTable,
        base_expression: str,
        dependencies: tuple[str, ...],
    ) -> None:
        self._aspect = aspect
        self._index = index
        self._imports = imports
        self._base = base_expression
        self._dependencies = dependencies

    def build(self, method: MethodDescriptor, forward: bool = True) -> MethodNode:
        """Build the node of *method*; with *forward* False the delegate call gets no arguments."""
        where = f"{method.owner}.{method.name}"
        directives = self._index.for_method(method, self._aspect.schema)

        parameters = [
            ParameterNode(
                name=p.name,
                kind=p.kind,
                annotation=self._imports.annotation(p),
                default=self._default(method, p),
            )
            for p in method.parameters
        ]

        field_assignments: tuple[tuple[str, str], ...] = ()
        if self._dependencies and (method.is_constructor or method.is_allocator):
            existing = set(method.parameter_names)
            parameters = _append_injected(parameters, [d for d in self._dependencies if d not in existing])
            if method.is_constructor:
                field_assignments = tuple((d, d) for d in self._dependencies)

        decorator = None
        if method.is_static:
            decorator = "staticmethod"
        elif method.is_classmethod:
            decorator = "classmethod"

        return MethodNode(
            name=method.name,
            parameters=tuple(parameters),
            call=DelegateCallNode(
                receiver=self._base if method.is_static else "super()",
                method=method.name,
                arguments=_call_arguments(method.parameters) if forward else (),
                awaited=method.is_async,
            ),
            decorator=decorator,
            is_async=method.is_async,
            field_assignments=field_assignments,
            start=self._stage(Stage.START, method, directives, where),
            end=self._stage(Stage.END, method, directives, where),
            result_name=_free_name(RESULT_NAME, {p.name for p in parameters}),
        )

    def _default(self, method: MethodDescriptor, parameter: ParameterDescriptor) -> str | None:
        if not parameter.is_optional:
            return None
        if parameter.default_literal is not None:
            return parameter.default_literal
        return f"{DEFAULT_HELPER}({self._base}.{method.name}, {parameter.name!r})"

    def _stage(
        self,
        stage: Stage,
        method: MethodDescriptor,
        directives: Sequence[Directive],
        where: str,
    ) -> tuple[str, ...]:
        fragment = _guarded(
            self._aspect,
            where,
            stage.value,
            lambda: self._aspect.render_stage(stage, method, tuple(directives)),
        )
        if not isinstance(fragment, str):
            raise AspectRenderError(
                self._aspect.name, where, stage.value, f"fragment must be str, got {type(fragment).__name__}"
            )
        return normalize_fragment(fragment, self._aspect.name, where, stage.value)


def _guarded(aspect: Aspect, where: str, stage: str, call: Callable[[], T]) -> T:
    """Run aspect code, turning unexpected failures into AspectRenderError."""
    try:
        return call()
    except WeavingException:
        raise
    except Exception as exc:
        raise AspectRenderError(aspect.name, where, stage, str(exc) or type(exc).__name__) from exc


def normalize_fragment(fragment: str, aspect: str, where: str, stage: str) -> tuple[str, ...]:
    """Parse a fragment and return its statements as normalized source lines."""
    text = textwrap.dedent(fragment).strip()
    if not text:
        return ()
    try:
        tree = ast.parse(text)
    except SyntaxError as exc:
        raise AspectRenderError(aspect, where, stage, f"fragment is not valid Python: {exc.msg}") from exc
    return tuple(ast.unparse(tree).splitlines())


def _free_name(name: str, taken: set[str]) -> str:
    """*name*, prefixed with ``_woven_`` and then underscores until it is not in *taken*."""
    if name not in taken:
        return name
    candidate = f"_woven_{name}"
    while candidate in taken:
        candidate = f"_{candidate}"
    return candidate


def _append_injected(parameters: list[ParameterNode], names: list[str]) -> list[ParameterNode]:
    """Append optional dependency parameters, keeping ``**kwargs`` last.

    They are keyword-only when the signature already has ``*args`` or
    keyword-only parameters, positional-or-keyword otherwise.
    """
    if not names:
        return parameters
    keyword_only = any(p.kind in (ParameterKind.VAR_POSITIONAL, ParameterKind.KEYWORD_ONLY) for p in parameters)
    kind = ParameterKind.KEYWORD_ONLY if keyword_only else ParameterKind.POSITIONAL_OR_KEYWORD
    injected = [ParameterNode(name=n, kind=kind, default="None", injected=True) for n in names]
    head = [p for p in parameters if p.kind is not ParameterKind.VAR_KEYWORD]
    tail = [p for p in parameters if p.kind is ParameterKind.VAR_KEYWORD]
    return head + injected + tail


def _call_arguments(parameters: Sequence[ParameterDescriptor]) -> tuple[str, ...]:
    arguments: list[str] = []
    for p in parameters:
        if p.kind is ParameterKind.VAR_POSITIONAL:
            arguments.append(f"*{p.name}")
        elif p.kind is ParameterKind.VAR_KEYWORD:
            arguments.append(f"**{p.name}")
        elif p.kind is ParameterKind.KEYWORD_ONLY:
            arguments.append(f"{p.name}={p.name}")
        else:
            arguments.append(p.name)
    return tuple(arguments)


class _ImportTable:
    """Assigns collision-free local names to imported annotation types."""

    def __init__(self, reserved: set[str]) -> None:
        self._taken = set(reserved)
        self._aliases: dict[tuple[str, str], str] = {}

    def annotation(self, parameter: ParameterDescriptor) -> str | None:
        if parameter.container is not None:
            return parameter.container
        ref = parameter.declared_type
        if ref is None:
            return None
        root, _, nested = ref.qualname.partition(".")
        alias = self._alias(ref.module, root)
        return f"{alias}.{nested}" if nested else alias

    def _alias(self, module: str, name: str) -> str:
        key = (module, name)
        if key not in self._aliases:
            alias = name
            suffix = 1
            while alias in self._taken:
                alias = f"{name}_{suffix}"
                suffix += 1
            self._taken.add(alias)
            self._aliases[key] = alias
        return self._aliases[key]

    def nodes(self) -> tuple[ImportNode, ...]:
        return tuple(
            ImportNode(module=module, name=name, alias=alias)
            for (module, name), alias in sorted(self._aliases.items())
        )
