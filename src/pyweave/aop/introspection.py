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
"""Target resolution and structural extraction of classes into TypeDescriptors."""

from __future__ import annotations

import ast
import importlib
import inspect
import sys
import types
import typing
from typing import Annotated, Any, Union, get_args, get_origin

from pyweave.aop.directives import AttributeDirectiveReader, DirectiveReader
from pyweave.aop.types import MethodDescriptor, ParameterDescriptor, ParameterKind, TypeDescriptor, TypeReference
from pyweave.kernel.exceptions import TargetNotFoundError

WOVEN_TARGET_ATTR = "__pyweave_target__"
WOVEN_DEPENDENCIES_ATTR = "__pyweave_dependencies__"

_CONTAINERS: dict[type, str] = {
    list: "list",
    tuple: "tuple",
    dict: "dict",
    set: "set",
    frozenset: "frozenset",
}

# Classes whose members are never part of a woven type.
_SKIPPED_MODULES = frozenset({"builtins", "typing", "typing_extensions"})


# ---------------------------------------------------------------------------
# Target resolution
# ---------------------------------------------------------------------------


def resolve_target(target: type | str) -> type:
    """Resolve *target* to a class.

    Accepts a class, ``"pkg.module:Qual.Name"`` or ``"pkg.module.Name"``.
    Raises :class:`TargetNotFoundError` when nothing importable matches.
    """
    if isinstance(target, type):
        return target
    if not isinstance(target, str) or not target:
        raise TargetNotFoundError(repr(target), "expected a class or a dotted type identity")

    if ":" in target:
        module_name, _, qualname = target.partition(":")
        module = _import_module(target, module_name)
        if module is None:
            raise TargetNotFoundError(target, f"module '{module_name}' not found")
        return _walk(target, module, qualname.split("."))

    parts = target.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module = _import_module(target, ".".join(parts[:split]))
        if module is not None:
            return _walk(target, module, parts[split:])
    raise TargetNotFoundError(target, "no importable module in identity")


def _import_module(target: str, module_name: str) -> types.ModuleType | None:
    if module_name in sys.modules:
        return sys.modules[module_name]
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        if exc.name and (module_name == exc.name or module_name.startswith(exc.name + ".")):
            return None
        raise TargetNotFoundError(target, f"importing '{module_name}' failed: {exc}") from exc
    except ImportError as exc:
        raise TargetNotFoundError(target, f"importing '{module_name}' failed: {exc}") from exc


def _walk(target: str, module: types.ModuleType, path: list[str]) -> type:
    obj: Any = module
    for attr in path:
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise TargetNotFoundError(target, f"'{attr}' not found in {getattr(obj, '__name__', obj)!r}") from None
    if not isinstance(obj, type):
        raise TargetNotFoundError(target, f"resolved to {type(obj).__name__}, not a class")
    return obj


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def is_woven(cls: type) -> bool:
    """Whether *cls* itself (not a base) was produced by the weaver."""
    return WOVEN_TARGET_ATTR in vars(cls)


def extract_type_descriptor(cls: type, reader: DirectiveReader | None = None) -> TypeDescriptor:
    """Describe every method of *cls* with its parameters and directives.

    Methods are collected along the MRO (``object`` and typing internals
    excluded): the most-derived declarations first, in source order, then
    names only declared on bases. A name claimed by a non-method attribute
    in a more-derived class is not a method of *cls*. Builtin bases only
    report whether they supply ``__init__`` or ``__new__``.
    """
    if "<locals>" in cls.__qualname__:
        raise TargetNotFoundError(
            f"{cls.__module__}.{cls.__qualname__}",
            "classes defined inside a function cannot be imported by a woven module",
        )

    reader = reader or AttributeDirectiveReader()
    owner = f"{cls.__module__}.{cls.__qualname__}"
    claimed: set[str] = set()
    methods: list[MethodDescriptor] = []
    native: set[str] = set()

    for klass in cls.__mro__:
        if klass is object:
            continue
        if klass.__module__ in _SKIPPED_MODULES:
            if klass.__module__ == "builtins":
                native.update(n for n in ("__init__", "__new__") if n in vars(klass))
            continue
        for name, raw in vars(klass).items():
            if name in claimed:
                continue
            claimed.add(name)
            method = _describe_method(cls, owner, name, raw, reader)
            if method is not None:
                methods.append(method)

    return TypeDescriptor(
        module=cls.__module__,
        qualname=cls.__qualname__,
        methods=tuple(methods),
        native_init="__init__" in native,
        native_new="__new__" in native,
    )


def _describe_method(
    cls: type,
    owner: str,
    name: str,
    raw: Any,
    reader: DirectiveReader,
) -> MethodDescriptor | None:
    is_static = isinstance(raw, staticmethod)
    is_classmethod = isinstance(raw, classmethod)
    function = raw.__func__ if is_static or is_classmethod else raw
    if not isinstance(function, types.FunctionType):
        return None

    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return None

    params = list(signature.parameters.values())
    if not is_static:
        # The receiver must be a plain positional parameter we can drop.
        if not params or params[0].kind not in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            return None
        params = params[1:]

    hints = _type_hints(function)
    return MethodDescriptor(
        name=name,
        owner=owner,
        parameters=tuple(_describe_parameter(p, hints.get(p.name)) for p in params),
        directives=tuple(reader.get_method_directives(_directive_source(cls, name, function))),
        is_static=is_static,
        is_classmethod=is_classmethod,
        is_async=inspect.iscoroutinefunction(function),
    )


def _directive_source(cls: type, name: str, fallback: Any) -> Any:
    """Find the nearest definition of *name* that was not generated by the weaver.

    Chained wrappers re-declare every method without directives; the
    directives of the original declaration stay authoritative.
    """
    for klass in cls.__mro__:
        if name in vars(klass) and not is_woven(klass):
            raw = vars(klass)[name]
            return raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
    return fallback


def _type_hints(function: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(function)
    except (NameError, TypeError, AttributeError, SyntaxError):
        annotations = getattr(function, "__annotations__", {}) or {}
        return {k: v for k, v in annotations.items() if not isinstance(v, str)}


def _describe_parameter(parameter: inspect.Parameter, hint: Any) -> ParameterDescriptor:
    declared_type, container = classify_annotation(hint)
    is_optional = parameter.default is not inspect.Parameter.empty
    return ParameterDescriptor(
        name=parameter.name,
        kind=ParameterKind(parameter.kind.name.lower()),
        declared_type=declared_type,
        container=container,
        is_optional=is_optional,
        default_literal=literal_source(parameter.default) if is_optional else None,
    )


def classify_annotation(hint: Any) -> tuple[TypeReference | None, str | None]:
    """Split an annotation into ``(object type reference, container name)``.

    ``Optional[X]`` unwraps to ``X``. Builtin containers and their generic
    aliases are array-like. Importable non-builtin classes become a
    :class:`TypeReference`. Anything else is untyped.
    """
    if hint is None:
        return None, None

    origin = get_origin(hint)
    if origin is Annotated:
        return classify_annotation(get_args(hint)[0])
    if origin is Union or isinstance(hint, types.UnionType):
        members = [a for a in get_args(hint) if a is not type(None)]
        if len(members) != 1:
            return None, None
        return classify_annotation(members[0])

    base = origin if origin is not None else hint
    if base in _CONTAINERS:
        return None, _CONTAINERS[base]
    if isinstance(base, type) and base.__module__ not in _SKIPPED_MODULES and "<locals>" not in base.__qualname__:
        return TypeReference(module=base.__module__, qualname=base.__qualname__), None
    return None, None


def literal_source(value: Any) -> str | None:
    """Return ``repr(value)`` if it evaluates back to an equal value of the same type."""
    text = repr(value)
    try:
        restored = ast.literal_eval(text)
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError):
        return None
    if type(restored) is not type(value) or restored != value:
        return None
    return text
