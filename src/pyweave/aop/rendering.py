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
"""Jinja2-based renderer turning the wrapper IR into module source."""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, PackageLoader

from pyweave.aop.synthesis import DEFAULT_HELPER, TARGET_ALIAS, ClassNode, MethodNode, ParameterNode
from pyweave.aop.types import ParameterKind

_TEMPLATE = "proxy_module.py.j2"


def _get_env() -> Environment:
    return Environment(
        loader=PackageLoader("pyweave.aop", "templates"),
        keep_trailing_newline=True,
        lstrip_blocks=True,
        trim_blocks=True,
    )


def render_module(node: ClassNode) -> str:
    """Render *node* to the source text of the wrapper module."""
    return _get_env().get_template(_TEMPLATE).render(_build_context(node))


def _build_context(node: ClassNode) -> dict[str, Any]:
    imports = [f"from {node.target_module} import {node.target_root} as {TARGET_ALIAS}"]
    if node.uses_default_helper:
        imports.append(f"from pyweave.aop.runtime import {DEFAULT_HELPER}")
    for imp in node.imports:
        alias = f" as {imp.alias}" if imp.alias != imp.name else ""
        imports.append(f"from {imp.module} import {imp.name}{alias}")

    return {
        "target": node.target_qualified_name,
        "aspect": node.aspect,
        "imports": sorted(imports),
        "short_name": node.short_name,
        "base": node.base_expression,
        "target_literal": repr(node.target_qualified_name),
        "dependencies_literal": repr(node.dependencies),
        "methods": [_method_context(m) for m in node.methods],
    }


def _method_context(method: MethodNode) -> dict[str, Any]:
    receiver = None
    if method.decorator == "classmethod":
        receiver = "cls"
    elif method.decorator != "staticmethod":
        receiver = "self"

    prefix = "async def" if method.is_async else "def"
    signature = render_signature(method.parameters, receiver)

    call = method.call
    expression = f"{call.receiver}.{call.method}({', '.join(call.arguments)})"
    if call.awaited:
        expression = f"await {expression}"

    body = [f"self.{attribute} = {parameter}" for attribute, parameter in method.field_assignments]
    body.extend(method.start)
    body.append(f"{method.result_name} = {expression}")
    body.extend(method.end)
    body.append(f"return {method.result_name}")

    return {
        "decorator": method.decorator,
        "def_line": f"{prefix} {method.name}({signature}):",
        "body": body,
    }


def render_signature(parameters: tuple[ParameterNode, ...], receiver: str | None = None) -> str:
    """Render a parameter list, inserting ``/`` and ``*`` markers where needed."""
    rendered: list[str] = []
    if receiver is not None:
        rendered.append(receiver)

    star_seen = False
    for i, p in enumerate(parameters):
        if p.kind is ParameterKind.KEYWORD_ONLY and not star_seen:
            rendered.append("*")
            star_seen = True

        if p.kind is ParameterKind.VAR_POSITIONAL:
            text = f"*{p.name}"
            star_seen = True
        elif p.kind is ParameterKind.VAR_KEYWORD:
            text = f"**{p.name}"
        else:
            text = p.name

        if p.annotation is not None:
            text += f": {p.annotation}"
        if p.default is not None:
            text += f" = {p.default}" if p.annotation is not None else f"={p.default}"
        rendered.append(text)

        following = parameters[i + 1] if i + 1 < len(parameters) else None
        if p.kind is ParameterKind.POSITIONAL_ONLY and (
            following is None or following.kind is not ParameterKind.POSITIONAL_ONLY
        ):
            rendered.append("/")

    return ", ".join(rendered)
