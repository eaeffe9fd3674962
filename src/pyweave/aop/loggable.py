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
"""LoggableAspect — logs parameters and fields at the start or end of methods.

Directive vocabulary (kind ``"log"``):

* ``what``: a parameter name or a ``self.``-rooted attribute path.
* ``when``: ``start`` or ``end``.
* ``with``: name of the logger to emit through (defaults to the woven
  type's qualified name).
* ``as``: message template with one ``%s`` placeholder (defaults to ``%s``).

Example::

    class Account:
        @log(what="amount", when="start", with_="audit", as_="depositing %s")
        @log(what="self.balance", when="end", as_="balance is now %s")
        def deposit(self, amount): ...
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import TypeVar

from pyweave.aop.aspect import Aspect
from pyweave.aop.directives import DirectiveSchema, directive
from pyweave.aop.types import Directive, MethodDescriptor, Stage

F = TypeVar("F")

LOG_SCHEMA = DirectiveSchema(
    kind="log",
    required=frozenset({"what", "when"}),
    optional=frozenset({"with", "as"}),
    choices={"when": (Stage.START.value, Stage.END.value)},
)

_EXPRESSION_RE = re.compile(r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*")


def log(*, what: str, when: str, with_: str | None = None, as_: str | None = None) -> Callable[[F], F]:
    """Shortcut for ``@directive("log", ...)``."""
    attributes = {"what": what, "when": when}
    if with_ is not None:
        attributes["with_"] = with_
    if as_ is not None:
        attributes["as_"] = as_
    return directive(LOG_SCHEMA.kind, **attributes)


class LoggableAspect(Aspect):
    """Emits ``info`` log calls through an injected :class:`LoggingPort`."""

    schema = LOG_SCHEMA

    def __init__(self, dependency: str = "logger") -> None:
        self._dependency = dependency

    def dependencies(self) -> Sequence[str]:
        return (self._dependency,)

    def render_stage(self, stage: Stage, method: MethodDescriptor, directives: Sequence[Directive]) -> str:
        selected = [d for d in directives if d.get("when") == stage.value]
        if not selected:
            return ""
        if method.is_static or method.is_classmethod:
            raise ValueError("log directives need an instance method to reach the injected logger")

        port = f"self.{self._dependency}"
        lines = [f"if {port} is not None:"]
        for entry in selected:
            expression = self._expression(entry.get("what", ""), method)
            channel = entry.get("with") or method.owner
            template = entry.get("as") or "%s"
            try:
                template % ("",)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"'as' must hold exactly one %s placeholder, got {template!r}") from exc
            lines.append(f"    {port}.get_logger({channel!r}).info({template!r} % ({expression},))")
        return "\n".join(lines)

    @staticmethod
    def _expression(what: str, method: MethodDescriptor) -> str:
        if not _EXPRESSION_RE.fullmatch(what):
            raise ValueError(f"'what' must be a parameter name or a self attribute path, got {what!r}")
        root = what.split(".", 1)[0]
        if root != "self" and root not in method.parameter_names:
            raise ValueError(f"'what' refers to {root!r}, which is not a parameter of {method.name}()")
        return what
