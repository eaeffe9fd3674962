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
"""DirectiveIndex — narrows a method's directives to one aspect's schema."""

from __future__ import annotations

from collections.abc import Iterable

from pyweave.aop.directives import DirectiveSchema
from pyweave.aop.types import Directive, MethodDescriptor


class DirectiveIndex:
    """Filters directives by schema kind, preserving declaration order.

    Usage::

        index = DirectiveIndex()
        relevant = index.filter(method.directives, aspect.schema)

    Only directives of the schema's kind are validated; foreign kinds are
    dropped untouched, so an aspect never sees (or fails on) directives it
    does not own.
    """

    def filter(
        self,
        directives: Iterable[Directive],
        schema: DirectiveSchema,
        method: str | None = None,
    ) -> list[Directive]:
        matching = [d for d in directives if d.schema_kind == schema.kind]
        for entry in matching:
            schema.validate(entry, method)
        return matching

    def for_method(self, method: MethodDescriptor, schema: DirectiveSchema) -> list[Directive]:
        """Return the directives on *method* relevant to *schema*."""
        return self.filter(method.directives, schema, f"{method.owner}.{method.name}")
