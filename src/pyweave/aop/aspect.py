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
"""Aspect — the contract every pluggable aspect implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pyweave.aop.directives import DirectiveSchema
from pyweave.aop.types import Directive, MethodDescriptor, Stage


class Aspect(ABC):
    """Base class for aspects contributing code to woven methods.

    Subclasses declare the directive ``schema`` they consume and render a
    Python statement fragment for each stage of each method. The weaver
    passes only directives of this aspect's kind, already validated
    against ``schema``.

    Fragments may reference the method's parameters by name, ``self`` (or
    ``cls``) for non-static methods, and ``result`` in the ``end`` stage.
    Names returned by :meth:`dependencies` are available as attributes of
    the instance, injected through the woven constructor.
    """

    schema: DirectiveSchema

    @property
    def schema_kind(self) -> str:
        return self.schema.kind

    @property
    def name(self) -> str:
        return type(self).__name__

    def dependencies(self) -> Sequence[str]:
        """Names of collaborator services injected into the woven constructor."""
        return ()

    @abstractmethod
    def render_stage(self, stage: Stage, method: MethodDescriptor, directives: Sequence[Directive]) -> str:
        """Return the fragment to run at *stage* of *method* (may be empty)."""
