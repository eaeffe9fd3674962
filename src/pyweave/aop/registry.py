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
"""AspectRegistry — collects aspects in the order they are woven."""

from __future__ import annotations

from collections.abc import Iterator

from pyweave.aop.aspect import Aspect
from pyweave.aop.ordering import get_order


class AspectRegistry:
    """Registry of aspect instances, kept sorted by :func:`get_order`.

    Aspects with equal order keep their registration order. Iterating the
    registry yields aspects in weaving order::

        registry = AspectRegistry()
        registry.register(LoggableAspect())
        registry.register(TimingAspect())

        identity = weaver.weave_all(OrderService, registry)
    """

    def __init__(self) -> None:
        self._aspects: list[Aspect] = []

    def register(self, aspect: Aspect) -> None:
        if not isinstance(aspect, Aspect):
            raise TypeError(f"{type(aspect).__name__} does not implement Aspect")
        self._aspects.append(aspect)
        self._aspects.sort(key=get_order)

    def get_all(self) -> list[Aspect]:
        return list(self._aspects)

    def get_by_kind(self, schema_kind: str) -> list[Aspect]:
        """Return registered aspects consuming directives of *schema_kind*."""
        return [a for a in self._aspects if a.schema_kind == schema_kind]

    def __iter__(self) -> Iterator[Aspect]:
        return iter(self.get_all())

    def __len__(self) -> int:
        return len(self._aspects)
