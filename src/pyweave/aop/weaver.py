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
"""AOP weaver — synthesizes wrapper classes instrumented by aspects."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from pyweave.aop.aspect import Aspect
from pyweave.aop.directives import AttributeDirectiveReader, DirectiveReader
from pyweave.aop.index import DirectiveIndex
from pyweave.aop.introspection import extract_type_descriptor, resolve_target
from pyweave.aop.loader import ProxyClassLoader
from pyweave.aop.properties import WeaverProperties
from pyweave.aop.rendering import render_module
from pyweave.aop.sink import FileSystemOutputSink, OutputSink
from pyweave.aop.synthesis import build_class_node
from pyweave.aop.types import TypeDescriptor, WovenType, WovenTypeIdentity
from pyweave.core.config import Config
from pyweave.kernel.exceptions import WeavingException

logger = structlog.get_logger("pyweave.aop.weaver")

NESTED_SEPARATOR = "__"


class Weaver:
    """Weaves aspects into target classes and writes the wrappers to disk.

    Usage::

        weaver = Weaver("build/pyweave")
        identity = weaver.weave(OrderService, LoggableAspect())
        WovenOrderService = weaver.load(identity)

    Weaving is synchronous and deterministic: the same target, directives
    and aspect always produce byte-identical source. A failing weave writes
    nothing; previously written wrappers are left untouched.
    """

    def __init__(
        self,
        proxy_directory: str | Path,
        *,
        proxy_namespace: str = "pyweave_proxy",
        reader: DirectiveReader | None = None,
        sink: OutputSink | None = None,
        loader: ProxyClassLoader | None = None,
    ) -> None:
        if not all(part.isidentifier() for part in proxy_namespace.split(".")):
            raise ValueError(f"proxy_namespace must be a dotted module path, got {proxy_namespace!r}")
        self._proxy_directory = Path(proxy_directory)
        self._namespace = proxy_namespace
        self._reader = reader or AttributeDirectiveReader()
        self._index = DirectiveIndex()
        self._sink = sink or FileSystemOutputSink(self._proxy_directory)
        self._loader = loader or ProxyClassLoader(self._proxy_directory, proxy_namespace)

    @classmethod
    def from_config(cls, config: Config, **kwargs: object) -> Weaver:
        """Build a weaver from the ``pyweave.weaver`` configuration section."""
        props = config.bind(WeaverProperties)
        return cls(props.proxy_directory, proxy_namespace=props.proxy_namespace, **kwargs)  # type: ignore[arg-type]

    @property
    def proxy_directory(self) -> Path:
        return self._proxy_directory

    @property
    def proxy_namespace(self) -> str:
        return self._namespace

    def identity_for(self, descriptor: TypeDescriptor) -> WovenTypeIdentity:
        """Derive the wrapper identity: the target's path under the proxy namespace.

        Nested classes are flattened into one module name (``Outer.Inner``
        becomes ``Outer__Inner``), so a woven ``Outer`` module and a woven
        ``Outer.Inner`` module can sit side by side and both import normally.
        """
        flat = descriptor.qualname.replace(".", NESTED_SEPARATOR)
        return WovenTypeIdentity(
            module=f"{self._namespace}.{descriptor.module}.{flat}",
            short_name=descriptor.short_name,
        )

    def render(self, target: type | str, aspect: Aspect) -> tuple[WovenTypeIdentity, str]:
        """Synthesize the wrapper source without writing it."""
        cls = resolve_target(target)
        descriptor = extract_type_descriptor(cls, self._reader)
        identity = self.identity_for(descriptor)
        node = build_class_node(descriptor, aspect, identity, self._index)
        return identity, render_module(node)

    def weave_type(self, target: type | str, aspect: Aspect) -> WovenType:
        """Weave *aspect* into *target* and write the wrapper; return it."""
        target_name = _display_name(target)
        log = logger.bind(target=target_name, aspect=aspect.name)
        log.debug("weave_started")
        try:
            identity, source = self.render(target, aspect)
            path = self._sink.write(identity, source)
        except WeavingException as exc:
            log.error("weave_failed", code=exc.code, error=str(exc))
            raise
        log.info("weave_completed", identity=identity.qualified_name, path=str(path))
        return WovenType(identity=identity, source_text=source, path=path)

    def weave(self, target: type | str, aspect: Aspect) -> WovenTypeIdentity:
        """Weave *aspect* into *target*; return the wrapper's identity."""
        return self.weave_type(target, aspect).identity

    def weave_all(self, target: type | str, aspects: Iterable[Aspect]) -> WovenTypeIdentity:
        """Chain several aspects: each wrapper extends the previous one.

        *aspects* may be an :class:`~pyweave.aop.registry.AspectRegistry`,
        which yields aspects sorted by ``@order``.
        """
        chain = list(aspects)
        if not chain:
            raise ValueError("weave_all() needs at least one aspect")

        identity = self.weave(target, chain[0])
        for aspect in chain[1:]:
            identity = self.weave(self.load(identity), aspect)
        return identity

    def load(self, identity: WovenTypeIdentity) -> type:
        """Import the woven class named by *identity*."""
        return self._loader.load(identity)


def _display_name(target: type | str) -> str:
    if isinstance(target, type):
        return f"{target.__module__}.{target.__qualname__}"
    return str(target)
