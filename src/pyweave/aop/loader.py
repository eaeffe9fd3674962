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
"""ProxyClassLoader — imports woven modules from the proxy directory."""

from __future__ import annotations

import ast
import importlib.machinery
import importlib.util
import sys
import types
from pathlib import Path

import structlog

from pyweave.aop.types import WovenTypeIdentity
from pyweave.kernel.exceptions import TargetNotFoundError

logger = structlog.get_logger("pyweave.aop.loader")


class WovenSourceLoader(importlib.machinery.SourceFileLoader):
    """Source loader that compiles from the file on every load.

    The default ``get_code`` may reuse a ``.pyc`` whose recorded mtime and
    size still match a regenerated wrapper.
    """

    def get_code(self, fullname: str) -> types.CodeType:
        path = self.get_filename(fullname)
        return self.source_to_code(self.get_data(path), path)


class ProxyClassLoader:
    """Loads woven classes straight from their source files.

    Modules are compiled from the current file content on every load, so a
    regenerated wrapper is never served from stale bytecode. Woven modules
    that extend other woven modules (chained aspects) have their bases
    loaded first from the same root.
    """

    def __init__(self, root: str | Path, namespace: str) -> None:
        self._root = Path(root)
        self._namespace = namespace

    def path_for(self, module_name: str) -> Path:
        return self._root.joinpath(*module_name.split(".")).with_suffix(".py")

    def load(self, identity: WovenTypeIdentity) -> type:
        module = self._load_module(identity.module, set())
        cls = getattr(module, identity.short_name, None)
        if not isinstance(cls, type):
            raise TargetNotFoundError(identity.qualified_name, "woven module does not define the class")
        return cls

    def _load_module(self, name: str, loading: set[str]) -> types.ModuleType:
        path = self.path_for(name)
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TargetNotFoundError(name, f"no woven module at {path}") from exc

        loading.add(name)
        for dependency in self._woven_imports(name, source):
            if dependency not in loading and self.path_for(dependency).is_file():
                self._load_module(dependency, loading)

        loader = WovenSourceLoader(name, str(path))
        spec = importlib.util.spec_from_file_location(name, path, loader=loader)
        if spec is None:
            raise TargetNotFoundError(name, f"cannot build a module spec for {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(name, None)
            raise TargetNotFoundError(name, f"executing woven module failed: {exc}") from exc

        logger.debug("woven_module_loaded", module=name, path=str(path))
        return module

    def _woven_imports(self, name: str, source: str) -> list[str]:
        try:
            tree = ast.parse(source)
        except SyntaxError as exc:
            raise TargetNotFoundError(name, f"woven module is not valid Python: {exc.msg}") from exc
        prefix = f"{self._namespace}."
        return [
            node.module
            for node in tree.body
            if isinstance(node, ast.ImportFrom) and node.module and node.module.startswith(prefix)
        ]
