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
"""Output sinks persisting woven module source."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from pyweave.aop.types import WovenTypeIdentity
from pyweave.kernel.exceptions import WriteFailedError


@runtime_checkable
class OutputSink(Protocol):
    """Port for persisting woven source keyed by identity."""

    def write(self, identity: WovenTypeIdentity, source_text: str) -> Path: ...


class FileSystemOutputSink:
    """Writes each woven module to ``<root>/<module path>.py``.

    Directory creation tolerates existing directories, and the file is
    replaced atomically, so parallel writers of the same identity settle
    on last-writer-wins without errors.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, identity: WovenTypeIdentity) -> Path:
        return self._root.joinpath(*identity.module.split(".")).with_suffix(".py")

    def write(self, identity: WovenTypeIdentity, source_text: str) -> Path:
        path = self.path_for(identity)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(source_text)
                # mkstemp creates 0600 files
                os.chmod(tmp_name, 0o644)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise WriteFailedError(str(path), exc.strerror or str(exc)) from exc
        return path
