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
"""Unified exception hierarchy for PyWeave.

All errors raised by the weaving engine inherit from PyWeaveException so
callers (typically a DI bootstrap) can treat any weave failure uniformly,
or catch a specific subclass to report the failing binding.

Categories:
- TargetNotFoundError: the target type cannot be resolved or introspected
- SchemaMismatchError: a directive does not satisfy its declared schema
- AspectRenderError: an aspect failed while producing a stage fragment
- WriteFailedError: the output sink could not persist the woven source
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class PyWeaveException(Exception):
    """Base exception for all PyWeave errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "WEAVE_WRITE_FAILED").
        context: Arbitrary key-value pairs describing the failing weave.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


class WeavingException(PyWeaveException):
    """A single weave call failed; no wrapper was written for it."""


# =============================================================================
# Weaving Exceptions
# =============================================================================


class TargetNotFoundError(WeavingException):
    """The target type identity could not be resolved or extracted."""

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(
            message=f"Cannot weave '{target}': {reason}",
            code="WEAVE_TARGET_NOT_FOUND",
            context={"target": target},
        )


class SchemaMismatchError(WeavingException):
    """A directive's attributes do not satisfy its schema."""

    def __init__(self, kind: str, attribute: str, reason: str, method: str | None = None) -> None:
        self.kind = kind
        self.attribute = attribute
        self.reason = reason
        self.method = method
        where = f" on '{method}'" if method else ""
        super().__init__(
            message=f"Directive '{kind}'{where}, attribute '{attribute}': {reason}",
            code="WEAVE_SCHEMA_MISMATCH",
            context={"kind": kind, "attribute": attribute, "method": method},
        )


class AspectRenderError(WeavingException):
    """An aspect raised while rendering a stage fragment."""

    def __init__(self, aspect: str, method: str, stage: str, reason: str) -> None:
        self.aspect = aspect
        self.method = method
        self.stage = stage
        self.reason = reason
        super().__init__(
            message=f"Aspect '{aspect}' failed to render '{stage}' of '{method}': {reason}",
            code="WEAVE_ASPECT_RENDER",
            context={"aspect": aspect, "method": method, "stage": stage},
        )


class WriteFailedError(WeavingException):
    """The woven source could not be written to its location."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            message=f"Failed to write woven source to '{path}': {reason}",
            code="WEAVE_WRITE_FAILED",
            context={"path": path},
        )
