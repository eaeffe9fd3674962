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
"""Helpers imported by woven modules at runtime."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any


def original_default(function: Callable[..., Any], name: str) -> Any:
    """Return the default value of parameter *name* of *function*.

    Woven signatures use this for defaults without a literal form, so the
    wrapper shares the very same default object as the original.
    """
    parameter = inspect.signature(function).parameters[name]
    if parameter.default is inspect.Parameter.empty:
        raise LookupError(f"Parameter '{name}' of {function!r} has no default")
    return parameter.default
