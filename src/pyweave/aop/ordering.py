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
"""Aspect weaving order — @order decorator and precedence constants.

In a chain of woven wrappers the aspect with the lowest order is woven
first and sits closest to the original class. The highest order ends up
outermost, so its ``start`` fragment runs first and its ``end`` fragment
runs last.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T", bound=type)

ORDER_ATTR = "__pyweave_order__"

HIGHEST_PRECEDENCE: int = -(2**31)
LOWEST_PRECEDENCE: int = 2**31 - 1


def order(value: int) -> Callable[[T], T]:
    """Set the weaving order of an aspect class (undecorated aspects have 0)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"@order() takes an int, got {type(value).__name__}")

    def decorator(cls: T) -> T:
        setattr(cls, ORDER_ATTR, value)
        return cls

    return decorator


def get_order(aspect: Any) -> int:
    """Order of an aspect instance or class."""
    cls = aspect if isinstance(aspect, type) else type(aspect)
    return getattr(cls, ORDER_ATTR, 0)
