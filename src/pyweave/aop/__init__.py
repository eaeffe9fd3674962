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
"""Aspect weaving for PyWeave."""

from pyweave.aop.aspect import Aspect
from pyweave.aop.directives import AttributeDirectiveReader, DirectiveReader, DirectiveSchema, directive
from pyweave.aop.index import DirectiveIndex
from pyweave.aop.introspection import extract_type_descriptor, resolve_target
from pyweave.aop.loader import ProxyClassLoader
from pyweave.aop.loggable import LoggableAspect, log
from pyweave.aop.ordering import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE, order
from pyweave.aop.properties import WeaverProperties
from pyweave.aop.registry import AspectRegistry
from pyweave.aop.sink import FileSystemOutputSink, OutputSink
from pyweave.aop.types import (
    Directive,
    MethodDescriptor,
    ParameterDescriptor,
    ParameterKind,
    Stage,
    TypeDescriptor,
    TypeReference,
    WovenType,
    WovenTypeIdentity,
)
from pyweave.aop.weaver import Weaver

__all__ = [
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "Aspect",
    "AspectRegistry",
    "AttributeDirectiveReader",
    "Directive",
    "DirectiveIndex",
    "DirectiveReader",
    "DirectiveSchema",
    "FileSystemOutputSink",
    "LoggableAspect",
    "MethodDescriptor",
    "OutputSink",
    "ParameterDescriptor",
    "ParameterKind",
    "ProxyClassLoader",
    "Stage",
    "TypeDescriptor",
    "TypeReference",
    "Weaver",
    "WeaverProperties",
    "WovenType",
    "WovenTypeIdentity",
    "directive",
    "extract_type_descriptor",
    "log",
    "order",
    "resolve_target",
]
