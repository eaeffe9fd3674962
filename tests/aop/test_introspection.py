"""Tests for target resolution and TypeDescriptor extraction."""

from __future__ import annotations

from typing import Annotated, Any, Optional

import pytest
from weaving_stubs import services
from weaving_stubs.my_class import MyClass
from weaving_stubs.payloads import Envelope, Payload

from pyweave.aop.introspection import (
    classify_annotation,
    extract_type_descriptor,
    is_woven,
    literal_source,
    resolve_target,
)
from pyweave.aop.types import ParameterKind, TypeReference
from pyweave.kernel.exceptions import TargetNotFoundError

PAYLOAD = TypeReference(module="weaving_stubs.payloads", qualname="Payload")


# ---------------------------------------------------------------------------
# resolve_target
# ---------------------------------------------------------------------------


class TestResolveTarget:
    def test_class_passes_through(self) -> None:
        assert resolve_target(MyClass) is MyClass

    @pytest.mark.parametrize(
        "identity",
        ["weaving_stubs.my_class.MyClass", "weaving_stubs.my_class:MyClass"],
    )
    def test_dotted_identities(self, identity: str) -> None:
        assert resolve_target(identity) is MyClass

    @pytest.mark.parametrize(
        "identity",
        ["weaving_stubs.services.Outer.Inner", "weaving_stubs.services:Outer.Inner"],
    )
    def test_nested_classes(self, identity: str) -> None:
        assert resolve_target(identity) is services.Outer.Inner

    @pytest.mark.parametrize(
        "identity",
        ["weaving_stubs.nowhere.Thing", "weaving_stubs.my_class.Missing", "nowhere_at_all:Thing", "Bare"],
    )
    def test_unknown_identities(self, identity: str) -> None:
        with pytest.raises(TargetNotFoundError) as exc_info:
            resolve_target(identity)
        assert exc_info.value.target == identity

    def test_non_class_attribute(self) -> None:
        with pytest.raises(TargetNotFoundError, match="not a class"):
            resolve_target("weaving_stubs.services:NotAClassHolder.value")

    def test_rejects_other_objects(self) -> None:
        with pytest.raises(TargetNotFoundError):
            resolve_target(42)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# extract_type_descriptor
# ---------------------------------------------------------------------------


class TestExtractTypeDescriptor:
    def test_names(self) -> None:
        descriptor = extract_type_descriptor(MyClass)
        assert descriptor.module == "weaving_stubs.my_class"
        assert descriptor.short_name == "MyClass"
        assert descriptor.qualified_name == "weaving_stubs.my_class.MyClass"

    def test_methods_in_declaration_order(self) -> None:
        descriptor = extract_type_descriptor(MyClass)
        assert [m.name for m in descriptor.methods] == ["__init__", "some"]

    def test_receiver_is_dropped(self) -> None:
        init = extract_type_descriptor(MyClass).method("__init__")
        assert init is not None
        assert init.parameter_names == ("a", "b")
        assert init.is_constructor

    def test_directives_in_source_order(self) -> None:
        init = extract_type_descriptor(MyClass).method("__init__")
        assert init is not None
        assert [(d.schema_kind, d.get("what")) for d in init.directives] == [
            ("log", "a"),
            ("log", "b"),
            ("log", "self.a"),
            ("trace", None),
        ]

    def test_object_typed_parameter(self) -> None:
        some = extract_type_descriptor(MyClass).method("some")
        assert some is not None
        (o,) = some.parameters
        assert o.declared_type == PAYLOAD
        assert not o.is_array_like

    def test_inherited_methods_follow_own_methods(self) -> None:
        descriptor = extract_type_descriptor(services.Derived)
        assert [m.name for m in descriptor.methods] == ["shared", "own", "ping"]
        assert all(m.owner == "weaving_stubs.services.Derived" for m in descriptor.methods)

    def test_override_keeps_most_derived_directives(self) -> None:
        shared = extract_type_descriptor(services.Derived).method("shared")
        assert shared is not None
        assert [d.get("what") for d in shared.directives] == ["self.kind"]

    def test_static_class_and_private_methods(self) -> None:
        descriptor = extract_type_descriptor(services.Greeter)
        names = [m.name for m in descriptor.methods]
        assert names == ["greet", "_secret", "shout", "create"]

        shout = descriptor.method("shout")
        create = descriptor.method("create")
        secret = descriptor.method("_secret")
        assert shout is not None and shout.is_static and shout.parameter_names == ("text",)
        assert create is not None and create.is_classmethod and create.parameter_names == ()
        assert secret is not None and not secret.is_public

    def test_async_methods(self) -> None:
        fetch = extract_type_descriptor(services.Repository).method("fetch")
        assert fetch is not None
        assert fetch.is_async

    def test_parameter_kinds_and_defaults(self) -> None:
        add = extract_type_descriptor(services.Calculator).method("add")
        assert add is not None
        assert [(p.name, p.kind, p.is_optional, p.default_literal) for p in add.parameters] == [
            ("value", ParameterKind.POSITIONAL_ONLY, False, None),
            ("scale", ParameterKind.POSITIONAL_OR_KEYWORD, True, "1"),
            ("offset", ParameterKind.KEYWORD_ONLY, True, "0"),
        ]

    def test_variadic_parameters(self) -> None:
        total = extract_type_descriptor(services.Calculator).method("total")
        assert total is not None
        assert [(p.name, p.kind) for p in total.parameters] == [
            ("values", ParameterKind.VAR_POSITIONAL),
            ("options", ParameterKind.VAR_KEYWORD),
        ]

    def test_non_literal_default_is_optional_without_literal(self) -> None:
        lookup = extract_type_descriptor(services.Calculator).method("lookup")
        assert lookup is not None
        fallback = lookup.parameters[1]
        assert fallback.is_optional
        assert fallback.default_literal is None

    def test_container_parameters(self) -> None:
        collect = extract_type_descriptor(services.Calculator).method("collect")
        assert collect is not None
        assert [(p.container, p.default_literal) for p in collect.parameters] == [
            ("list", None),
            ("dict", "None"),
            ("tuple", "('a', 'b')"),
        ]

    def test_nested_and_aliased_types(self) -> None:
        wrap = extract_type_descriptor(services.Calculator).method("wrap")
        assert wrap is not None
        assert [p.declared_type for p in wrap.parameters] == [
            PAYLOAD,
            TypeReference(module="weaving_stubs.payloads", qualname="Envelope.Payload"),
            PAYLOAD,
        ]

    def test_properties_and_attributes_are_not_methods(self) -> None:
        descriptor = extract_type_descriptor(services.Greeter)
        assert descriptor.method("loud") is None
        assert descriptor.method("greeting") is None

    @pytest.mark.parametrize(
        ("cls", "native_init", "native_new"),
        [
            (services.Greeter, False, False),
            (services.Allocated, False, False),
            (services.Amount, False, True),
            (services.Bag, True, True),
        ],
    )
    def test_builtin_constructors_are_reported(self, cls: type, native_init: bool, native_new: bool) -> None:
        descriptor = extract_type_descriptor(cls)
        assert (descriptor.native_init, descriptor.native_new) == (native_init, native_new)

    def test_declared_allocator_is_a_static_method(self) -> None:
        allocator = extract_type_descriptor(services.Allocated).method("__new__")
        assert allocator is not None
        assert allocator.is_static
        assert allocator.is_allocator
        assert allocator.parameter_names == ("cls", "size")

    def test_local_classes_rejected(self) -> None:
        class Local:
            def run(self):
                pass

        with pytest.raises(TargetNotFoundError, match="inside a function"):
            extract_type_descriptor(Local)

    def test_unresolvable_hints_fall_back_to_untyped(self) -> None:
        def run(self, a: "DoesNotExist", b: Payload):  # noqa: F821
            pass

        class Holder:
            pass

        Holder.run = run  # type: ignore[attr-defined]
        Holder.__qualname__ = "Holder"
        descriptor = extract_type_descriptor(Holder)
        method = descriptor.method("run")
        assert method is not None
        assert [p.declared_type for p in method.parameters] == [None, None]


class TestIsWoven:
    def test_plain_class(self) -> None:
        assert not is_woven(MyClass)

    def test_subclass_of_woven_is_not_woven(self) -> None:
        class Woven(MyClass):
            __pyweave_target__ = "weaving_stubs.my_class.MyClass"

        class Sub(Woven):
            pass

        assert is_woven(Woven)
        assert not is_woven(Sub)


# ---------------------------------------------------------------------------
# classify_annotation / literal_source
# ---------------------------------------------------------------------------


class TestClassifyAnnotation:
    @pytest.mark.parametrize(
        ("hint", "expected"),
        [
            (None, (None, None)),
            (int, (None, None)),
            (str, (None, None)),
            (Any, (None, None)),
            (list, (None, "list")),
            (list[int], (None, "list")),
            (dict[str, int], (None, "dict")),
            (frozenset, (None, "frozenset")),
            (Optional[tuple], (None, "tuple")),
            (Payload, (PAYLOAD, None)),
            (Payload | None, (PAYLOAD, None)),
            (Annotated[Payload, "meta"], (PAYLOAD, None)),
            (Payload | int, (None, None)),
        ],
    )
    def test_classification(self, hint: Any, expected: tuple[Any, Any]) -> None:
        assert classify_annotation(hint) == expected

    def test_nested_class(self) -> None:
        ref, _ = classify_annotation(Envelope.Payload)
        assert ref == TypeReference(module="weaving_stubs.payloads", qualname="Envelope.Payload")


class TestLiteralSource:
    @pytest.mark.parametrize("value", [None, True, 0, 1.5, "text", b"raw", (1, "a"), [1, 2], {"k": 1}])
    def test_literal_values(self, value: Any) -> None:
        assert literal_source(value) == repr(value)

    @pytest.mark.parametrize("value", [object(), float("nan"), frozenset(), services.MISSING, Payload])
    def test_non_literal_values(self, value: Any) -> None:
        assert literal_source(value) is None
