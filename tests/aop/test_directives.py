"""Tests for directive declaration, readers and schemas."""

from __future__ import annotations

import pytest

from pyweave.aop.directives import (
    DIRECTIVES_ATTR,
    AttributeDirectiveReader,
    DirectiveReader,
    DirectiveSchema,
    directive,
)
from pyweave.aop.types import Directive
from pyweave.kernel.exceptions import SchemaMismatchError


class TestDirectiveDecorator:
    def test_attaches_directive(self) -> None:
        @directive("log", what="a", when="start")
        def fn(a):
            return a

        assert getattr(fn, DIRECTIVES_ATTR) == (Directive("log", {"what": "a", "when": "start"}),)
        assert fn(1) == 1

    def test_stacked_directives_keep_source_order(self) -> None:
        @directive("log", what="first", when="start")
        @directive("trace")
        @directive("log", what="last", when="end")
        def fn():
            pass

        kinds = [(d.schema_kind, d.get("what")) for d in getattr(fn, DIRECTIVES_ATTR)]
        assert kinds == [("log", "first"), ("trace", None), ("log", "last")]

    def test_trailing_underscore_is_stripped(self) -> None:
        @directive("log", what="a", when="end", with_="audit", as_="value %s")
        def fn(a):
            pass

        (entry,) = getattr(fn, DIRECTIVES_ATTR)
        assert entry.attributes == {"what": "a", "when": "end", "with": "audit", "as": "value %s"}

    def test_works_above_staticmethod_and_classmethod(self) -> None:
        class Holder:
            @directive("trace", label="static")
            @staticmethod
            def s():
                pass

            @directive("trace", label="class")
            @classmethod
            def c(cls):
                pass

        reader = AttributeDirectiveReader()
        assert reader.get_method_directives(vars(Holder)["s"])[0].get("label") == "static"
        assert reader.get_method_directives(vars(Holder)["c"])[0].get("label") == "class"

    def test_non_string_value_rejected(self) -> None:
        with pytest.raises(TypeError, match="must be a string"):
            directive("log", what=1)  # type: ignore[arg-type]


class TestAttributeDirectiveReader:
    def test_conforms_to_port(self) -> None:
        assert isinstance(AttributeDirectiveReader(), DirectiveReader)

    def test_undecorated_function_has_no_directives(self) -> None:
        def fn():
            pass

        assert AttributeDirectiveReader().get_method_directives(fn) == []

    def test_caches_per_function(self) -> None:
        @directive("trace", label="one")
        def fn():
            pass

        reader = AttributeDirectiveReader()
        first = reader.get_method_directives(fn)
        directive("trace", label="two")(fn)

        assert reader.get_method_directives(fn) == first
        reader.clear()
        assert [d.get("label") for d in reader.get_method_directives(fn)] == ["two", "one"]

    def test_returns_fresh_list(self) -> None:
        @directive("trace")
        def fn():
            pass

        reader = AttributeDirectiveReader()
        reader.get_method_directives(fn).clear()
        assert len(reader.get_method_directives(fn)) == 1


class TestDirectiveSchema:
    schema = DirectiveSchema(
        kind="log",
        required=frozenset({"what", "when"}),
        optional=frozenset({"with"}),
        choices={"when": ("start", "end")},
    )

    def test_valid_directive_passes(self) -> None:
        self.schema.validate(Directive("log", {"what": "a", "when": "start", "with": "audit"}))

    def test_missing_required_attribute(self) -> None:
        with pytest.raises(SchemaMismatchError) as exc_info:
            self.schema.validate(Directive("log", {"what": "a"}), "app.Service.run")
        error = exc_info.value
        assert error.attribute == "when"
        assert error.method == "app.Service.run"
        assert "missing required attribute" in str(error)

    def test_undeclared_attribute(self) -> None:
        with pytest.raises(SchemaMismatchError, match="not declared"):
            self.schema.validate(Directive("log", {"what": "a", "when": "end", "level": "debug"}))

    def test_value_outside_choices(self) -> None:
        with pytest.raises(SchemaMismatchError, match="not one of start, end"):
            self.schema.validate(Directive("log", {"what": "a", "when": "later"}))
