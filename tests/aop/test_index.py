"""Tests for DirectiveIndex — schema-closed directive filtering."""

from __future__ import annotations

import pytest

from pyweave.aop.directives import DirectiveSchema
from pyweave.aop.index import DirectiveIndex
from pyweave.aop.types import Directive, MethodDescriptor
from pyweave.kernel.exceptions import SchemaMismatchError

LOG = DirectiveSchema(kind="log", required=frozenset({"what"}))


class TestDirectiveIndex:
    def test_keeps_matching_kind_in_order(self) -> None:
        directives = [
            Directive("log", {"what": "a"}),
            Directive("trace", {}),
            Directive("log", {"what": "b"}),
        ]
        result = DirectiveIndex().filter(directives, LOG)
        assert [d.get("what") for d in result] == ["a", "b"]

    def test_empty_input(self) -> None:
        assert DirectiveIndex().filter([], LOG) == []

    def test_no_match(self) -> None:
        assert DirectiveIndex().filter([Directive("trace", {})], LOG) == []

    def test_foreign_kinds_are_never_validated(self) -> None:
        # "what" is missing, but the directive is not of the log kind
        assert DirectiveIndex().filter([Directive("trace", {"unexpected": "x"})], LOG) == []

    def test_matching_kind_is_validated(self) -> None:
        with pytest.raises(SchemaMismatchError) as exc_info:
            DirectiveIndex().filter([Directive("log", {})], LOG, "app.Service.run")
        assert exc_info.value.method == "app.Service.run"

    def test_for_method_labels_errors_with_owner(self) -> None:
        method = MethodDescriptor(name="run", owner="app.Service", directives=(Directive("log", {}),))
        with pytest.raises(SchemaMismatchError) as exc_info:
            DirectiveIndex().for_method(method, LOG)
        assert exc_info.value.method == "app.Service.run"
