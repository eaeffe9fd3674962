"""Tests for LoggableAspect — log directives rendered as LoggingPort calls."""

from __future__ import annotations

import pytest

from pyweave.aop.directives import DIRECTIVES_ATTR
from pyweave.aop.index import DirectiveIndex
from pyweave.aop.loggable import LOG_SCHEMA, LoggableAspect, log
from pyweave.aop.types import Directive, MethodDescriptor, ParameterDescriptor, Stage
from pyweave.kernel.exceptions import SchemaMismatchError

METHOD = MethodDescriptor(
    name="deposit",
    owner="bank.Account",
    parameters=(ParameterDescriptor(name="amount"),),
)


def _entry(**attributes: str) -> Directive:
    return Directive("log", attributes)


class TestLogDecorator:
    def test_builds_log_directive(self) -> None:
        @log(what="amount", when="start", with_="audit", as_="depositing %s")
        def deposit(self, amount):
            pass

        assert getattr(deposit, DIRECTIVES_ATTR) == (
            _entry(what="amount", when="start", **{"with": "audit", "as": "depositing %s"}),
        )

    def test_optional_attributes_are_omitted(self) -> None:
        @log(what="amount", when="end")
        def deposit(self, amount):
            pass

        (entry,) = getattr(deposit, DIRECTIVES_ATTR)
        assert entry.attributes == {"what": "amount", "when": "end"}


class TestLogSchema:
    def test_kind(self) -> None:
        assert LoggableAspect().schema_kind == "log"
        assert LoggableAspect().schema is LOG_SCHEMA

    @pytest.mark.parametrize(
        "attributes",
        [{"when": "start"}, {"what": "a"}, {"what": "a", "when": "never"}, {"what": "a", "when": "end", "level": "x"}],
    )
    def test_rejects_malformed_directives(self, attributes: dict[str, str]) -> None:
        with pytest.raises(SchemaMismatchError):
            DirectiveIndex().filter([Directive("log", attributes)], LOG_SCHEMA)


class TestRenderStage:
    def test_dependencies(self) -> None:
        assert tuple(LoggableAspect().dependencies()) == ("logger",)
        assert tuple(LoggableAspect(dependency="audit_log").dependencies()) == ("audit_log",)

    def test_no_directives_for_stage(self) -> None:
        aspect = LoggableAspect()
        assert aspect.render_stage(Stage.START, METHOD, [_entry(what="amount", when="end")]) == ""
        assert aspect.render_stage(Stage.END, METHOD, []) == ""

    def test_parameter_with_defaults(self) -> None:
        fragment = LoggableAspect().render_stage(Stage.START, METHOD, [_entry(what="amount", when="start")])
        assert fragment == (
            "if self.logger is not None:\n"
            "    self.logger.get_logger('bank.Account').info('%s' % (amount,))"
        )

    def test_channel_and_template(self) -> None:
        fragment = LoggableAspect().render_stage(
            Stage.END,
            METHOD,
            [
                _entry(what="self.balance", when="end", **{"with": "audit", "as": "balance %s"}),
                _entry(what="amount", when="end", **{"as": "deposited %s"}),
            ],
        )
        assert fragment.splitlines() == [
            "if self.logger is not None:",
            "    self.logger.get_logger('audit').info('balance %s' % (self.balance,))",
            "    self.logger.get_logger('bank.Account').info('deposited %s' % (amount,))",
        ]

    def test_custom_dependency_name(self) -> None:
        fragment = LoggableAspect(dependency="audit_log").render_stage(
            Stage.START, METHOD, [_entry(what="amount", when="start")]
        )
        assert fragment.startswith("if self.audit_log is not None:")

    @pytest.mark.parametrize("what", ["unknown", "other.attr", "amount()", "self.items[0]", "", "1abc"])
    def test_rejects_unknown_expressions(self, what: str) -> None:
        with pytest.raises(ValueError, match="'what'"):
            LoggableAspect().render_stage(Stage.START, METHOD, [_entry(what=what, when="start")])

    @pytest.mark.parametrize("template", ["no placeholder", "%s and %s", "%d%%%"])
    def test_rejects_bad_templates(self, template: str) -> None:
        with pytest.raises(ValueError, match="'as'"):
            LoggableAspect().render_stage(
                Stage.START, METHOD, [_entry(what="amount", when="start", **{"as": template})]
            )

    @pytest.mark.parametrize("flag", ["is_static", "is_classmethod"])
    def test_rejects_methods_without_instance(self, flag: str) -> None:
        method = MethodDescriptor(name="make", owner="bank.Account", parameters=METHOD.parameters, **{flag: True})
        with pytest.raises(ValueError, match="instance method"):
            LoggableAspect().render_stage(Stage.START, method, [_entry(what="amount", when="start")])

    def test_static_method_without_directives_is_fine(self) -> None:
        method = MethodDescriptor(name="make", owner="bank.Account", is_static=True)
        assert LoggableAspect().render_stage(Stage.START, method, []) == ""
