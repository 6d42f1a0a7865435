"""Tests for call-site descriptors and message helpers."""

import json
import logging
from typing import Annotated

import pytest

from logwrap.interceptor.descriptor import (
    DontLog,
    LogContext,
    build_descriptor,
    resolve_logger_name,
)
from logwrap.interceptor.messages import (
    auto_message,
    method_name_to_words,
    render_json_event,
    prepare_template,
)
from logwrap.utils.errors import ConfigurationError
from logwrap.utils.logging import LogLevel


class Outer:
    class Inner:
        def method(self):
            pass

    def method(self):
        pass


def plain_function():
    pass


def test_logger_name_uses_outermost_enclosing_class():
    assert resolve_logger_name(Outer.Inner.method) == f"{__name__}.Outer"
    assert resolve_logger_name(Outer.method) == f"{__name__}.Outer"


def test_logger_name_for_plain_function_is_module():
    assert resolve_logger_name(plain_function) == __name__


def test_logger_name_for_class_defined_in_function():
    def factory():
        class Local:
            def method(self):
                pass

        return Local

    assert resolve_logger_name(factory().method) == f"{__name__}.Local"


def test_explicit_logger_wins():
    assert resolve_logger_name(plain_function, "audit") == "audit"
    assert resolve_logger_name(plain_function, Outer.Inner) == f"{__name__}.Outer.Inner"
    assert resolve_logger_name(plain_function, logging.getLogger("x.y")) == "x.y"

    with pytest.raises(ConfigurationError):
        resolve_logger_name(plain_function, 42)


def test_annotated_markers():
    def handle(
        self,
        request_id: Annotated[str, LogContext("request-id"), DontLog],
        user: Annotated[str, LogContext("user"), LogContext("actor")],
        password: Annotated[str, DontLog()],
        payload: dict,
    ) -> None:
        pass

    descriptor = build_descriptor(handle, level="INFO")

    assert descriptor.receiver == "self"
    assert [spec.name for spec in descriptor.parameters] == [
        "request_id",
        "user",
        "password",
        "payload",
    ]
    assert [spec.name for spec in descriptor.logged_parameters] == ["user", "payload"]
    assert descriptor.parameters[0].context_keys == ("request-id",)
    assert descriptor.parameters[1].context_keys == ("user", "actor")
    assert descriptor.level is LogLevel.INFO
    assert descriptor.returns_value is False


def test_decorator_options_mark_parameters():
    def login(user, password, session):
        return True

    descriptor = build_descriptor(
        login, dont_log=("password",), context={"session": "session-id"}
    )

    assert descriptor.receiver is None
    assert [spec.name for spec in descriptor.logged_parameters] == ["user", "session"]
    assert [spec.name for spec in descriptor.context_parameters] == ["session"]
    assert descriptor.returns_value is True


def test_unknown_option_names_fail_at_build_time():
    def login(user):
        pass

    with pytest.raises(ConfigurationError, match="passwd"):
        build_descriptor(login, dont_log=("passwd",))

    with pytest.raises(ConfigurationError, match="tenant"):
        build_descriptor(login, context={"tenant": "tenant"})


def test_invalid_level_fails_at_build_time():
    def noop():
        pass

    with pytest.raises(ConfigurationError):
        build_descriptor(noop, level="LOUD")


def test_bind_applies_defaults_in_declaration_order():
    def search(self, query, limit=10, *tags, **filters):
        pass

    descriptor = build_descriptor(search)
    bound = descriptor.bind((object(), "shoes", 5, "red"), {"brand": "acme"})

    assert [(spec.name, value) for spec, value in bound] == [
        ("query", "shoes"),
        ("limit", 5),
        ("tags", ("red",)),
        ("filters", {"brand": "acme"}),
    ]


def test_method_name_to_words():
    assert method_name_to_words("doTheThing") == "do the thing"
    assert method_name_to_words("do_the_thing") == "do the thing"
    assert method_name_to_words("_private_helper") == "private helper"
    assert method_name_to_words("foo") == "foo"
    assert method_name_to_words("getURL") == "get u r l"


def test_auto_message_adds_one_placeholder_per_parameter():
    assert auto_message("doTheThing", 0) == "do the thing"
    assert auto_message("doTheThing", 2) == "do the thing %s %s"


def test_render_json_event_keeps_event_and_timestamp_first():
    rendered = json.loads(render_json_event("foo", [("bar", "baz"), ("qux", 1)]))

    assert list(rendered) == ["event", "timestamp", "bar", "qux"]
    assert rendered["event"] == "foo"
    assert rendered["bar"] == "baz"


def test_context_key_declared_twice_is_kept_once():
    def handle(rid: Annotated[str, LogContext("request-id"), LogContext("trace")]):
        pass

    descriptor = build_descriptor(handle, context={"rid": "request-id"})

    assert descriptor.parameters[0].context_keys == ("request-id", "trace")


def test_prepare_template():
    assert prepare_template("processing order") == ("processing order", 0)
    assert prepare_template("ordering %s x %d") == ("ordering %s x %d", 2)
    assert prepare_template("100%% of %s") == ("100%% of %s", 1)
    assert prepare_template("%-10s|%.2f|%r") == ("%-10s|%.2f|%r", 3)
    assert prepare_template("100% done, %s left") == ("100%% done, %s left", 1)
    assert prepare_template("%(name)s at 5%") == ("%%(name)s at 5%%", 0)


def test_template_without_placeholders_is_escaped():
    def process(order_id):
        pass

    descriptor = build_descriptor(process, message="50% done")

    assert descriptor.message == "50%% done"
    assert descriptor.message_arguments == 0


def test_template_with_more_placeholders_than_parameters_fails():
    def process(order_id):
        pass

    with pytest.raises(ConfigurationError, match="placeholder"):
        build_descriptor(process, message="%s and %s")


def test_json_rejects_parameters_named_like_event_keys():
    def emit(event):
        pass

    def stamp(timestamp):
        pass

    with pytest.raises(ConfigurationError, match="event"):
        build_descriptor(emit, json=True)
    with pytest.raises(ConfigurationError, match="timestamp"):
        build_descriptor(stamp, json=True)

    assert build_descriptor(emit).json is False
    assert build_descriptor(emit, json=True, dont_log=("event",)).json is True
