import asyncio
import threading

import pytest

from json_validation import (
    Success,
    UnknownValidatorError,
    ValidatorRegistry,
    validate_async,
    with_timeout,
)


def truthy_schema(ns="Async"):
    return [
        {"validator": [ns, "truthy"], "params": ["{a}"], "error": "A", "blocking": False},
        {"validator": [ns, "truthy"], "params": ["{b}"], "error": "B",
         "rules": [{"validator": [ns, "truthy"], "params": ["{c}"], "error": "C"}]},
    ]


def test_validate_async_with_loop_callbacks():
    registry = ValidatorRegistry()

    def later(value, on_pass, on_fail):
        asyncio.get_running_loop().call_later(0.01, on_pass if value else on_fail)

    registry.register("Async", "truthy", later, deferred=True)

    outcome = asyncio.run(validate_async(truthy_schema(), {"a": 0, "b": 1, "c": 0}, registry=registry))
    assert outcome.errors == ("A", "C")


def test_validate_async_with_thread_callbacks():
    registry = ValidatorRegistry()

    def threaded(value, on_pass, on_fail):
        threading.Timer(0.01, on_pass if value else on_fail).start()

    registry.register("Async", "truthy", threaded, deferred=True)

    outcome = asyncio.run(validate_async(truthy_schema(), {"a": 1, "b": 1, "c": 1}, registry=registry))
    assert isinstance(outcome, Success)


def test_validate_async_with_immediate_predicates():
    registry = ValidatorRegistry()
    registry.register("Async", "truthy", bool)

    outcome = asyncio.run(validate_async(truthy_schema(), {"a": 1, "b": 0}, registry=registry))
    assert outcome.errors == ("B",)


def test_validate_async_raises_configuration_errors():
    with pytest.raises(UnknownValidatorError):
        asyncio.run(validate_async(truthy_schema("Missing"), {}, registry=ValidatorRegistry()))


def test_validate_async_timeout():
    registry = ValidatorRegistry()
    registry.register("Async", "truthy", lambda value, on_pass, on_fail: None, deferred=True)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(validate_async(truthy_schema(), {}, registry=registry, timeout=0.05))


def test_timed_out_predicate_fails_its_rule():
    registry = ValidatorRegistry()
    capability = registry.register("Async", "truthy", lambda value, on_pass, on_fail: None, deferred=True)
    registry.add(with_timeout(capability, 0.02))

    outcome = asyncio.run(validate_async(truthy_schema(), {}, registry=registry, timeout=2.0))
    assert outcome.errors == ("A", "B")
