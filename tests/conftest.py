import pytest

from json_validation import create_default_registry
from json_validation.validators.string_validator import email


PREDICATES = {
    "pass": lambda *params: True,
    "fail": lambda *params: False,
    "notEmpty": lambda value: value not in (None, ""),
    "isEmail": email,
    "equals": lambda value, expected: value == expected,
}


class PredicateBench:
    """Registry with recording predicates.

    Every predicate is registered twice: immediate under ``T`` and deferred
    under ``D``. Deferred predicates queue their continuation; ``drain()``
    fires the queue in order.
    """

    def __init__(self):
        self.calls = []
        self.pending = []
        self.registry = create_default_registry()
        for name, func in PREDICATES.items():
            self.registry.register("T", name, self._immediate(name, func))
            self.registry.register("D", name, self._deferred(name, func), deferred=True)

    def _immediate(self, name, func):
        def predicate(*params):
            self.calls.append((name, params))
            return func(*params)
        return predicate

    def _deferred(self, name, func):
        def predicate(*args):
            *params, on_pass, on_fail = args
            self.calls.append((name, tuple(params)))
            self.pending.append(on_pass if func(*params) else on_fail)
        return predicate

    def drain(self):
        while self.pending:
            self.pending.pop(0)()

    def called(self, name):
        return [params for called_name, params in self.calls if called_name == name]


@pytest.fixture
def bench():
    return PredicateBench()


@pytest.fixture
def registry(bench):
    return bench.registry
