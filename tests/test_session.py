import dataclasses

import pytest

from json_validation import (
    EvaluationPendingError,
    Failure,
    PredicateContractError,
    Rule,
    RuleConfigurationError,
    Schema,
    SessionState,
    SessionStateError,
    Success,
    UnknownValidatorError,
    ValidationSession,
    ValidatorRegistry,
    validate,
)


def rule(name, *params, ns="T", **options):
    data = {"validator": [ns, name], "params": list(params)}
    data.update(options)
    return data


# Outcomes

def test_empty_schema_succeeds(registry):
    for schema in ([], None, Schema()):
        outcome = validate(schema, {}, registry=registry)
        assert isinstance(outcome, Success)
        assert outcome.passed and bool(outcome)
        assert outcome.errors == ()


def test_single_failing_rule_is_reported(registry):
    schema = Schema.from_list([rule("fail", error="E1")])
    outcome = validate(schema, {}, registry=registry)

    assert isinstance(outcome, Failure)
    assert not outcome
    assert outcome.errors == ("E1",)
    assert outcome.failures[0].rule is schema.rules[0]


def test_all_failures_accumulate_in_order(registry):
    outcome = validate([rule("fail", error="E1"), rule("pass", error="E2"), rule("fail", error="E3")],
                       registry=registry)
    assert outcome.errors == ("E1", "E3")


def test_error_payload_is_surfaced_verbatim(registry):
    payload = {"input": "email", "message": "Please enter your email."}
    outcome = validate([rule("fail", error=payload)], registry=registry)
    assert outcome.errors[0] is not None
    assert outcome.errors == (payload,)


# Funnel

def test_failing_funnel_without_sub_rules_succeeds(registry):
    outcome = validate([rule("fail", funnel=True, error="E1")], registry=registry)
    assert isinstance(outcome, Success)


def test_failing_funnel_never_evaluates_sub_rules(bench):
    schema = [rule("fail", "gate", funnel=True, rules=[rule("pass", "child", error="E2")])]
    outcome = validate(schema, registry=bench.registry)

    assert isinstance(outcome, Success)
    assert bench.called("pass") == []


def test_passing_funnel_evaluates_sub_rules(bench):
    schema = [rule("pass", funnel=True, rules=[rule("fail", "child", error="E2")])]
    outcome = validate(schema, registry=bench.registry)

    assert outcome.errors == ("E2",)
    assert bench.called("fail") == [("child",)]


def test_failing_rule_never_evaluates_sub_rules(bench):
    schema = [rule("fail", error="E1", rules=[rule("pass", "child")])]
    outcome = validate(schema, registry=bench.registry)

    assert outcome.errors == ("E1",)
    assert bench.called("pass") == []


# Sub-rules

def test_sub_rule_failures_are_recorded_in_discovery_order(bench):
    schema = [
        rule("pass", "a", rules=[rule("fail", "a.1", error="A1"), rule("fail", "a.2", error="A2")]),
        rule("fail", "b", error="B"),
    ]
    outcome = validate(schema, registry=bench.registry)

    assert outcome.errors == ("A1", "A2", "B")
    assert [params[0] for _, params in bench.calls] == ["a", "a.1", "a.2", "b"]


def test_deeply_nested_rules(registry):
    schema = [rule("pass", rules=[rule("pass", rules=[rule("pass", rules=[rule("fail", error="deep")])])])]
    assert validate(schema, registry=registry).errors == ("deep",)


def test_sub_rules_accepts_sub_rules_key(registry):
    schema = [{"validator": ["T", "pass"], "sub_rules": [rule("fail", error="E")]}]
    assert validate(schema, registry=registry).errors == ("E",)


def test_schema_accepts_rule_objects(bench):
    schema = [
        Rule(validator=["T", "notEmpty"], params=("{x}",), error="E"),
        Rule(validator=["T", "pass"], rules=(
            Rule(validator=["T", "fail"], params=("child",), blocking=True, error="C1"),
            Rule(validator=["T", "fail"], params=("never",), error="C2"),
        )),
        Rule(validator=["T", "pass"], rules=[{"validator": ["T", "fail"], "error": "D"}]),
    ]
    outcome = validate(schema, {}, registry=bench.registry)

    assert outcome.errors == ("E", "C1", "D")
    assert [failure.rule.path for failure in outcome.failures] == ["/0", "/1/rules/0", "/2/rules/0"]
    assert ("never",) not in bench.called("fail")


def test_rule_objects_are_placed_without_mutation():
    child = Rule(validator=["T", "fail"], error="C")
    parent = Rule(validator=["T", "pass"], rules=[child])

    placed = Schema.from_list([parent]).rules[0]

    assert placed.path == "/0"
    assert placed.rules[0].path == "/0/rules/0"
    assert isinstance(placed.rules, tuple) and not placed.is_leaf
    assert parent.path == "" and child.path == ""
    assert placed.rules[0].is_leaf


# Blocking

def test_failing_blocking_rule_skips_remaining_siblings(bench):
    schema = [rule("fail", "1", blocking=True, error="E1"), rule("fail", "2", error="E2"), rule("fail", "3", error="E3")]
    outcome = validate(schema, registry=bench.registry)

    assert outcome.errors == ("E1",)
    assert bench.called("fail") == [("1",)]


def test_passing_blocking_rule_does_not_block(registry):
    schema = [rule("pass", blocking=True, error="E1"), rule("fail", error="E2")]
    assert validate(schema, registry=registry).errors == ("E2",)


def test_blocking_in_sub_list_does_not_leak_into_parent(bench):
    schema = [
        rule("pass", "parent", rules=[rule("fail", "child-1", blocking=True, error="C1"),
                                      rule("fail", "child-2", error="C2")]),
        rule("fail", "sibling", error="S"),
    ]
    outcome = validate(schema, registry=bench.registry)

    assert outcome.errors == ("C1", "S")
    assert ("child-2",) not in bench.called("fail")


def test_blocking_in_parent_does_not_affect_earlier_sub_list(registry):
    schema = [
        rule("pass", rules=[rule("fail", error="C1"), rule("fail", error="C2")]),
        rule("fail", blocking=True, error="B"),
        rule("fail", error="never"),
    ]
    assert validate(schema, registry=registry).errors == ("C1", "C2", "B")


def test_blocking_does_not_leak_into_later_sub_lists(registry):
    schema = [
        rule("pass", rules=[
            rule("pass", rules=[rule("fail", blocking=True, error="inner")]),
            rule("pass", rules=[rule("fail", error="cousin-1"), rule("fail", error="cousin-2")]),
        ]),
    ]
    assert validate(schema, registry=registry).errors == ("inner", "cousin-1", "cousin-2")


def test_blocking_funnel_blocks_without_reporting(registry):
    schema = [rule("fail", funnel=True, blocking=True, error="E1"), rule("fail", error="E2")]
    assert isinstance(validate(schema, registry=registry), Success)


def test_failsafe_is_an_alias_for_blocking(registry):
    schema = Schema.from_list([rule("fail", failsafe=True, error="E1"), rule("fail", error="E2")])

    assert schema.rules[0].blocking
    assert validate(schema, registry=registry).errors == ("E1",)


# Parameters

def test_placeholders_are_bound_per_validation(bench):
    schema = Schema.from_list([rule("equals", "{email}", "{missing}"), rule("equals", "{email}", "a@b.com")])
    original_params = [r.params for r in schema.rules]

    validate(schema, {"email": "first"}, registry=bench.registry)
    validate(schema, {"email": "a@b.com"}, registry=bench.registry)

    assert bench.called("equals") == [
        ("first", None), ("first", "a@b.com"),
        ("a@b.com", None), ("a@b.com", "a@b.com"),
    ]
    assert [r.params for r in schema.rules] == original_params
    assert schema.rules[0].params == ("{email}", "{missing}")


def test_rule_without_params_is_valid(bench):
    schema = [{"validator": ["T", "pass"]}]
    assert validate(schema, registry=bench.registry).passed
    assert bench.called("pass") == [()]


def test_bindings_are_read_only(registry):
    bindings = {"a": 1}
    session = ValidationSession([], bindings, registry=registry)
    bindings["a"] = 2

    assert session.bindings["a"] == 1
    with pytest.raises(TypeError):
        session.bindings["b"] = 3


# Deferred predicates

def _mixed_schema(ns):
    return [
        rule("notEmpty", "{name}", ns=ns, blocking=True, error="name"),
        rule("pass", ns=ns, rules=[
            rule("isEmail", "{email}", ns=ns, blocking=True, error="email"),
            rule("fail", ns=ns, error="never"),
        ]),
        rule("fail", ns=ns, funnel=True, rules=[rule("fail", ns=ns, error="hidden")]),
        rule("equals", "{name}", "Ann", ns=ns, error="not-ann"),
        rule("pass", ns=ns, rules=[rule("fail", ns=ns, error="last")]),
    ]


@pytest.mark.parametrize("bindings", [
    {"name": "Bob", "email": "bad"},
    {"name": "Ann", "email": "a@b.com"},
    {"name": "", "email": "a@b.com"},
    {},
])
def test_deferred_and_immediate_predicates_agree(bench, bindings):
    immediate = validate(_mixed_schema("T"), bindings, registry=bench.registry)
    immediate_calls = list(bench.calls)
    bench.calls.clear()

    session = ValidationSession(_mixed_schema("D"), bindings, registry=bench.registry)
    assert session.validate() is None
    assert session.state == SessionState.SUSPENDED
    bench.drain()

    assert session.outcome.errors == immediate.errors
    assert session.get_failed_rules() == list(immediate.errors)
    assert type(session.outcome) is type(immediate)
    assert bench.calls == immediate_calls


def test_suspended_session_evaluates_one_rule_at_a_time(bench):
    session = ValidationSession([rule("pass", "1", ns="D"), rule("pass", "2", ns="D")], registry=bench.registry)
    session.validate()

    assert bench.called("pass") == [("1",)]
    bench.pending.pop(0)()
    assert bench.called("pass") == [("1",), ("2",)]
    assert session.state == SessionState.SUSPENDED
    bench.drain()
    assert session.state == SessionState.SUCCEEDED


def test_deferred_predicate_may_settle_synchronously(registry):
    registry.register("Sync", "now", lambda value, on_pass, on_fail: on_pass() if value else on_fail(),
                      deferred=True)
    schema = [rule("now", "{a}", ns="Sync", error="A"), rule("now", "{b}", ns="Sync", error="B")]

    assert validate(schema, {"a": 1, "b": 0}, registry=registry).errors == ("B",)


def test_sync_validate_raises_when_predicate_is_pending(bench):
    with pytest.raises(EvaluationPendingError):
        validate([rule("pass", ns="D")], registry=bench.registry)


def test_predicate_settling_twice_is_a_contract_error(registry):
    def both(on_pass, on_fail):
        on_pass()
        on_fail()

    registry.register("Bad", "both", both, deferred=True)
    session = ValidationSession([rule("both", ns="Bad")], registry=registry)

    with pytest.raises(PredicateContractError):
        session.validate()
    assert session.state == SessionState.ERRORED


def test_late_second_settlement_is_a_contract_error(registry):
    stored = []
    registry.register("Bad", "later", lambda on_pass, on_fail: stored.append(on_pass), deferred=True)
    session = ValidationSession([rule("later", ns="Bad")], registry=registry)
    session.validate()

    stored[0]()
    assert isinstance(session.outcome, Success)
    with pytest.raises(PredicateContractError):
        stored[0]()


def test_schema_is_reusable_across_interleaved_sessions(bench):
    schema = Schema.from_list([
        rule("notEmpty", "{email}", ns="D", blocking=True, error="empty"),
        rule("isEmail", "{email}", ns="D", error="invalid"),
    ])

    first = ValidationSession(schema, {"email": ""}, registry=bench.registry)
    second = ValidationSession(schema, {"email": "nope"}, registry=bench.registry)
    third = ValidationSession(schema, {"email": "a@b.com"}, registry=bench.registry)
    for session in (first, second, third):
        session.validate()
    bench.drain()

    assert first.get_failed_rules() == ["empty"]
    assert second.get_failed_rules() == ["invalid"]
    assert isinstance(third.outcome, Success)


# Session lifecycle and callbacks

def test_callbacks_receive_outcome(registry):
    seen = []
    session = ValidationSession([rule("fail", error="E")], registry=registry)
    returned = session.validate(lambda o: seen.append(("ok", o)), lambda o: seen.append(("ko", o)))

    assert seen == [("ko", returned)]
    assert session.state == SessionState.FAILED
    assert session.get_failures()[0].error == "E"

    seen.clear()
    ValidationSession([], registry=registry).validate(lambda o: seen.append(("ok", o)), lambda o: seen.append(("ko", o)))
    assert seen[0][0] == "ok" and isinstance(seen[0][1], Success)


def test_session_validates_only_once(registry):
    session = ValidationSession([], registry=registry)
    session.validate()
    with pytest.raises(SessionStateError):
        session.validate()


def test_session_defaults_to_builtin_registry():
    outcome = ValidationSession([{"validator": ["StringValidator", "notEmpty"], "params": ["{x}"], "error": "E"}],
                                {"x": ""}).validate()
    assert outcome.errors == ("E",)


def test_rules_are_immutable():
    schema = Schema.from_list([rule("pass")])
    with pytest.raises(dataclasses.FrozenInstanceError):
        schema.rules[0].funnel = True


# Configuration errors

def test_unknown_validator_is_raised_not_recorded(registry):
    session = ValidationSession([rule("fail", error="E1"), rule("nope", error="E2")], registry=registry)
    with pytest.raises(UnknownValidatorError):
        session.validate()
    assert session.state == SessionState.ERRORED
    assert session.outcome is None


def test_unknown_validator_delivered_to_error_callback(registry):
    errors = []
    session = ValidationSession([rule("nope")], registry=registry)

    assert session.validate(on_error=errors.append) is None
    assert isinstance(errors[0], UnknownValidatorError)


def test_unknown_validator_after_deferred_rule_reaches_error_callback(bench):
    errors = []
    session = ValidationSession([rule("pass", ns="D"), rule("nope", ns="D")], registry=bench.registry)
    session.validate(on_error=errors.append)
    bench.drain()

    assert isinstance(errors[0], UnknownValidatorError)
    assert session.state == SessionState.ERRORED


@pytest.mark.parametrize("data, fragment", [
    ({"params": []}, "no 'validator'"),
    ({"validator": ["OnlyNamespace"]}, "namespace"),
    ({"validator": "nodots"}, "namespace"),
    ({"validator": 42}, "got int"),
    ({"validator": ["T", "pass"], "params": "{email}"}, "'params' must be a list"),
    ({"validator": ["T", "pass"], "rules": {"validator": ["T", "pass"]}}, "'rules' must be a list"),
    ("not a mapping", "must be a mapping"),
    ({"validator": ["T", "fail"], "funnel": "false"}, "'funnel' must be a boolean"),
    ({"validator": ["T", "fail"], "blocking": 1}, "'blocking' must be a boolean"),
])
def test_malformed_rule_fails_at_evaluation(registry, data, fragment):
    schema = Schema.from_list([rule("pass"), data])

    with pytest.raises(RuleConfigurationError) as excinfo:
        validate(schema, registry=registry)
    assert fragment in str(excinfo.value)
    assert "/1" in str(excinfo.value)


def test_malformed_rule_that_is_never_reached_is_not_an_error(registry):
    schema = [rule("fail", blocking=True, error="E"), {"params": []}]
    assert validate(schema, registry=registry).errors == ("E",)


def test_dotted_validator_reference(registry):
    assert validate([{"validator": "T.fail", "error": "E"}], registry=registry).errors == ("E",)


def test_predicate_exception_propagates():
    registry = ValidatorRegistry()

    def broken(value):
        raise RuntimeError("boom")

    registry.register("X", "broken", broken)
    with pytest.raises(RuntimeError, match="boom"):
        validate([rule("broken", "v", ns="X")], registry=registry)


# Concrete scenario

@pytest.mark.parametrize("email, expected", [
    ("", ["E1"]),
    ("not-an-email", ["E2"]),
    ("a@b.com", []),
])
def test_required_email_scenario(bench, email, expected):
    schema = Schema.from_list([
        {"validator": ["T", "notEmpty"], "params": ["{email}"], "blocking": True, "error": "E1"},
        {"validator": ["T", "isEmail"], "params": ["{email}"], "error": "E2"},
    ])
    outcome = validate(schema, {"email": email}, registry=bench.registry)

    assert list(outcome.errors) == expected
    assert isinstance(outcome, Success if not expected else Failure)
    if email == "":
        assert bench.called("isEmail") == []
