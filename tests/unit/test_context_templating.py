"""Execution context and template rendering."""

import pytest

from crawlflow.context import ExecutionContext
from crawlflow.utils.templating import normalize_timeout, render_template


def test_step_counter_starts_at_zero():
    ctx = ExecutionContext()
    assert [ctx.next_step_index() for _ in range(3)] == [0, 1, 2]
    assert ctx.steps_started == 3


def test_snapshot_is_isolated_from_later_writes():
    ctx = ExecutionContext({"a": 1})
    snapshot = ctx.get_variables_snapshot()
    ctx.set_var("a", 2)
    assert snapshot["a"] == 1
    assert ctx.get_var("a") == 2
    with pytest.raises(TypeError):
        snapshot["a"] = 3


def test_contexts_do_not_share_variables():
    first, second = ExecutionContext(), ExecutionContext()
    first.set_var("x", 1)
    assert not second.has_var("x")


def test_render_template_substitutions():
    variables = {"name": "Ada", "tags": ["first", "second"], "flag": True, "meta": {"k": 1}}
    assert render_template("Hi {{ name }}", variables) == "Hi Ada"
    assert render_template("{{variables.name}}", variables) == "Ada"
    assert render_template("{{tags}}", variables) == "first"
    assert render_template("{{flag}}", variables) == "true"
    assert render_template("{{meta}}", variables) == '{"k": 1}'
    assert render_template("[{{missing}}]", variables) == "[]"
    assert render_template(42, variables) == 42


@pytest.mark.parametrize(
    "value,expected",
    [(2, 2.0), (0.5, 0.5), (0, 5.0), (-1, 5.0), ("3", 5.0), (None, 5.0), (True, 5.0)],
)
def test_normalize_timeout(value, expected):
    assert normalize_timeout(value, 5.0) == expected
