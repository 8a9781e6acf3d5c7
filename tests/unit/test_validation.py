"""Workflow validation before admission."""

import pytest

from crawlflow.validation import WorkflowValidator


def _errors(workflow):
    return WorkflowValidator().check(workflow)


def test_valid_workflow_has_no_errors():
    workflow = {
        "start": "open",
        "steps": [
            {"id": "open", "type": "navigate", "config": {"url": "https://x.test"}},
            {"id": "gate", "type": "if", "branches": [{"condition": {"urlIncludes": "x"}, "next": "open"}, {"next": None}]},
        ],
    }
    assert _errors(workflow) == []


@pytest.mark.parametrize(
    "workflow,fragment",
    [
        ({}, "non-empty list"),
        ({"steps": []}, "non-empty list"),
        ({"steps": ["navigate"]}, "must be an object"),
        ({"steps": [{"id": "a"}]}, "type is required"),
        ({"steps": [{"id": "a", "type": "hover"}]}, "unsupported step type"),
        ({"steps": [{"id": "a", "type": "navigate", "config": {}}]}, "config.url"),
        ({"steps": [{"id": "a", "type": "if"}]}, "at least one branch"),
        ({"steps": [{"id": "a", "type": "loop", "times": -1}]}, "non-negative"),
        ({"steps": [{"id": "a", "type": "loop", "times": "3"}]}, "times"),
        ({"steps": [{"id": "a", "type": "loop", "times": 3.0}]}, "times"),
        ({"steps": [{"id": "a", "type": "fill", "config": {"xpath": "//i"}}]}, "requires a value"),
        ({"steps": [{"id": "a", "type": "log"}, {"id": "a", "type": "log"}]}, "duplicate step id"),
        ({"steps": [{"id": "a", "type": "log", "next": "b"}]}, "unknown step id 'b'"),
        ({"start": "b", "steps": [{"id": "a", "type": "log"}]}, "start references"),
        ({"steps": [{"id": "a", "type": "loop", "times": 1, "exit": "z"}]}, "exit references"),
        (["not", "an", "object"], "workflow must be an object"),
    ],
)
def test_invalid_workflows(workflow, fragment):
    errors = _errors(workflow)
    assert errors
    assert any(fragment in error for error in errors), errors


def test_references_are_not_checked_in_sequential_mode():
    workflow = {"steps": [{"type": "log", "next": "anywhere"}, {"id": "b", "type": "log"}]}
    assert _errors(workflow) == []


@pytest.mark.asyncio
async def test_validate_returns_result():
    result = await WorkflowValidator().validate({"steps": [{"id": "a", "type": "log"}]})
    assert result.valid
    assert result.errors == []
