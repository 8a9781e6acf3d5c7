"""Step index construction."""

from crawlflow.contracts import Workflow
from crawlflow.engine import build_step_index


def _workflow(**data):
    return Workflow.model_validate(data)


def test_index_uses_requested_start():
    index = build_step_index(_workflow(start=" b ", steps=[{"id": "a", "type": "log"}, {"id": "b", "type": "log"}]))
    assert index.start_id == "b"
    assert "a" in index and "b" in index


def test_unknown_start_falls_back_to_first_step():
    index = build_step_index(_workflow(start="zzz", steps=[{"id": "a", "type": "log"}]))
    assert index.start_id == "a"


def test_ids_are_trimmed():
    index = build_step_index(_workflow(steps=[{"id": "  a  ", "type": "log"}]))
    assert index.get("a").position == 0


def test_missing_id_disables_index():
    assert build_step_index(_workflow(steps=[{"id": "a", "type": "log"}, {"id": " ", "type": "log"}])) is None
    assert build_step_index(_workflow(steps=[])) is None


def test_successor_follows_declaration_order():
    index = build_step_index(_workflow(steps=[{"id": "a", "type": "log"}, {"id": "b", "type": "log"}]))
    assert index.successor(0) == "b"
    assert index.successor(1) is None
