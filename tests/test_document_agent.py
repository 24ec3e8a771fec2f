"""
Tests for agents.document_agent

The model router is patched so every test scripts the model's turns.
"""

from unittest.mock import patch

import pytest

from agents.document_agent import (
    STREAM_ERROR_MESSAGE,
    format_update_event,
    parse_stream_chunks,
    stream_document_edit,
)
from agents.tools.document_tools import SelectionContext

DOCUMENT = {"id": "doc-1", "title": "Launch Plan", "type": "prd"}


def _turn(text, tool_calls=None):
    events = []
    if text:
        events.append(("text", text))
    events.append(("done", {
        "content": text,
        "tool_calls": tool_calls,
        "stop_reason": "tool_use" if tool_calls else "end_turn",
        "input_tokens": 10,
        "output_tokens": 5,
    }))
    return events


def _tool_call(name, arguments, call_id="call-1", error=None):
    call = {"id": call_id, "name": name, "arguments": arguments}
    if error:
        call["error"] = error
    return call


@pytest.fixture
def scripted_model():
    """Patches the router; set `.turns` to the list of turns to play back."""
    with patch("agents.document_agent.model_router.stream_chat") as mock_stream:
        turns = []

        def play(**kwargs):
            return iter(turns.pop(0))

        mock_stream.side_effect = play
        mock_stream.turns = turns
        yield mock_stream


def _run(content, message="Please edit", **kwargs):
    return "".join(stream_document_edit(DOCUMENT, content, message, **kwargs))


class TestStreamDocumentEdit:

    def test_text_only_reply(self, scripted_model):
        scripted_model.turns.extend([_turn("Looks good already.")])
        output = _run("# Plan")
        assert output == "Looks good already."
        assert scripted_model.call_count == 1

    def test_successful_tool_call_emits_update(self, scripted_model):
        scripted_model.turns.extend([
            _turn("Updating.", [_tool_call("find_and_replace", {"find_text": "old", "replace_with": "new"})]),
            _turn("Done."),
        ])
        text, updates = parse_stream_chunks(_run("the old text"))
        assert text == "Updating.\nDone."
        assert updates == ["the new text"]

        messages = scripted_model.call_args_list[1].kwargs["messages"]
        assert messages[-2]["role"] == "assistant"
        assert messages[-2]["tool_calls"][0]["function"]["name"] == "find_and_replace"
        assert messages[-1] == {
            "role": "tool",
            "tool_call_id": "call-1",
            "content": "Replaced 1 occurrence",
            "is_error": False,
        }

    def test_failed_tool_call_is_reported_back(self, scripted_model):
        scripted_model.turns.extend([
            _turn("", [_tool_call("find_and_replace", {"find_text": "missing", "replace_with": "x"})]),
            _turn("I could not find that text."),
        ])
        text, updates = parse_stream_chunks(_run("the old text"))
        assert updates == []
        assert text == "I could not find that text."

        tool_message = scripted_model.call_args_list[1].kwargs["messages"][-1]
        assert tool_message["content"] == 'Error: Text "missing" not found in document'
        assert tool_message["is_error"] is True

    def test_unparseable_arguments(self, scripted_model):
        scripted_model.turns.extend([
            _turn("", [_tool_call("rewrite_document", {}, error="Failed to parse tool input - bad json")]),
            _turn("Retrying failed."),
        ])
        _, updates = parse_stream_chunks(_run("content"))
        assert updates == []
        tool_message = scripted_model.call_args_list[1].kwargs["messages"][-1]
        assert tool_message["content"] == "Error: Failed to parse tool input - bad json"
        assert tool_message["is_error"] is True

    def test_edits_chain_on_current_content(self, scripted_model):
        scripted_model.turns.extend([
            _turn("", [
                _tool_call("find_and_replace", {"find_text": "a", "replace_with": "b"}, call_id="c1"),
                _tool_call("insert_at_position", {"position": "end", "content": "tail"}, call_id="c2"),
            ]),
            _turn("Both applied."),
        ])
        _, updates = parse_stream_chunks(_run("a"))
        assert updates == ["b", "b\n\ntail"]

    def test_selection_is_used_for_replace_selection(self, scripted_model):
        selection = SelectionContext(text="brave", start_offset=6, end_offset=11)
        scripted_model.turns.extend([
            _turn("", [_tool_call("replace_selection", {"new_content": "bold"})]),
            _turn("Changed it."),
        ])
        _, updates = parse_stream_chunks(_run("Hello brave world", selection_context=selection))
        assert updates == ["Hello bold world"]

        system_prompt = scripted_model.call_args_list[0].kwargs["messages"][0]["content"]
        assert "characters 6-11" in system_prompt

    def test_history_precedes_new_message(self, scripted_model):
        scripted_model.turns.extend([_turn("ok")])
        history = [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "  "},
            {"role": "assistant", "content": "Hello"},
        ]
        _run("doc", message="Shorten it", message_history=history)
        messages = scripted_model.call_args_list[0].kwargs["messages"]
        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
        assert messages[-1]["content"] == "Shorten it"

    def test_stops_after_iteration_limit(self, scripted_model):
        looping = _turn("", [_tool_call("insert_at_position", {"position": "end", "content": "x"})])
        scripted_model.turns.extend([looping, looping, looping])
        with patch("agents.document_agent.MAX_TOOL_ITERATIONS", 2):
            _, updates = parse_stream_chunks(_run("doc"))
        assert scripted_model.call_count == 2
        assert updates == ["doc\n\nx", "doc\n\nx\n\nx"]

    def test_model_error_ends_stream_with_message(self, scripted_model):
        scripted_model.side_effect = RuntimeError("overloaded")
        output = _run("doc")
        assert output.strip() == STREAM_ERROR_MESSAGE


class TestStreamParsing:

    def test_update_event_roundtrip(self):
        chunk = format_update_event("# Doc\n\n{braces}")
        text, updates = parse_stream_chunks("Before" + chunk + "After")
        assert text == "Before\nAfter"
        assert updates == ["# Doc\n\n{braces}"]

    def test_non_event_json_lines_are_kept(self):
        text, updates = parse_stream_chunks('{"type": "other"}\n{not json}')
        assert updates == []
        assert text == '{"type": "other"}\n{not json}'
