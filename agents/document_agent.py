# agents/document_agent.py
import json
from typing import Optional

from config import DEFAULT_MODEL, MAX_TOKENS, MAX_TOOL_ITERATIONS
from agents.models import router as model_router
from agents.tools.document_tools import TOOL_DEFINITIONS, SelectionContext, execute_document_tool
from agents.knowledge.prompts import build_document_edit_prompt, format_message_history

UPDATE_EVENT_TYPE = "DOCUMENT_UPDATE"

STREAM_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."


def format_update_event(content: str) -> str:
    """One JSON line, on its own line, carrying the full updated document."""
    return "\n" + json.dumps({"type": UPDATE_EVENT_TYPE, "content": content}) + "\n"


def parse_stream_chunks(text: str) -> tuple[str, list[str]]:
    """
    Splits streamed output into the visible assistant text and the document
    contents carried by update events, in the order they were sent.
    """
    visible_lines = []
    updates = []

    for line in text.split("\n"):
        stripped = line.strip()
        if stripped.startswith("{"):
            try:
                event = json.loads(stripped)
            except json.JSONDecodeError:
                event = None
            if isinstance(event, dict) and event.get("type") == UPDATE_EVENT_TYPE and "content" in event:
                updates.append(event["content"])
                continue
        visible_lines.append(line)

    return "\n".join(visible_lines).strip(), updates


def _assistant_message(response: dict) -> dict:
    return {
        "role": "assistant",
        "content": response["content"] or "",
        "tool_calls": [
            {
                "id": tc["id"],
                "type": "function",
                "function": {
                    "name": tc["name"],
                    "arguments": json.dumps(tc["arguments"] or {})
                }
            }
            for tc in response["tool_calls"]
        ]
    }


def stream_document_edit(
    document: dict,
    document_content: str,
    message: str,
    message_history: Optional[list] = None,
    selection_context: Optional[SelectionContext] = None,
    model_id: str = DEFAULT_MODEL,
):
    """
    Runs the editing conversation and yields text as it streams. Every
    successful tool call yields an update event holding the new document.
    Nothing is persisted here: the client decides whether to apply updates.
    """
    tokens_used = 0
    iteration = 0

    try:
        system_prompt = build_document_edit_prompt(
            {**document, "content": document_content},
            selection_context
        )

        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(format_message_history(message_history))
        messages.append({"role": "user", "content": message})

        current_content = document_content

        while iteration < MAX_TOOL_ITERATIONS:
            iteration += 1

            response = None
            for event, payload in model_router.stream_chat(
                model_id=model_id,
                messages=messages,
                tools=TOOL_DEFINITIONS,
                tool_choice="auto",
                max_tokens=MAX_TOKENS,
                temperature=0.3
            ):
                if event == "text":
                    yield payload
                elif event == "done":
                    response = payload

            if response is None:
                break

            tokens_used += response["input_tokens"] + response["output_tokens"]

            if not response["tool_calls"]:
                break

            tool_results = []

            for tool_call in response["tool_calls"]:
                fn_name = tool_call["name"]
                tc_id = tool_call["id"]

                if tool_call.get("error"):
                    print(f"[DOCUMENT AI] {fn_name}: {tool_call['error']}")
                    tool_results.append({
                        "tool_call_id": tc_id,
                        "result": f"Error: {tool_call['error']}",
                        "is_error": True
                    })
                    continue

                result = execute_document_tool(
                    fn_name,
                    tool_call["arguments"],
                    current_content,
                    selection_context
                )
                print(f"[DOCUMENT AI] {fn_name}: {'ok' if result.success else 'failed'} ({result.message})")

                if result.success:
                    current_content = result.new_content
                    yield format_update_event(current_content)
                    tool_results.append({"tool_call_id": tc_id, "result": result.message, "is_error": False})
                else:
                    tool_results.append({"tool_call_id": tc_id, "result": f"Error: {result.message}", "is_error": True})

            messages.append(_assistant_message(response))

            for result in tool_results:
                messages.append({
                    "role": "tool",
                    "tool_call_id": result["tool_call_id"],
                    "content": result["result"],
                    "is_error": result["is_error"]
                })
        else:
            print(f"[DOCUMENT AI] stopped after {MAX_TOOL_ITERATIONS} model turns")

        print(f"[DOCUMENT AI] done in {iteration} turn(s), {tokens_used} tokens")

    except Exception as e:
        print(f"[DOCUMENT AI ERROR] {e}")
        yield f"\n\n{STREAM_ERROR_MESSAGE}"
