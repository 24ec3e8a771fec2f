import json
from groq import Groq
from config import GROQ_API_KEY, GROQ_MODELS

_client = Groq(api_key=GROQ_API_KEY)


def _parse_tool_call(tc) -> dict:
    parsed = {
        "id": tc.id,
        "name": tc.function.name,
        "arguments": {},
    }
    try:
        parsed["arguments"] = json.loads(tc.function.arguments or "{}")
    except json.JSONDecodeError as e:
        parsed["error"] = f"Failed to parse tool input - {e}"
    return parsed


def chat(model_id: str, messages: list, tools: list = None, tool_choice=None, max_tokens: int = 4096, temperature: float = 0.3) -> dict:
    model_name = GROQ_MODELS.get(model_id)
    if not model_name:
        raise ValueError(f"Unknown Groq model: {model_id}")

    # groq rejects the extra is_error flag on tool messages
    clean_messages = [{k: v for k, v in m.items() if k != "is_error"} for m in messages]

    kwargs = {
        "model": model_name,
        "messages": clean_messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    if tools:
        kwargs["tools"] = tools
    if tool_choice:
        kwargs["tool_choice"] = tool_choice

    response = _client.chat.completions.create(**kwargs)
    choice = response.choices[0]
    msg = choice.message

    tool_calls = None
    if msg.tool_calls:
        tool_calls = [_parse_tool_call(tc) for tc in msg.tool_calls]

    return {
        "content": msg.content or "",
        "tool_calls": tool_calls,
        "stop_reason": choice.finish_reason,
        "input_tokens": response.usage.prompt_tokens if response.usage else 0,
        "output_tokens": response.usage.completion_tokens if response.usage else 0,
    }


def stream_chat(model_id: str, messages: list, tools: list = None, tool_choice=None, max_tokens: int = 4096, temperature: float = 0.3):
    # tool calls arrive whole, so the text is sent as one chunk
    response = chat(model_id, messages, tools, tool_choice, max_tokens, temperature)
    if response["content"]:
        yield "text", response["content"]
    yield "done", response
