from config import GROQ_MODELS, CLAUDE_MODELS
from agents.models import groq_client, claude_client


def _client_for(model_id: str):
    if model_id in GROQ_MODELS:
        return groq_client
    elif model_id in CLAUDE_MODELS:
        return claude_client
    else:
        raise ValueError(f"Unknown model: {model_id}")


def stream_chat(model_id: str, messages: list, tools: list = None, tool_choice=None, max_tokens: int = 4096, temperature: float = 0.3):
    return _client_for(model_id).stream_chat(model_id, messages, tools, tool_choice, max_tokens, temperature)
