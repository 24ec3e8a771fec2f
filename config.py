import os
from dotenv import load_dotenv

load_dotenv()

GROQ_API_KEY = os.getenv("GROQ_API_KEY")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

GROQ_MODELS = {
    "groq/llama-3.3-70b": "llama-3.3-70b-versatile",
    "groq/llama-3.1-8b": "llama-3.1-8b-instant",
}

CLAUDE_MODELS = {
    "claude/claude-sonnet-4": "claude-sonnet-4-20250514",
    "claude/claude-sonnet-4-5": "claude-sonnet-4-5",
    "claude/claude-haiku-4-5": "claude-haiku-4-5",
}

DEFAULT_MODEL = "claude/claude-sonnet-4"

MAX_TOKENS = int(os.getenv("DOCUMENT_AI_MAX_TOKENS", "4096"))
MAX_TOOL_ITERATIONS = int(os.getenv("DOCUMENT_AI_MAX_TOOL_ITERATIONS", "10"))

# characters searched on either side of the rendered-text offset
SELECTION_WINDOW_SIZE = 500

FIND_PREVIEW_CHARS = 50
