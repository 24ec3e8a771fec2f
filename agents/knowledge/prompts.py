from typing import Optional

from agents.tools.document_tools import SelectionContext


def build_document_edit_prompt(document: dict, selection_context: Optional[SelectionContext] = None) -> str:
    """
    `document` needs title, type and content. The content passed in is the
    editor's current text, which may hold unsaved edits.
    """
    base_prompt = f"""You are Skribe's document editing assistant. You help users refine and improve their documents through targeted edits.

YOUR ROLE
- Make precise, targeted edits to the document
- Maintain the document's existing style and tone
- Preserve formatting and structure unless asked to change it
- When the user has selected text, focus edits on that selection unless they clearly want broader changes
- Be concise in your responses. Explain what you changed briefly.

CURRENT DOCUMENT
Title: {document.get("title", "Untitled")}
Type: {document.get("type", "custom")}

DOCUMENT CONTENT
```markdown
{document.get("content", "")}
```
"""

    selection_section = ""
    if selection_context:
        selection_section = f"""
USER SELECTION
The user has selected the following text (characters {selection_context.start_offset}-{selection_context.end_offset}):
```
{selection_context.text}
```

Important: when the user asks for changes without specifying scope, apply them to this selection using the replace_selection tool. Only change text outside the selection if the user explicitly asks for it.
"""

    tool_guidance = """
EDITING GUIDELINES
1. For selected text changes: use replace_selection. It replaces only the selected text.
2. For specific text changes: use find_and_replace. It finds exact text and replaces it.
3. For section rewrites: use replace_section. It replaces a heading and the content under it.
4. For adding new content: use insert_at_position. It adds content at a specific location.
5. For major restructuring: use rewrite_document. It replaces the entire document (use sparingly, confirm with the user first).

After making edits, briefly explain what you changed. Keep explanations short and focused.
"""

    return base_prompt + selection_section + tool_guidance


def format_message_history(history: list) -> list:
    formatted = []
    for msg in history or []:
        role = msg.get("role")
        content = msg.get("content") or ""
        if role not in ("user", "assistant") or not content.strip():
            continue
        formatted.append({"role": role, "content": content})
    return formatted
