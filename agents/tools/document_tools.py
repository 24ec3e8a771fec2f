# agents/tools/document_tools.py
"""
Markdown editing tools exposed to the document AI.

Every tool is a pure string transform: it receives the current document
content and returns a ToolExecutionResult holding either a complete new
string (success) or the untouched original (failure). Failures are never
raised, the message is shown to the user as-is.
"""

import re
from dataclasses import dataclass
from typing import Optional

from config import FIND_PREVIEW_CHARS

TOOL_DEFINITIONS = [
    {
        "type": "function",
        "function": {
            "name": "replace_selection",
            "description": (
                "Replace the currently selected text with new content. "
                "Only use when the user has selected specific text and wants to modify it."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "new_content": {
                        "type": "string",
                        "description": "The new content to replace the selection with."
                    },
                    "explanation": {
                        "type": "string",
                        "description": "Brief explanation of the change made (1-2 sentences)."
                    }
                },
                "required": ["new_content"]
            }
        }
    },
    {
        "type": "function",
        "function": {
            "name": "insert_at_position",
            "description": (
                "Insert new content at a specific position in the document. "
                "Use 'start', 'end', 'after_heading:HeadingText', or 'line:N' for a line number."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "position": {
                        "type": "string",
                        "description": "Where to insert: 'start', 'end', 'after_heading:HeadingText', or 'line:N'."
                    },
                    "content": {
                        "type": "string",
                        "description": "The markdown content to insert."
                    }
                },
                "required": ["position", "content"]
            }
        }
    },
    {
        "type": "function",
        "function": {
            "name": "replace_section",
            "description": (
                "Replace an entire section (heading + content until the next "
                "same-level or higher heading) with new content."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "section_heading": {
                        "type": "string",
                        "description": "The exact text of the section heading to replace, without the leading #."
                    },
                    "new_content": {
                        "type": "string",
                        "description": "The new content for the section (include the heading)."
                    }
                },
                "required": ["section_heading", "new_content"]
            }
        }
    },
    {
        "type": "function",
        "function": {
            "name": "find_and_replace",
            "description": (
                "Find specific text in the document and replace it. "
                "Use for targeted changes when no selection is available."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "find_text": {
                        "type": "string",
                        "description": "The exact text to find (case-sensitive)."
                    },
                    "replace_with": {
                        "type": "string",
                        "description": "The text to replace it with."
                    },
                    "replace_all": {
                        "type": "boolean",
                        "description": "Whether to replace all occurrences (default: false, only the first)."
                    }
                },
                "required": ["find_text", "replace_with"]
            }
        }
    },
    {
        "type": "function",
        "function": {
            "name": "rewrite_document",
            "description": (
                "Replace the entire document content. Only use when major "
                "restructuring is needed and the user has confirmed."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "new_content": {
                        "type": "string",
                        "description": "The complete new document content in markdown."
                    },
                    "summary": {
                        "type": "string",
                        "description": "Brief summary of the major changes made."
                    }
                },
                "required": ["new_content", "summary"]
            }
        }
    }
]

TOOL_NAMES = [t["function"]["name"] for t in TOOL_DEFINITIONS]

POSITION_HELP = "Use 'start', 'end', 'after_heading:HeadingText', or 'line:N'."


@dataclass
class SelectionContext:
    text: str
    start_offset: int
    end_offset: int
    content_snapshot: str = ""


@dataclass
class ToolExecutionResult:
    success: bool
    new_content: str
    message: str


def _ok(new_content: str, message: str) -> ToolExecutionResult:
    return ToolExecutionResult(success=True, new_content=new_content, message=message)


def _fail(content: str, message: str) -> ToolExecutionResult:
    return ToolExecutionResult(success=False, new_content=content, message=message)


def _heading_pattern(heading_text: str) -> re.Pattern:
    # whole line, any level 1-6, case-sensitive
    return re.compile(rf"^(#{{1,6}})[^\S\n]*{re.escape(heading_text)}[^\S\n]*$", re.MULTILINE)


def find_heading(content: str, heading_text: str) -> Optional[re.Match]:
    """First heading line whose text is exactly `heading_text`, at any level."""
    return _heading_pattern(heading_text).search(content)


def find_section_end(content: str, heading: re.Match) -> int:
    """
    Offset where the section opened by `heading` ends: the start of the next
    heading of the same or a shallower level, or the end of the document.
    """
    level = len(heading.group(1))
    rest_start = heading.end()
    next_heading = re.compile(rf"^#{{1,{level}}}\s", re.MULTILINE).search(content, rest_start)
    return next_heading.start() if next_heading else len(content)


def _missing_string(tool_input: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = tool_input.get(key)
        if value is None:
            return f"Missing {key} parameter."
        if not isinstance(value, str):
            return f"{key} must be a string."
    return None


def _message(value, default: str) -> str:
    return value if isinstance(value, str) and value else default


def execute_document_tool(
    tool_name: str,
    tool_input: dict,
    document_content: str,
    selection_context: Optional[SelectionContext] = None,
) -> ToolExecutionResult:
    if not isinstance(tool_input, dict):
        tool_input = {}

    if tool_name == "replace_selection":
        return handle_replace_selection(document_content, tool_input, selection_context)

    if tool_name == "insert_at_position":
        return handle_insert_at_position(document_content, tool_input)

    if tool_name == "replace_section":
        return handle_replace_section(document_content, tool_input)

    if tool_name == "find_and_replace":
        return handle_find_and_replace(document_content, tool_input)

    if tool_name == "rewrite_document":
        return handle_rewrite_document(document_content, tool_input)

    return _fail(document_content, f"Unknown tool: {tool_name}")


def handle_replace_selection(
    content: str,
    tool_input: dict,
    selection_context: Optional[SelectionContext],
) -> ToolExecutionResult:
    if selection_context is None:
        return _fail(content, "No text is currently selected. Please select text first.")

    new_content = tool_input.get("new_content")
    if new_content is None:
        return _fail(content, "Missing new_content parameter for replacement.")
    if not isinstance(new_content, str):
        return _fail(content, "new_content must be a string.")

    start = selection_context.start_offset
    end = selection_context.end_offset

    if not all(isinstance(o, int) and not isinstance(o, bool) for o in (start, end)):
        return _fail(content, "Invalid selection offsets.")

    if start < 0 or end < 0:
        return _fail(content, "Selection offsets cannot be negative.")

    if start > end:
        return _fail(content, "Invalid selection: start offset is greater than end offset.")

    # the document may have been edited since the selection was taken
    if end > len(content):
        return _fail(
            content,
            "Selection extends beyond document length. The document may have changed since selection.",
        )

    return _ok(
        content[:start] + new_content + content[end:],
        _message(tool_input.get("explanation"), "Replaced selection with new content"),
    )


def handle_insert_at_position(content: str, tool_input: dict) -> ToolExecutionResult:
    error = _missing_string(tool_input, "position", "content")
    if error:
        return _fail(content, error)

    position = tool_input["position"]
    insert_content = tool_input["content"]

    if position == "start":
        return _ok(insert_content + "\n\n" + content, "Content inserted at start of document")

    if position == "end":
        return _ok(content + "\n\n" + insert_content, "Content inserted at end of document")

    if position.startswith("after_heading:"):
        heading_text = position[len("after_heading:"):]
        heading = find_heading(content, heading_text)
        if not heading:
            return _fail(content, f'Heading "{heading_text}" not found in document')

        insert_point = heading.end()
        return _ok(
            content[:insert_point] + "\n\n" + insert_content + content[insert_point:],
            f'Content inserted after "{heading_text}"',
        )

    if position.startswith("line:"):
        lines = content.split("\n")
        raw_line = position[len("line:"):].strip()
        try:
            line_num = int(raw_line)
        except ValueError:
            return _fail(content, f"Invalid line number: {raw_line}. Document has {len(lines)} lines.")

        if not 1 <= line_num <= len(lines) + 1:
            return _fail(content, f"Invalid line number: {line_num}. Document has {len(lines)} lines.")

        lines.insert(line_num - 1, insert_content)
        return _ok("\n".join(lines), f"Content inserted at line {line_num}")

    return _fail(content, f"Unknown position format: {position}. {POSITION_HELP}")


def handle_replace_section(content: str, tool_input: dict) -> ToolExecutionResult:
    error = _missing_string(tool_input, "section_heading", "new_content")
    if error:
        return _fail(content, error)

    section_heading = tool_input["section_heading"]
    new_content = tool_input["new_content"]

    heading = find_heading(content, section_heading)
    if not heading:
        return _fail(content, f'Section "{section_heading}" not found in document')

    section_start = heading.start()
    section_end = find_section_end(content, heading)

    if section_end < len(content) and new_content.strip():
        # keep the blank lines separating this section from the next heading
        section = content[section_start:section_end]
        separator = section[len(section.rstrip()):] or "\n"
        new_content = new_content.rstrip("\r\n") + separator

    return _ok(
        content[:section_start] + new_content + content[section_end:],
        f'Section "{section_heading}" replaced',
    )


def handle_find_and_replace(content: str, tool_input: dict) -> ToolExecutionResult:
    error = _missing_string(tool_input, "find_text", "replace_with")
    if error:
        return _fail(content, error)

    find_text = tool_input["find_text"]
    replace_with = tool_input["replace_with"]
    replace_all = bool(tool_input.get("replace_all", False))

    if not find_text or find_text not in content:
        preview = find_text[:FIND_PREVIEW_CHARS]
        if len(find_text) > FIND_PREVIEW_CHARS:
            preview += "..."
        return _fail(content, f'Text "{preview}" not found in document')

    if replace_all:
        count = content.count(find_text)
        new_content = content.replace(find_text, replace_with)
    else:
        count = 1
        new_content = content.replace(find_text, replace_with, 1)

    return _ok(new_content, f"Replaced {count} occurrence{'s' if count > 1 else ''}")


def handle_rewrite_document(content: str, tool_input: dict) -> ToolExecutionResult:
    new_content = tool_input.get("new_content")
    if not isinstance(new_content, str):
        return _fail(content, "new_content must be a string.")

    return _ok(new_content, _message(tool_input.get("summary"), "Document rewritten"))
