# agents/tools/selection.py
"""
Maps a text selection made in the rendered markdown view back to character
offsets in the raw markdown source.

The rendered view drops markdown syntax, so the offset measured over the
rendered text nodes is only an approximation. The selected text is then
searched for in a window of the raw source around that approximation, first
exactly and then with whitespace runs collapsed.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from lxml import html as lxml_html

from config import SELECTION_WINDOW_SIZE
from agents.tools.document_tools import SelectionContext

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass
class RenderedSelection:
    """
    A selection inside the rendered container. Node references are indexes
    into `text_nodes`; None means the node lies outside the container.
    """
    text: str
    text_nodes: list[str] = field(default_factory=list)
    start_node: Optional[int] = None
    start_offset: int = 0
    anchor_node: Optional[int] = None
    focus_node: Optional[int] = None

    @property
    def is_collapsed(self) -> bool:
        return self.text == ""

    def within_container(self) -> bool:
        return all(
            node is not None and 0 <= node < len(self.text_nodes)
            for node in (self.anchor_node, self.focus_node)
        )


def _collect_text(element, out: list[str]):
    # comments and processing instructions carry non-string tags
    if isinstance(element.tag, str) and element.text:
        out.append(element.text)
    for child in element:
        _collect_text(child, out)
        if child.tail:
            out.append(child.tail)


def text_nodes_from_html(rendered_html: str) -> list[str]:
    """Text nodes of a rendered container, in document order."""
    if not rendered_html or not rendered_html.strip():
        return []
    root = lxml_html.fragment_fromstring(rendered_html, create_parent="div")
    nodes: list[str] = []
    _collect_text(root, nodes)
    return nodes


def get_text_offset(text_nodes: list[str], target_node: int, target_offset: int) -> int:
    offset = 0
    for index, node_text in enumerate(text_nodes):
        if index == target_node:
            return offset + target_offset
        offset += len(node_text)
    return offset


def _is_space(ch: str) -> bool:
    return _WHITESPACE_RUN.match(ch) is not None


def _map_normalized_start(area: str, normalized_index: int) -> int:
    """Original offset in `area` of position `normalized_index` in its collapsed form."""
    original = 0
    normalized = 0
    while normalized < normalized_index and original < len(area):
        if _is_space(area[original]):
            while original < len(area) and _is_space(area[original]):
                original += 1
        else:
            original += 1
        normalized += 1
    return original


def _map_normalized_end(area: str, start: int, selected: str) -> int:
    """Walk `area` from `start` alongside `selected`, treating whitespace runs as one unit."""
    end = start
    pos = 0
    while pos < len(selected) and end < len(area):
        if _is_space(area[end]) and _is_space(selected[pos]):
            while end < len(area) and _is_space(area[end]):
                end += 1
            while pos < len(selected) and _is_space(selected[pos]):
                pos += 1
        elif area[end] == selected[pos]:
            end += 1
            pos += 1
        else:
            break
    return end


def find_markdown_offset(
    content: str,
    selected_text: str,
    approximate_offset: int,
    window_size: int = SELECTION_WINDOW_SIZE,
) -> Optional[tuple[int, int]]:
    """
    Locate `selected_text` in `content` near `approximate_offset`.
    Returns (start, end) offsets into `content`, or None.
    """
    search_start = max(0, approximate_offset - window_size)
    search_end = min(len(content), approximate_offset + len(selected_text) + window_size)
    area = content[search_start:search_end]

    index = area.find(selected_text)
    if index != -1:
        start = search_start + index
        return start, start + len(selected_text)

    normalized_selected = _WHITESPACE_RUN.sub(" ", selected_text).strip()
    if not normalized_selected:
        return None

    normalized_area = _WHITESPACE_RUN.sub(" ", area)
    normalized_index = normalized_area.find(normalized_selected)
    if normalized_index == -1:
        return None

    original_start = _map_normalized_start(area, normalized_index)
    original_end = _map_normalized_end(area, original_start, normalized_selected)
    return search_start + original_start, search_start + original_end


def reconcile_selection(
    content: str,
    selection: Optional[RenderedSelection],
    enabled: bool = True,
) -> Optional[SelectionContext]:
    if not enabled or selection is None:
        return None

    if selection.is_collapsed or not selection.within_container():
        return None

    if not selection.text.strip():
        return None

    start_node = selection.start_node if selection.start_node is not None else selection.anchor_node
    approximate_offset = get_text_offset(selection.text_nodes, start_node, selection.start_offset)

    offsets = find_markdown_offset(content, selection.text, approximate_offset)
    if offsets is None:
        return None

    start, end = offsets
    return SelectionContext(
        text=selection.text,
        start_offset=start,
        end_offset=end,
        content_snapshot=content,
    )
