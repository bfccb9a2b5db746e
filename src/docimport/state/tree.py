"""
Markdown to document tree conversion for docimport.

The tree is a nested dict structure in the shape used by rich-text editors:
every node has a `type`, block nodes have `content`, text nodes have `text`
and optional `marks`, and typed nodes carry `attrs`.
"""

from typing import Any, Dict, List

from markdown_it import MarkdownIt
from markdown_it.token import Token

# Literal two-character hard break token produced by the import pipeline
HARD_BREAK_TOKEN = "\\n"

BLOCK_TYPES = {
    "paragraph_open": "paragraph",
    "heading_open": "heading",
    "blockquote_open": "blockquote",
    "bullet_list_open": "bullet_list",
    "ordered_list_open": "ordered_list",
    "list_item_open": "list_item",
    "table_open": "table",
    "tr_open": "table_row",
    "th_open": "table_header",
    "td_open": "table_cell",
}
TRANSPARENT_TOKENS = {"thead_open", "thead_close", "tbody_open", "tbody_close"}
MARK_TYPES = {
    "strong_open": "strong",
    "em_open": "em",
    "s_open": "strikethrough",
}


def create_parser() -> MarkdownIt:
    """Markdown parser configured for imported documents."""
    return MarkdownIt("commonmark", {"html": False}).enable(["table", "strikethrough"])


_parser = create_parser()


def build_tree(markdown: str) -> Dict[str, Any]:
    """
    Parse markdown into a document tree.

    Args:
        markdown: Normalized markdown text

    Returns:
        Root `doc` node
    """
    doc: Dict[str, Any] = {"type": "doc", "content": []}
    stack: List[Dict[str, Any]] = [doc]

    for token in _parser.parse(markdown):
        if token.type in TRANSPARENT_TOKENS:
            continue

        if token.nesting == 1:
            node = _block_node(token)
            stack[-1]["content"].append(node)
            stack.append(node)
        elif token.nesting == -1:
            stack.pop()
        elif token.type == "inline":
            stack[-1]["content"].extend(_inline_nodes(token.children or []))
        elif token.type in ("fence", "code_block"):
            language = token.info.strip().split()[0] if token.info.strip() else ""
            code = token.content.rstrip("\n")
            stack[-1]["content"].append(
                {
                    "type": "code_block",
                    "attrs": {"language": language},
                    "content": [{"type": "text", "text": code}] if code else [],
                }
            )
        elif token.type == "hr":
            stack[-1]["content"].append({"type": "horizontal_rule"})

    if not doc["content"]:
        doc["content"].append({"type": "paragraph", "content": []})
    return doc


def _block_node(token: Token) -> Dict[str, Any]:
    node_type = BLOCK_TYPES.get(token.type, token.type.replace("_open", ""))
    node: Dict[str, Any] = {"type": node_type, "content": []}

    if node_type == "heading":
        node["attrs"] = {"level": int(token.tag[1])}
    elif node_type == "ordered_list":
        start = token.attrGet("start")
        node["attrs"] = {"order": int(start) if start is not None else 1}
    elif node_type in ("table_header", "table_cell"):
        style = token.attrGet("style") or ""
        alignment = style.replace("text-align:", "") or None
        node["attrs"] = {"alignment": alignment}
    return node


def _inline_nodes(tokens: List[Token]) -> List[Dict[str, Any]]:
    nodes: List[Dict[str, Any]] = []
    marks: List[Dict[str, Any]] = []

    for token in tokens:
        if token.type in MARK_TYPES:
            marks.append({"type": MARK_TYPES[token.type]})
        elif token.type == "link_open":
            marks.append({"type": "link", "attrs": {"href": token.attrGet("href")}})
        elif token.type in ("strong_close", "em_close", "s_close", "link_close"):
            if marks:
                marks.pop()
        elif token.type == "text":
            nodes.extend(_text_nodes(token.content, marks))
        elif token.type == "code_inline":
            nodes.extend(_text_nodes(token.content, marks + [{"type": "code_inline"}], split=False))
        elif token.type == "softbreak":
            nodes.extend(_text_nodes(" ", marks))
        elif token.type == "hardbreak":
            nodes.append({"type": "hard_break"})
        elif token.type == "image":
            nodes.append(
                {
                    "type": "image",
                    "attrs": {
                        "src": token.attrGet("src"),
                        "alt": token.content,
                        "title": token.attrGet("title"),
                    },
                }
            )

    return nodes


def _text_nodes(text: str, marks, split: bool = True) -> List[Dict[str, Any]]:
    """Text nodes for a run of text, turning hard break tokens into nodes."""
    segments = text.split(HARD_BREAK_TOKEN) if split else [text]
    nodes: List[Dict[str, Any]] = []
    for index, segment in enumerate(segments):
        if index > 0:
            nodes.append({"type": "hard_break"})
        if segment:
            node: Dict[str, Any] = {"type": "text", "text": segment}
            if marks:
                node["marks"] = [dict(mark) for mark in marks]
            nodes.append(node)
    return nodes
