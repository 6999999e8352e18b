"""Render materialized node trees as markdown."""

import io

from workflowy_bridge.models.node import NodeTree

_HEADING_PREFIX = {"h1": "# ", "h2": "## ", "h3": "### "}


def _write_tree(out: io.StringIO, tree: NodeTree, level: int, include_notes: bool) -> None:
    node = tree.node
    indent = "    " * level

    # Format checkbox
    prefix = "- "
    if node.layout_mode == "todo" or node.completed:
        prefix = "- [x] " if node.completed else "- [ ] "

    # Write name lines
    lines = node.name.split("\n")
    out.write(f"{indent}{prefix}{_HEADING_PREFIX.get(node.layout_mode or '', '')}{lines[0]}\n")
    for line in lines[1:]:
        out.write(f"{indent}  {line}\n")

    # Write notes
    if include_notes and node.note:
        for note_line in node.note.split("\n"):
            out.write(f"{indent}  > {note_line}\n")

    if tree.children is None:
        # Truncation indicator when children are cut off by the depth budget
        if tree.child_count > 0:
            child_indent = "    " * (level + 1)
            noun = "child" if tree.child_count == 1 else "children"
            out.write(f"{child_indent}- ... ({tree.child_count} more {noun}, id={node.id})\n")
        return

    for child in tree.children:
        _write_tree(out, child, level + 1, include_notes)


def render_tree_as_markdown(tree: NodeTree, *, include_notes: bool = True) -> str:
    """Render a node and its attached descendants as indented markdown.

    Args:
        tree: Result of hierarchy materialization.
        include_notes: Whether to include node notes.

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    out = io.StringIO()
    _write_tree(out, tree, 0, include_notes)
    return out.getvalue()
