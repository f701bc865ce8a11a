"""
Renders a conversation's topic tree for the terminal
"""
from typing import Dict

from rich.text import Text
from rich.tree import Tree

from .conversation import ConversationIndex
from .models import NodeRank, TopicNode

RANK_STYLES = {
    NodeRank.ROOT: "bold",
    NodeRank.TOPIC: "bold cyan",
    NodeRank.SUBTOPIC: "green",
    NodeRank.DETAIL: "dim",
}


def _node_text(node: TopicNode) -> Text:
    text = Text(node.label, style=RANK_STYLES.get(node.rank, ""))
    text.append(f"  ({node.prompt_count})", style="dim")
    return text


def render_outline(index: ConversationIndex, show_prompts: bool = False) -> Tree:
    """Build a rich Tree of the conversation, children in insertion order."""
    prompts: Dict[int, str] = {p.index: p.first_sentence for p in index.prompts}
    root = index.tree.root
    outline = Tree(Text(f"{index.conversation_id}  ({root.prompt_count} prompts)", style="bold"))

    def add_children(branch: Tree, node: TopicNode) -> None:
        if show_prompts:
            for prompt_index in node.prompt_indices:
                branch.add(Text(f"#{prompt_index} {prompts.get(prompt_index, '')}", style="dim"))
        for child_id in node.children:
            child = index.tree.get(child_id)
            if child is not None:
                add_children(branch.add(_node_text(child)), child)

    add_children(outline, root)
    return outline
