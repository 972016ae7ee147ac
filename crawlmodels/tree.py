"""Whole-tree operations on crawl items: deduplication, flattening and drawing."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from .item import Item, ItemState, NotASeedError, mark_completed


def flatten_tree(root: Item) -> list[Item]:
    """All items of the tree below root, root first, in depth-first order."""
    nodes: list[Item] = []

    def visit(node: Item) -> None:
        nodes.append(node)
        for child in node.children:
            visit(child)

    visit(root)
    return nodes


def dedupe_items(seed: Item) -> None:
    """Remove items whose URL already appears elsewhere in the seed's tree.

    The first item seen for a URL is kept, unless a later duplicate is
    completed while the kept one is not; the completed one then wins.
    Finished branches are marked completed afterwards.
    """
    if not seed.is_seed:
        raise NotASeedError()

    kept: dict[str, Item] = {}
    for node in flatten_tree(seed):
        if node.parent is None:
            continue
        key = str(node.url)
        existing = kept.get(key)
        if existing is None:
            kept[key] = node
        elif (
            existing.status is not ItemState.COMPLETED
            and not existing.is_seed
            and node.status is ItemState.COMPLETED
        ):
            existing.parent.remove_child(existing)
            kept[key] = node
        else:
            node.parent.remove_child(node)

    mark_completed(seed)


def _draw_lines(
    node: Item, label: Callable[[Item], str], prefix: str, is_tail: bool, is_root: bool
) -> Iterator[str]:
    if is_root:
        yield label(node)
        child_prefix = prefix
    else:
        yield prefix + ("└── " if is_tail else "├── ") + label(node)
        child_prefix = prefix + ("    " if is_tail else "│   ")
    children = node.children
    last = len(children) - 1
    for index, child in enumerate(children):
        yield from _draw_lines(child, label, child_prefix, index == last, False)


def _draw(item: Item, label: Callable[[Item], str]) -> str:
    return "".join(line + "\n" for line in _draw_lines(item.seed, label, "", True, True))


def draw_tree(item: Item) -> str:
    """ASCII drawing of the IDs in the tree the item belongs to."""
    return _draw(item, lambda node: node.id)


def draw_tree_with_status(item: Item) -> str:
    """ASCII drawing of the IDs and states in the tree the item belongs to."""
    return _draw(item, lambda node: f"{node.id} - {node.status}")