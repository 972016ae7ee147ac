"""Crawl items arranged as a tree rooted at a seed, with their pipeline state."""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum

from .url import URL


class ItemState(Enum):
    """State of an item in the crawl pipeline."""

    FRESH = 0
    PRE_PROCESSED = 1
    ARCHIVED = 2
    FAILED = 3
    COMPLETED = 4
    SEEN = 5
    GOT_REDIRECTED = 6
    GOT_CHILDREN = 7

    def __str__(self) -> str:
        return _STATE_NAMES[self]


_STATE_NAMES = {
    ItemState.FRESH: "Fresh",
    ItemState.PRE_PROCESSED: "PreProcessed",
    ItemState.ARCHIVED: "Archived",
    ItemState.FAILED: "Failed",
    ItemState.COMPLETED: "Completed",
    ItemState.SEEN: "Seen",
    ItemState.GOT_REDIRECTED: "GotRedirected",
    ItemState.GOT_CHILDREN: "GotChildren",
}


class ItemSource(Enum):
    """Where an item entered the pipeline from."""

    INSERT = 0
    QUEUE = 1
    HQ = 2
    POSTPROCESS = 3
    FEEDBACK = 4


_SEED_ONLY_SOURCES = frozenset({ItemSource.INSERT, ItemSource.QUEUE, ItemSource.HQ})
_SHORT_ID_PREFIXES = ("seed-", "asset-")
_SHORT_ID_LENGTH = 5


class ItemError(Exception):
    """Base class for item errors."""


class NotASeedError(ItemError):
    def __init__(self, message: str = "item is not a seed") -> None:
        super().__init__(message)


class FailedAtPreprocessorError(ItemError):
    def __init__(self, message: str = "item failed at preprocessor") -> None:
        super().__init__(message)


class FailedAtArchiverError(ItemError):
    def __init__(self, message: str = "item failed at archiver") -> None:
        super().__init__(message)


class FailedAtPostprocessorError(ItemError):
    def __init__(self, message: str = "item failed at postprocessor") -> None:
        super().__init__(message)


class ConsistencyError(ItemError):
    """An item tree breaks one of the model's constraints."""


class Item:
    """A URL, the items discovered from it, and its state in the pipeline."""

    def __init__(self, id: str, url: URL, seed_via: str = "") -> None:
        if not id:
            raise ValueError("item id must not be empty")
        if url is None:
            raise ValueError("item url must not be None")
        self.id = id
        self.url: URL | None = url
        self.seed_via = seed_via
        self.status = ItemState.FRESH
        self._source = ItemSource.INSERT
        self.base = ""
        self.error: BaseException | None = None
        self.parent: Item | None = None
        self._children: list[Item] = []
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"Item({self.id!r}, status={self.status})"

    def check_consistency(self) -> None:
        """Raise ConsistencyError if this item or any descendant breaks a constraint."""
        if self.url is None:
            raise ConsistencyError("url is nil")
        if not self.id:
            raise ConsistencyError("id is empty")
        if not self.is_seed and self.seed_via:
            raise ConsistencyError("item is a child but has a seedVia")
        if self.status is ItemState.FRESH and self._children:
            raise ConsistencyError("item is fresh but has children")
        if (
            self.status is ItemState.FRESH
            and self.parent is not None
            and self.parent.status not in (ItemState.GOT_CHILDREN, ItemState.GOT_REDIRECTED)
        ):
            raise ConsistencyError(
                "item is not a seed and fresh but parent is not ItemGotChildren or ItemGotRedirected"
            )
        if len(self._children) > 1 and self.status is ItemState.GOT_REDIRECTED:
            raise ConsistencyError("item has more than one children but is ItemGotRedirected")
        if self._children and self.status not in (
            ItemState.GOT_CHILDREN,
            ItemState.GOT_REDIRECTED,
            ItemState.COMPLETED,
            ItemState.FAILED,
        ):
            raise ConsistencyError(
                "item has children but is not ItemGotChildren, ItemGotRedirected, "
                "ItemCompleted or ItemFailed"
            )
        for child in self.children:
            try:
                child.check_consistency()
            except ConsistencyError as exc:
                raise ConsistencyError(f"child {child.id}: {exc}") from exc

    @property
    def short_id(self) -> str:
        """A short form of the ID, keeping HQ prefixes."""
        for prefix in _SHORT_ID_PREFIXES:
            if self.id.startswith(prefix):
                return self.id[: len(prefix) + _SHORT_ID_LENGTH]
        return self.id[:_SHORT_ID_LENGTH]

    @property
    def source(self) -> ItemSource:
        return self._source

    @source.setter
    def source(self, source: ItemSource) -> None:
        if not self.is_seed and source in _SEED_ONLY_SOURCES:
            raise ItemError("source is invalid for a child")
        self._source = source

    @property
    def children(self) -> list[Item]:
        """A snapshot of the item's children."""
        with self._lock:
            return [child for child in self._children if child is not None]

    @property
    def max_depth(self) -> int:
        """Height of the subtree below this item."""
        children = self.children
        if not children:
            return 0
        return max(child.max_depth for child in children) + 1

    @property
    def depth(self) -> int:
        """Distance from the seed."""
        if self.parent is None:
            return 0
        return self.parent.depth + 1

    @property
    def depth_without_redirections(self) -> int:
        """Distance from the seed, not counting redirection hops."""
        if self.parent is None:
            # A redirecting seed counts -1 so that its redirect target ends at 0.
            return -1 if self.status is ItemState.GOT_REDIRECTED else 0
        parent_depth = self.parent.depth_without_redirections
        if self.status is ItemState.GOT_REDIRECTED:
            return parent_depth
        return parent_depth + 1

    @property
    def seed(self) -> Item:
        """The topmost ancestor of this item."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def nodes_at_level(self, target_level: int) -> list[Item]:
        """All items exactly target_level levels below this seed."""
        if not self.is_seed:
            raise NotASeedError()
        result: list[Item] = []

        def collect(node: Item, level: int) -> None:
            if level == target_level:
                result.append(node)
                return
            for child in node.children:
                collect(child, level + 1)

        collect(self, 0)
        return result

    def add_child(self, child: Item, from_state: ItemState) -> None:
        """Attach child and mark this item as redirected or as having children."""
        with self._lock:
            if child is None:
                raise ItemError("child is nil")
            if from_state not in (ItemState.GOT_REDIRECTED, ItemState.GOT_CHILDREN):
                raise ItemError(
                    "from state is invalid, only ItemGotRedirected and ItemGotChildren are allowed"
                )
            if (
                child.parent is not None
                and child.parent.status is ItemState.GOT_REDIRECTED
                and (
                    from_state is ItemState.GOT_CHILDREN
                    or child.status is ItemState.GOT_CHILDREN
                )
            ):
                raise ItemError("parent already has children or redirection, cannot add child")
            self._children.append(child)
            child.parent = self
            self.status = from_state
            child.status = ItemState.FRESH

    def remove_child(self, child: Item) -> None:
        """Detach the first child whose ID matches child's; no-op if absent."""
        if child is None:
            raise ValueError("parent or child is nil")
        with self._lock:
            for index, existing in enumerate(self._children):
                if existing is not None and existing.id == child.id:
                    del self._children[index]
                    return

    @property
    def is_seed(self) -> bool:
        return self.parent is None

    @property
    def is_redirection(self) -> bool:
        return self.parent is not None and self.parent.status is ItemState.GOT_REDIRECTED

    @property
    def is_child(self) -> bool:
        return self.parent is not None and self.parent.status is ItemState.GOT_CHILDREN

    @property
    def has_redirection(self) -> bool:
        return len(self._children) == 1 and self.status is ItemState.GOT_REDIRECTED

    @property
    def has_children(self) -> bool:
        return bool(self._children) and self.status is ItemState.GOT_CHILDREN

    @property
    def has_work(self) -> bool:
        return self.status not in (ItemState.COMPLETED, ItemState.SEEN, ItemState.FAILED)

    def traverse(self, fn: Callable[[Item], object]) -> None:
        """Call fn on this item and then on each descendant, depth first."""
        fn(self)
        for child in self.children:
            child.traverse(fn)

    def complete_and_check(self) -> bool:
        """Complete finished items of this seed's tree; True if the seed is done."""
        if not self.is_seed:
            return False
        if not self.has_work:
            return True
        mark_completed(self)
        return not self.has_work


def mark_completed(node: Item | None) -> None:
    """Mark items completed when all their children are done, bottom up."""
    if node is None:
        return
    for child in node.children:
        mark_completed(child)
    if node.status in (ItemState.GOT_CHILDREN, ItemState.GOT_REDIRECTED) and all(
        not child.has_work for child in node.children
    ):
        node.status = ItemState.COMPLETED