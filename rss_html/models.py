"""Data models for RSS HTML Reader."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

CHANNEL_TAG = "channel"
ITEM_TAG = "item"


@dataclass(frozen=True)
class FeedNode:
    """Represents one node of a parsed feed tree.

    Tag nodes carry the tag name as ``label``; text nodes carry the literal
    text. A text-leaf element such as ``<title>News</title>`` is a tag node
    with a single text node child.
    """

    label: str
    children: tuple["FeedNode", ...] = ()
    attributes: Mapping[str, str] = field(default_factory=dict)
    is_tag: bool = True

    def __post_init__(self):
        # Freeze the containers so the tree stays read-only after parsing
        object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(
            self, "attributes", MappingProxyType(dict(self.attributes))
        )

    @classmethod
    def element(cls, tag: str, *children: "FeedNode", **attributes: str) -> "FeedNode":
        """Build a tag node."""
        return cls(label=tag, children=children, attributes=attributes)

    @classmethod
    def text(cls, value: str) -> "FeedNode":
        """Build a text node."""
        return cls(label=value, is_tag=False)

    @classmethod
    def leaf(cls, tag: str, value: str, **attributes: str) -> "FeedNode":
        """Build a text-leaf element, e.g. ``<title>value</title>``."""
        return cls.element(tag, cls.text(value), **attributes)

    @property
    def child_count(self) -> int:
        return len(self.children)

    def child(self, index: int) -> "FeedNode":
        return self.children[index]

    def first_text(self) -> str:
        """Return the label of the first child, or "" for a childless node."""
        if not self.children:
            return ""
        return self.children[0].label

    def attribute(self, name: str, default: str = "") -> str:
        return self.attributes.get(name, default)
