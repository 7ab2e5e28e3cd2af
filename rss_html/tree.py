"""Child lookup helpers for parsed feed trees."""

from .errors import InvalidElementError
from .models import FeedNode


def _require_tag_node(element: FeedNode) -> None:
    if element is None:
        raise InvalidElementError("Element must not be None")
    if not element.is_tag:
        raise InvalidElementError(
            f"Expected a tag element, got text node {element.label!r}"
        )


def find_child(element: FeedNode, tag_name: str) -> int | None:
    """Find the first child of ``element`` tagged ``tag_name``.

    Args:
        element: Tag node whose direct children are scanned in document order
        tag_name: Tag to look for

    Returns:
        Index of the first matching child, or None if no child matches

    Raises:
        InvalidElementError: If element is None or a text node
    """
    _require_tag_node(element)
    if not isinstance(tag_name, str):
        raise InvalidElementError(f"Tag name must be a string, got {tag_name!r}")

    for index, child in enumerate(element.children):
        if child.is_tag and child.label == tag_name:
            return index
    return None


def has_child(element: FeedNode, tag_name: str) -> bool:
    """Check whether any direct child of ``element`` is tagged ``tag_name``."""
    return find_child(element, tag_name) is not None


def index_children(element: FeedNode) -> dict[str, int]:
    """Map every child tag of ``element`` to the index of its first occurrence.

    Same first-match results as find_child, built in a single pass.
    """
    _require_tag_node(element)

    first_index: dict[str, int] = {}
    for index, child in enumerate(element.children):
        if child.is_tag:
            first_index.setdefault(child.label, index)
    return first_index
