"""RSS feed download and tree building for RSS HTML Reader."""

from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
)

from .config import FetchConfig
from .errors import InvalidFeedError
from .logging_config import create_execution_logger
from .models import CHANNEL_TAG, FeedNode
from .tree import find_child

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def _qualified_name(tag: Tag) -> str:
    # Keep the namespace prefix so <atom:link> never shadows <link>
    if tag.prefix:
        return f"{tag.prefix}:{tag.name}"
    return tag.name


def build_tree(tag: Tag) -> FeedNode:
    """Convert a BeautifulSoup tag into an immutable FeedNode tree.

    Whitespace-only strings, comments and processing instructions are
    dropped; remaining text is stripped.
    """
    children = []
    for child in tag.children:
        if isinstance(child, Tag):
            children.append(build_tree(child))
        elif isinstance(child, NavigableString) and not isinstance(
            child, _SKIPPED_STRINGS
        ):
            text = str(child).strip()
            if text:
                children.append(FeedNode.text(text))

    attributes = {
        name: " ".join(value) if isinstance(value, list) else str(value)
        for name, value in tag.attrs.items()
    }
    return FeedNode(
        label=_qualified_name(tag), children=tuple(children), attributes=attributes
    )


class FeedFetcher:
    """Downloads RSS 2.0 feeds and turns them into FeedNode trees."""

    def __init__(
        self, config: FetchConfig | None = None, execution_id: str | None = None
    ):
        """Initialize FeedFetcher with configuration.

        Args:
            config: HTTP settings (timeout, user agent)
            execution_id: Execution ID for logging context
        """
        self.config = config or FetchConfig()
        self.logger = create_execution_logger("fetcher", execution_id)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

        self.logger.info("FeedFetcher initialized", timeout=self.config.timeout)

    def fetch(self, feed_url: str) -> bytes:
        """Download the raw feed document.

        Raises:
            InvalidFeedError: If feed URL is not HTTP(S)
            requests.RequestException: If feed download fails
        """
        parsed_url = urlparse(feed_url)
        if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
            error_msg = f"Feed URL must be an http(s) URL: {feed_url}"
            self.logger.error(error_msg, feed_url=feed_url, scheme=parsed_url.scheme)
            raise InvalidFeedError(error_msg)

        try:
            self.logger.info("Downloading feed content", feed_url=feed_url)
            response = self.session.get(feed_url, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise

        self.logger.info(
            "Feed downloaded successfully",
            feed_url=feed_url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.content

    def parse(self, content: bytes | str) -> FeedNode:
        """Parse a feed document into a FeedNode tree rooted at its top element.

        Raises:
            InvalidFeedError: If the document is empty or has no root element
        """
        if not content or not content.strip():
            raise InvalidFeedError("Feed document is empty")

        try:
            soup = BeautifulSoup(content, "xml")
        except ParserRejectedMarkup as e:
            raise InvalidFeedError(f"Feed document could not be parsed: {e}") from e

        root = next((child for child in soup.children if isinstance(child, Tag)), None)
        if root is None:
            raise InvalidFeedError("Feed document has no root element")
        return build_tree(root)

    def load_channel(self, feed_url: str) -> FeedNode:
        """Fetch a feed and return its <channel> element.

        Raises:
            InvalidFeedError: If the document is not an RSS 2.0 feed with a channel
            requests.RequestException: If feed download fails
        """
        root = self.parse(self.fetch(feed_url))

        if root.label != "rss" or root.attribute("version") != "2.0":
            error_msg = f"Not an RSS 2.0 feed: {feed_url}"
            self.logger.warning(
                error_msg,
                feed_url=feed_url,
                root=root.label,
                version=root.attribute("version"),
            )
            raise InvalidFeedError(error_msg)

        index = find_child(root, CHANNEL_TAG)
        if index is None:
            raise InvalidFeedError(f"RSS feed has no <channel> element: {feed_url}")

        channel = root.child(index)
        self.logger.info(
            "Feed parsed successfully",
            feed_url=feed_url,
            channel_children=channel.child_count,
        )
        return channel
