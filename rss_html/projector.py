"""HTML projection of parsed RSS 2.0 channels."""

import html
from typing import TextIO

from bs4 import BeautifulSoup

from .config import ProjectionConfig
from .errors import InvalidElementError, MissingChannelLinkError, SinkClosedError
from .logging_config import create_execution_logger
from .models import CHANNEL_TAG, ITEM_TAG, FeedNode
from .tree import index_children

NO_INFORMATION = "no information"
NO_CHANNEL_DESCRIPTION = "No Description."
NO_DATE = "No Date Available"
NO_SOURCE = "No Source Available."
NO_ITEM_DESCRIPTION = "No description"

TABLE_COLUMNS = ("Date", "Source", "News")


def plain_text(value: str) -> str:
    """Remove HTML markup from a feed text and normalize whitespace.

    Args:
        value: Raw text that may contain (unescaped) HTML

    Returns:
        Clean text content without HTML tags
    """
    if not value:
        return ""

    if "<" in value or ">" in value:
        soup = BeautifulSoup(value, "html.parser")

        # Remove script and style elements
        for script in soup(["script", "style"]):
            script.decompose()

        value = soup.get_text(separator=" ")

    return " ".join(value.split())


def _text(value: str) -> str:
    return html.escape(plain_text(value), quote=False)


def _href(value: str) -> str:
    return html.escape(value.strip(), quote=True)


def _require_sink(sink: TextIO) -> None:
    if sink is None:
        raise SinkClosedError("Output sink must not be None")
    if getattr(sink, "closed", False):
        raise SinkClosedError("Output sink is closed")


def _require_element(element: FeedNode, tag: str) -> None:
    if element is None:
        raise InvalidElementError(f"<{tag}> element must not be None")
    if not element.is_tag or element.label != tag:
        raise InvalidElementError(
            f"Expected a <{tag}> element, got {element.label!r}"
        )


def _write_lines(sink: TextIO, *lines: str) -> None:
    for line in lines:
        sink.write(f"{line}\n")


def _counts_as_present(index: int | None, config: ProjectionConfig) -> bool:
    if index is None:
        return False
    if config.legacy_index_quirks:
        # A match in position 0 is treated as missing
        return index > 0
    return True


class ItemProjector:
    """Renders a single <item> element as an HTML table row."""

    def __init__(
        self, config: ProjectionConfig | None = None, execution_id: str | None = None
    ):
        """Initialize the item projector.

        Args:
            config: Projection settings (index-quirk mode)
            execution_id: Execution ID for logging context
        """
        self.config = config or ProjectionConfig()
        self.logger = create_execution_logger("item_projector", execution_id)

    def emit_row(self, item: FeedNode, sink: TextIO) -> None:
        """Write one table row with the date, source and news cells of an item.

        Raises:
            InvalidElementError: If item is not an <item> element
            SinkClosedError: If sink is None or closed
        """
        _require_element(item, ITEM_TAG)
        _require_sink(sink)

        positions = index_children(item)
        date_cell = f"<td>{_text(self._date_text(item, positions))}</td>"
        source_cell = self._source_cell(item, positions)
        news_cell = self._news_cell(item, positions)

        _write_lines(sink, "<tr>", date_cell, source_cell, news_cell, "</tr>")
        self.logger.debug("Item row written", has_source="source" in positions)

    def _date_text(self, item: FeedNode, positions: dict[str, int]) -> str:
        index = positions.get("pubDate")
        if index is None or not item.child(index).children:
            return NO_DATE
        return item.child(index).first_text()

    def _source_cell(self, item: FeedNode, positions: dict[str, int]) -> str:
        if "source" not in positions:
            return f"<td>{NO_SOURCE}</td>"

        source = item.child(positions["source"])
        return (
            f'<td><a href="{_href(source.attribute("url"))}">'
            f"{_text(source.first_text())}</a></td>"
        )

    def _news_cell(self, item: FeedNode, positions: dict[str, int]) -> str:
        url = ""
        link_index = positions.get("link")
        if _counts_as_present(link_index, self.config):
            url = item.child(link_index).first_text()

        description_index = positions.get("description")
        title_index = positions.get("title")
        if _counts_as_present(description_index, self.config):
            news = item.child(description_index).first_text()
        elif _counts_as_present(title_index, self.config):
            news = item.child(title_index).first_text()
        else:
            news = NO_ITEM_DESCRIPTION

        return f'<td><a href="{_href(url)}">{_text(news)}</a></td>'


class ChannelProjector:
    """Renders the page header for a <channel> and one row per item."""

    def __init__(
        self,
        config: ProjectionConfig | None = None,
        item_projector: ItemProjector | None = None,
        execution_id: str | None = None,
    ):
        """Initialize the channel projector.

        Args:
            config: Projection settings (index-quirk mode)
            item_projector: Row renderer for items; built from config if omitted
            execution_id: Execution ID for logging context
        """
        self.config = config or ProjectionConfig()
        self.item_projector = item_projector or ItemProjector(self.config, execution_id)
        self.logger = create_execution_logger("channel_projector", execution_id)

    def emit_header(self, channel: FeedNode, sink: TextIO) -> int:
        """Write the document head, the channel heading and the table start,
        followed by one row per <item> child in document order.

        Args:
            channel: The <channel> element
            sink: Open text stream receiving the markup

        Returns:
            Number of item rows written

        Raises:
            InvalidElementError: If channel is not a <channel> element
            SinkClosedError: If sink is None or closed
            MissingChannelLinkError: If the channel has no <link> text
        """
        _require_element(channel, CHANNEL_TAG)
        _require_sink(sink)

        positions = index_children(channel)
        title = self._resolve_title(channel, positions)
        description = self._resolve_description(channel, positions)
        link = self._resolve_link(channel, positions)

        self.logger.info("Rendering channel header", title=title, link=link)
        _write_lines(
            sink,
            "<html>",
            "<head>",
            f"<title>{_text(title)}</title>",
            "</head>",
            "<body>",
            f'<h1><a href="{_href(link)}">{_text(title)}</a></h1>',
            f"<p>{_text(description)}</p>",
            '<table border="1">',
            "<tr>",
            *(f"<th>{column}</th>" for column in TABLE_COLUMNS),
            "</tr>",
        )

        rows = 0
        for child in channel.children:
            if child.is_tag and child.label == ITEM_TAG:
                self.item_projector.emit_row(child, sink)
                rows += 1

        self.logger.info(f"Rendered {rows} item rows", items_count=rows)
        return rows

    def _resolve_title(self, channel: FeedNode, positions: dict[str, int]) -> str:
        if "title" in positions:
            return channel.child(positions["title"]).first_text()

        description_index = positions.get("description")
        if _counts_as_present(description_index, self.config):
            # Label of the element itself, i.e. the literal "description"
            return channel.child(description_index).label

        return NO_INFORMATION

    def _resolve_description(self, channel: FeedNode, positions: dict[str, int]) -> str:
        index = positions.get("description")
        if index is None or not channel.child(index).children:
            return NO_CHANNEL_DESCRIPTION
        return channel.child(index).first_text()

    def _resolve_link(self, channel: FeedNode, positions: dict[str, int]) -> str:
        index = positions.get("link")
        if index is None:
            raise MissingChannelLinkError("Channel has no <link> element")

        link = channel.child(index).first_text()
        if not link.strip():
            raise MissingChannelLinkError("Channel <link> element has no text")
        return link


class FooterEmitter:
    """Writes the closing markup of a report."""

    def emit_footer(self, sink: TextIO) -> None:
        """Close the table, the body and the document."""
        _require_sink(sink)
        _write_lines(sink, "</table>", "</body>", "</html>")


def render_feed(
    channel: FeedNode,
    sink: TextIO,
    config: ProjectionConfig | None = None,
    execution_id: str | None = None,
) -> int:
    """Render a whole channel (header, item rows and footer) into sink.

    Returns:
        Number of item rows written
    """
    rows = ChannelProjector(config, execution_id=execution_id).emit_header(channel, sink)
    FooterEmitter().emit_footer(sink)
    return rows
