"""Command-line driver for RSS HTML Reader."""

import argparse
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import requests

from .config import Config, ProjectionConfig
from .errors import InvalidFeedError, ProjectionError
from .logging_config import create_execution_logger, setup_structured_logging
from .models import FeedNode
from .projector import render_feed
from .rss import FeedFetcher

Prompt = Callable[[str], str]

STOP_ANSWER = "no"


def build_menu(presets: dict[str, str]) -> str:
    """Build the prompt listing the preset news sites."""
    lines = ["Enter a news site from a news source below or a feed URL"]
    lines.extend(f" - {name}" for name in presets)
    return "\n".join(lines) + "\n> "


def write_report(
    channel: FeedNode,
    output_path: Path,
    config: ProjectionConfig,
    execution_id: str | None = None,
) -> int:
    """Render a channel into an HTML file, removing the file if rendering fails.

    Returns:
        Number of item rows written
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(output_path, "w", encoding="utf-8") as sink:
            return render_feed(channel, sink, config, execution_id=execution_id)
    except ProjectionError:
        output_path.unlink(missing_ok=True)
        raise


class ReportSession:
    """Interactive loop: pick a feed, render it, and offer another one."""

    def __init__(
        self,
        config: Config,
        fetcher: FeedFetcher | None = None,
        ask: Prompt = input,
        execution_id: str | None = None,
    ):
        self.config = config
        self.execution_id = execution_id
        self.fetcher = fetcher or FeedFetcher(config.get_fetch_config(), execution_id)
        self.ask = ask
        self.logger = create_execution_logger("cli", execution_id)

    def resolve(self, choice: str) -> str:
        """Turn a menu answer into a feed URL, asking for a username if needed."""
        url = self.config.resolve_feed_url(choice)
        if Config.USER_PLACEHOLDER in url:
            user = self.ask("Enter the username of the feed you want: ").strip()
            url = url.replace(Config.USER_PLACEHOLDER, user)
        return url

    def prompt_channel(self) -> tuple[str, FeedNode]:
        """Ask for feeds until one loads as a valid RSS 2.0 channel."""
        question = build_menu(self.config.get_presets())
        while True:
            url = self.resolve(self.ask(question))
            try:
                return url, self.fetcher.load_channel(url)
            except (InvalidFeedError, requests.RequestException) as e:
                self.logger.warning(
                    f"Rejected feed {url}: {e}", feed_url=url, error=str(e)
                )
                print(f"Could not load an RSS 2.0 feed from {url}: {e}")
                question = "Enter a valid URL of a RSS 2.0 feed: "

    def prompt_output_path(self) -> Path:
        while True:
            try:
                return self.config.output_path(self.ask("Enter an output file name: "))
            except ValueError as e:
                print(e)

    def run(self) -> int:
        """Run until the user answers "no".

        Returns:
            Number of reports written
        """
        self.logger.log_execution_start(output_dir=str(self.config.output_dir))
        metrics = {"reports_written": 0, "items_written": 0, "errors": []}

        while True:
            url, channel = self.prompt_channel()
            output_path = self.prompt_output_path()
            try:
                rows = write_report(
                    channel,
                    output_path,
                    self.config.get_projection_config(),
                    self.execution_id,
                )
            except ProjectionError as e:
                error_msg = f"Failed to render feed {url}: {e}"
                self.logger.error(error_msg, feed_url=url, error=str(e))
                metrics["errors"].append(error_msg)
                print(error_msg)
            else:
                metrics["reports_written"] += 1
                metrics["items_written"] += rows
                self.logger.log_feed_rendered(url, rows, str(output_path))
                print(f"Your RSS file is ready: {output_path}")

            more = self.ask("Would you like another website? If no type: no ")
            if more.strip().lower() == STOP_ANSWER:
                break

        self.logger.log_metrics(metrics)
        self.logger.log_execution_end(success=not metrics["errors"])
        return metrics["reports_written"]


def render_once(
    config: Config,
    source: str,
    output_name: str,
    fetcher: FeedFetcher | None = None,
    execution_id: str | None = None,
    user: str | None = None,
) -> Path:
    """Fetch one feed (preset name or URL) and write its report.

    Raises:
        ValueError: If a username preset is used without a user
        InvalidFeedError: If the feed is not RSS 2.0
        ProjectionError: If the channel cannot be rendered
        requests.RequestException: If feed download fails
    """
    logger = create_execution_logger("cli", execution_id)
    fetcher = fetcher or FeedFetcher(config.get_fetch_config(), execution_id)

    url = config.resolve_feed_url(source)
    if Config.USER_PLACEHOLDER in url:
        if not user:
            raise ValueError(f"Preset {source!r} needs a username (--user)")
        url = url.replace(Config.USER_PLACEHOLDER, user.strip())
    channel = fetcher.load_channel(url)
    output_path = config.output_path(output_name)
    rows = write_report(
        channel, output_path, config.get_projection_config(), execution_id
    )
    logger.log_feed_rendered(url, rows, str(output_path))
    return output_path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rss-html",
        description="Convert an RSS 2.0 feed into an HTML summary table.",
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Feed URL or preset name (e.g. cnn, espn). Prompts when omitted.",
    )
    parser.add_argument(
        "-o", "--output", help="Output file name; '.html' is added when missing."
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for reports (default: $RSS_HTML_OUTPUT_DIR or ~/Desktop).",
    )
    parser.add_argument("--user", help="Username for presets that need one (twitter).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = Config()
    if args.output_dir:
        config.output_dir = args.output_dir

    setup_structured_logging(config.log_level)
    execution_id = f"cli_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"

    try:
        if args.source:
            output_name = args.output or input("Enter an output file name: ")
            try:
                path = render_once(
                    config,
                    args.source,
                    output_name,
                    execution_id=execution_id,
                    user=args.user,
                )
            except (ValueError, requests.RequestException) as e:
                # ValueError covers InvalidFeedError and ProjectionError
                print(f"Error: {e}", file=sys.stderr)
                return 1
            print(f"Your RSS file is ready: {path}")
            return 0

        ReportSession(config, execution_id=execution_id).run()
        return 0
    except (KeyboardInterrupt, EOFError):
        print()
        return 130


if __name__ == "__main__":
    sys.exit(main())
