"""Unit tests for the command-line driver."""

import os
from unittest.mock import Mock, patch

import pytest
import requests

from rss_html.cli import ReportSession, build_menu, main, write_report
from rss_html.config import Config, ProjectionConfig
from rss_html.errors import InvalidFeedError, MissingChannelLinkError
from rss_html.models import FeedNode


def sample_channel(with_link: bool = True) -> FeedNode:
    children = [FeedNode.leaf("title", "Example News")]
    if with_link:
        children.append(FeedNode.leaf("link", "https://news.example.com/"))
    children.append(
        FeedNode.element(
            "item",
            FeedNode.leaf("title", "Story"),
            FeedNode.leaf("link", "https://news.example.com/1"),
        )
    )
    return FeedNode.element("channel", *children)


def make_config(tmp_path) -> Config:
    env = {
        "RSS_HTML_OUTPUT_DIR": str(tmp_path / "reports"),
        "RSS_HTML_PRESETS_FILE": str(tmp_path / "missing-presets.json"),
    }
    with patch.dict(os.environ, env):
        return Config()


def scripted(*answers):
    """Return an ask() replacement that replays answers and records prompts."""
    remaining = list(answers)
    prompts = []

    def ask(prompt):
        prompts.append(prompt)
        return remaining.pop(0)

    ask.prompts = prompts
    return ask


class TestReportSessionUnit:
    """Unit tests for the interactive session."""

    def test_single_report_from_preset(self, tmp_path):
        config = make_config(tmp_path)
        fetcher = Mock()
        fetcher.load_channel.return_value = sample_channel()

        written = ReportSession(config, fetcher, scripted("CNN", "today", "no")).run()

        assert written == 1
        fetcher.load_channel.assert_called_once_with(Config.DEFAULT_PRESETS["cnn"])
        report = (tmp_path / "reports" / "today.html").read_text(encoding="utf-8")
        assert '<h1><a href="https://news.example.com/">Example News</a></h1>' in report
        assert report.endswith("</table>\n</body>\n</html>\n")

    def test_menu_lists_presets(self, tmp_path):
        config = make_config(tmp_path)
        fetcher = Mock()
        fetcher.load_channel.return_value = sample_channel()
        ask = scripted("cnn", "today", "no")

        ReportSession(config, fetcher, ask).run()

        assert " - cnn" in ask.prompts[0]
        assert " - espn" in ask.prompts[0]

    def test_reprompts_after_invalid_feed(self, tmp_path):
        config = make_config(tmp_path)
        fetcher = Mock()
        fetcher.load_channel.side_effect = [
            InvalidFeedError("Not an RSS 2.0 feed"),
            requests.ConnectionError("connection refused"),
            sample_channel(),
        ]
        ask = scripted(
            "https://atom.example.com", "https://down.example.com", "https://ok.example.com",
            "report", "no",
        )

        written = ReportSession(config, fetcher, ask).run()

        assert written == 1
        assert fetcher.load_channel.call_count == 3
        assert ask.prompts[1] == "Enter a valid URL of a RSS 2.0 feed: "
        assert ask.prompts[2] == "Enter a valid URL of a RSS 2.0 feed: "

    def test_username_preset_asks_for_user(self, tmp_path):
        config = make_config(tmp_path)
        fetcher = Mock()
        fetcher.load_channel.return_value = sample_channel()

        ReportSession(config, fetcher, scripted("Twitter", "jack", "tweets", "no")).run()

        fetcher.load_channel.assert_called_once_with(
            "https://twitrss.me/twitter_user_to_rss/?user=jack"
        )

    def test_repeats_until_no(self, tmp_path):
        config = make_config(tmp_path)
        fetcher = Mock()
        fetcher.load_channel.return_value = sample_channel()
        ask = scripted("cnn", "first", "yes", "abc", "second", " NO ")

        written = ReportSession(config, fetcher, ask).run()

        assert written == 2
        assert (tmp_path / "reports" / "first.html").exists()
        assert (tmp_path / "reports" / "second.html").exists()

    def test_reprompts_for_empty_output_name(self, tmp_path):
        config = make_config(tmp_path)
        fetcher = Mock()
        fetcher.load_channel.return_value = sample_channel()

        written = ReportSession(config, fetcher, scripted("cnn", "  ", "named", "no")).run()

        assert written == 1
        assert (tmp_path / "reports" / "named.html").exists()

    def test_render_failure_removes_partial_report(self, tmp_path):
        config = make_config(tmp_path)
        fetcher = Mock()
        fetcher.load_channel.return_value = sample_channel(with_link=False)

        written = ReportSession(config, fetcher, scripted("cnn", "broken", "no")).run()

        assert written == 0
        assert not (tmp_path / "reports" / "broken.html").exists()


class TestWriteReportUnit:
    """Unit tests for report file handling."""

    def test_creates_output_directory(self, tmp_path):
        output_path = tmp_path / "nested" / "dir" / "report.html"

        rows = write_report(sample_channel(), output_path, ProjectionConfig())

        assert rows == 1
        assert output_path.read_text(encoding="utf-8").startswith("<html>\n")

    def test_missing_link_propagates(self, tmp_path):
        output_path = tmp_path / "report.html"

        with pytest.raises(MissingChannelLinkError):
            write_report(sample_channel(with_link=False), output_path, ProjectionConfig())
        assert not output_path.exists()

    def test_build_menu(self):
        menu = build_menu({"cnn": "http://cnn", "abc": "http://abc"})

        assert menu.splitlines()[1:] == [" - cnn", " - abc", "> "]


class TestMainUnit:
    """Unit tests for the console entry point."""

    def test_one_shot_render(self, tmp_path):
        with (
            patch("rss_html.cli.FeedFetcher") as mock_fetcher_class,
            patch("rss_html.cli.setup_structured_logging"),
            patch.dict(os.environ, {"RSS_HTML_PRESETS_FILE": str(tmp_path / "none.json")}),
        ):
            mock_fetcher_class.return_value.load_channel.return_value = sample_channel()

            code = main(["espn", "--output", "sports", "--output-dir", str(tmp_path)])

        assert code == 0
        mock_fetcher_class.return_value.load_channel.assert_called_once_with(
            Config.DEFAULT_PRESETS["espn"]
        )
        assert (tmp_path / "sports.html").exists()

    def test_one_shot_username_preset(self, tmp_path):
        with (
            patch("rss_html.cli.FeedFetcher") as mock_fetcher_class,
            patch("rss_html.cli.setup_structured_logging"),
            patch.dict(os.environ, {"RSS_HTML_PRESETS_FILE": str(tmp_path / "none.json")}),
        ):
            mock_fetcher_class.return_value.load_channel.return_value = sample_channel()

            code = main(["twitter", "--user", "jack", "-o", "t", "--output-dir", str(tmp_path)])
            missing_user_code = main(["twitter", "-o", "t2", "--output-dir", str(tmp_path)])

        assert code == 0
        mock_fetcher_class.return_value.load_channel.assert_called_once_with(
            "https://twitrss.me/twitter_user_to_rss/?user=jack"
        )
        assert missing_user_code == 1
        assert not (tmp_path / "t2.html").exists()

    def test_one_shot_invalid_feed_exits_with_error(self, tmp_path):
        with (
            patch("rss_html.cli.FeedFetcher") as mock_fetcher_class,
            patch("rss_html.cli.setup_structured_logging"),
        ):
            mock_fetcher_class.return_value.load_channel.side_effect = InvalidFeedError(
                "Not an RSS 2.0 feed"
            )

            code = main(["https://atom.example.com", "-o", "x", "--output-dir", str(tmp_path)])

        assert code == 1
        assert not (tmp_path / "x.html").exists()

    def test_one_shot_network_error_exits_with_error(self, tmp_path):
        with (
            patch("rss_html.cli.FeedFetcher") as mock_fetcher_class,
            patch("rss_html.cli.setup_structured_logging"),
        ):
            mock_fetcher_class.return_value.load_channel.side_effect = requests.Timeout(
                "timed out"
            )

            code = main(["https://slow.example.com", "-o", "x", "--output-dir", str(tmp_path)])

        assert code == 1

    def test_interactive_mode_without_source(self, tmp_path):
        with (
            patch("rss_html.cli.ReportSession") as mock_session_class,
            patch("rss_html.cli.setup_structured_logging"),
        ):
            code = main(["--output-dir", str(tmp_path)])

        assert code == 0
        mock_session_class.return_value.run.assert_called_once_with()

    def test_interrupt_exits_130(self, tmp_path):
        with (
            patch("rss_html.cli.ReportSession") as mock_session_class,
            patch("rss_html.cli.setup_structured_logging"),
        ):
            mock_session_class.return_value.run.side_effect = EOFError()

            code = main(["--output-dir", str(tmp_path)])

        assert code == 130
