"""
Unit tests for faqbot/mrkdwn.py
"""
import pytest

from faqbot.mrkdwn import escape, to_mrkdwn


class TestEscape:
    def test_control_characters(self):
        assert escape("a < b & c > d") == "a &lt; b &amp; c &gt; d"

    def test_plain_text_unchanged(self):
        assert escape("Open Settings") == "Open Settings"


class TestToMrkdwn:
    @pytest.mark.parametrize(
        "markup, expected",
        [
            ("Open <b>Settings</b>", "Open *Settings*"),
            ("<i>note</i> and <s>old</s>", "_note_ and ~old~"),
            ("Run <code>reset</code>", "Run `reset`"),
            ("Tap<b> </b>here", "Tap here"),
            ("plain & simple", "plain &amp; simple"),
        ],
    )
    def test_inline(self, markup, expected):
        assert to_mrkdwn(markup) == expected

    def test_links(self):
        markup = '<a href="https://www.circuit.com/support">Support</a> or <a href="https://x.test"></a>'
        assert to_mrkdwn(markup) == "<https://www.circuit.com/support|Support> or <https://x.test>"

    def test_link_without_href_keeps_text(self):
        assert to_mrkdwn("<a>Support</a>") == "Support"

    def test_images(self):
        markup = '<img class="emoticon-icon pill" src="https://www.circuit.com/a.png">'
        assert to_mrkdwn(markup) == "<https://www.circuit.com/a.png|image>"

    def test_lists(self):
        assert to_mrkdwn("<ul><li>one</li><li>two</li></ul>") == "• one\n• two"
        assert to_mrkdwn("<ol><li>first</li><li>second</li></ol>") == "1. first\n2. second"

    def test_table_rows(self):
        markup = "<table><tr><td>1</td><td>Open Settings</td></tr><tr><td>2</td><td>\xa0</td></tr></table>"
        assert to_mrkdwn(markup) == "1 | Open Settings\n2 |"

    def test_line_breaks_and_blocks(self):
        markup = "<div>First</div><div>Second<br>Third</div>"
        assert to_mrkdwn(markup) == "First\n\nSecond\nThird"

    def test_headings_are_bold(self):
        assert to_mrkdwn("<h2>Reset</h2>Do this") == "*Reset*\nDo this"

    def test_blank_lines_are_collapsed(self):
        assert "\n\n\n" not in to_mrkdwn("<div><div><div>a</div></div></div><div>b</div>")

    def test_empty(self):
        assert to_mrkdwn("") == ""
        assert to_mrkdwn(None) == ""
