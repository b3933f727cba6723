"""
Unit tests for faqbot/utils.py
"""
import pytest

from faqbot.utils import mentions, normalize_question, strip_mentions


class TestMentions:
    def test_mentioned(self):
        assert mentions("<@UBOT> where is the FAQ?", "UBOT")

    def test_mention_with_label(self):
        assert mentions("hey <@UBOT|faqbot>", "UBOT")

    def test_other_user(self):
        assert not mentions("<@UOTHER> where is the FAQ?", "UBOT")

    @pytest.mark.parametrize("text, user_id", [("", "UBOT"), (None, "UBOT"), ("<@UBOT>", None)])
    def test_missing_values(self, text, user_id):
        assert not mentions(text, user_id)


class TestNormalizeQuestion:
    def test_strip_mentions(self):
        assert strip_mentions("<@UBOT> <!here> hi") == "  hi"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("<@UBOT>   How do I\n reset my password? ", "How do I reset my password?"),
            ("See <https://www.circuit.com/support|the portal>", "See the portal"),
            ("See <https://www.circuit.com/support>", "See https://www.circuit.com/support"),
            ("Ask in <#C123|general>", "Ask in #general"),
            ("Is 1 &lt; 2 &amp;&amp; 3 &gt; 2?", "Is 1 < 2 && 3 > 2?"),
            ("<!channel>", ""),
        ],
    )
    def test_normalize(self, text, expected):
        assert normalize_question(text) == expected
