import html
import re

MENTION = re.compile(r"<@([A-Z0-9]+)(?:\|[^>]*)?>", re.IGNORECASE)
CHANNEL_LINK = re.compile(r"<#[A-Z0-9]+\|([^>]*)>", re.IGNORECASE)
SPECIAL_MENTION = re.compile(r"<!([a-z]+)(?:\|[^>]*)?>")
LINK = re.compile(r"<((?:https?|mailto):[^|>]+)(?:\|([^>]*))?>")
WHITESPACE = re.compile(r"\s+")


def mentions(text: str, user_id: str | None) -> bool:
    """Return True if the Slack message text mentions the given user."""
    if not text or not user_id:
        return False
    return any(match.group(1).upper() == user_id.upper() for match in MENTION.finditer(text))


def strip_mentions(text: str) -> str:
    """
    Remove Slack user mentions like '<@U123ABC>' and broadcast mentions like
    '<!here>' from the text.
    """
    text = MENTION.sub("", text or "")
    return SPECIAL_MENTION.sub("", text)


def normalize_question(text: str) -> str:
    """
    Turn a Slack message into a plain-text question for the knowledge base.

    Mentions are dropped, links and channel references are replaced by their
    label, Slack's HTML escapes are decoded and whitespace is collapsed.
    """
    text = strip_mentions(text)
    text = CHANNEL_LINK.sub(lambda m: f"#{m.group(1)}", text)
    text = LINK.sub(lambda m: m.group(2) or m.group(1), text)
    text = html.unescape(text)
    return WHITESPACE.sub(" ", text).strip()
