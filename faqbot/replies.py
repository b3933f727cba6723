"""
Helpers for posting and updating the bot's Slack messages.
"""
from typing import Optional

from slack_sdk import WebClient

from faqbot.blocks import text_blocks
from faqbot.models import MessageRef
from faqbot.mrkdwn import to_mrkdwn
from faqbot.pending import PendingQuestion


def post_reply(
    client: WebClient,
    channel: str,
    thread_ts: Optional[str],
    text: str,
    blocks: Optional[list] = None,
) -> MessageRef:
    response = client.chat_postMessage(
        channel=channel,
        thread_ts=thread_ts,
        text=text,
        blocks=blocks if blocks is not None else text_blocks(text),
    )
    return MessageRef(channel=response["channel"], ts=response["ts"])


def update_message(client: WebClient, message: MessageRef, text: str, blocks: Optional[list] = None) -> None:
    client.chat_update(
        channel=message.channel,
        ts=message.ts,
        text=text,
        blocks=blocks if blocks is not None else text_blocks(text),
    )


def update_reply(client: WebClient, pending: PendingQuestion, text: str) -> None:
    """Replace the user-facing reply of a pending question, or post one if it was never sent."""
    if pending.reply is not None:
        update_message(client, pending.reply, text)
    else:
        post_reply(client, pending.channel, pending.thread_ts, text)


def show_answer(client: WebClient, pending: PendingQuestion, answer_html: str) -> str:
    text = to_mrkdwn(answer_html)
    update_reply(client, pending, text)
    return text


def notify(client: WebClient, channel: str, user_id: str, text: str) -> None:
    """Message only the given user, used for form errors."""
    client.chat_postEphemeral(channel=channel, user=user_id, text=text)
