"""
Block Kit layouts for the disambiguation and moderation forms, and parsing
of their block_actions submissions.
"""
from dataclasses import dataclass
from typing import Optional

from faqbot.constants import (
    ANSWER_CHOICE_ACTION,
    ANSWER_CHOICE_BLOCK,
    ANSWER_SUBMIT_ACTION,
    ANSWER_TEXT_BLOCK,
    ARTICLE_ID_BLOCK,
    BETTER_QUESTION_BLOCK,
    DISAMBIGUATION_PROMPT,
    MODERATION_INPUT_ACTION,
    MODERATION_PROMPT,
    MODERATION_REJECT_ACTION,
    MODERATION_SUBMIT_ACTION,
    NONE_OF_THE_ABOVE,
    NONE_OF_THE_ABOVE_LABEL,
)
from faqbot.errors import MalformedForm
from faqbot.mrkdwn import escape
from faqbot.pending import PendingQuestion

MAX_OPTION_TEXT_LENGTH = 75
MAX_SECTION_TEXT_LENGTH = 3000


def _plain(text: str) -> dict:
    return {"type": "plain_text", "text": text}


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def text_blocks(text: str) -> list[dict]:
    """Split mrkdwn text into sections that respect Slack's per-section limit."""
    text = text or " "
    return [
        _section(text[i : i + MAX_SECTION_TEXT_LENGTH])
        for i in range(0, len(text), MAX_SECTION_TEXT_LENGTH)
    ]


def disambiguation_blocks(pending: PendingQuestion) -> list[dict]:
    options = [
        {
            "text": _plain(_truncate(candidate.question or f"Answer {i + 1}", MAX_OPTION_TEXT_LENGTH)),
            "value": str(i),
        }
        for i, candidate in enumerate(pending.candidates)
    ]
    options.append({"text": _plain(NONE_OF_THE_ABOVE_LABEL), "value": NONE_OF_THE_ABOVE})
    return [
        _section(DISAMBIGUATION_PROMPT),
        {
            "type": "actions",
            "block_id": ANSWER_CHOICE_BLOCK,
            "elements": [
                {
                    "type": "radio_buttons",
                    "action_id": ANSWER_CHOICE_ACTION,
                    "options": options,
                }
            ],
        },
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "action_id": ANSWER_SUBMIT_ACTION,
                    "text": _plain("Submit"),
                    "style": "primary",
                    "value": pending.form_id,
                }
            ],
        },
    ]


def _question_summary(pending: PendingQuestion) -> str:
    lines = [f"*Question:* {escape(pending.question)}"]
    if pending.asker_id:
        lines.append(f"*Asked by:* <@{pending.asker_id}> in <#{pending.channel}>")
    return "\n".join(lines)


def _input(block_id: str, label: str, placeholder: str, multiline: bool = False) -> dict:
    return {
        "type": "input",
        "block_id": block_id,
        "optional": True,
        "label": _plain(label),
        "element": {
            "type": "plain_text_input",
            "action_id": MODERATION_INPUT_ACTION,
            "multiline": multiline,
            "placeholder": _plain(placeholder),
        },
    }


def moderation_blocks(pending: PendingQuestion) -> list[dict]:
    return [
        _section(f"*{MODERATION_PROMPT}*\n{_question_summary(pending)}"),
        _input(BETTER_QUESTION_BLOCK, "Better question", "Optional rephrasing of the question"),
        _input(ARTICLE_ID_BLOCK, "Article ID", "ID of an existing support article"),
        _input(ANSWER_TEXT_BLOCK, "Answer", "New answer, used when no article ID is given", multiline=True),
        {
            "type": "actions",
            "elements": [
                {
                    "type": "button",
                    "action_id": MODERATION_SUBMIT_ACTION,
                    "text": _plain("Submit"),
                    "style": "primary",
                    "value": pending.form_id,
                },
                {
                    "type": "button",
                    "action_id": MODERATION_REJECT_ACTION,
                    "text": _plain("Reject"),
                    "style": "danger",
                    "value": pending.form_id,
                },
            ],
        },
    ]


def moderation_result_blocks(pending: PendingQuestion, outcome: str) -> list[dict]:
    return [_section(f"{_question_summary(pending)}\n{outcome}")]


@dataclass(frozen=True)
class Selection:
    form_id: str
    option: Optional[str]
    user_id: str
    channel: str
    message_ts: Optional[str]

    @property
    def none_of_the_above(self) -> bool:
        return self.option == NONE_OF_THE_ABOVE


@dataclass(frozen=True)
class ModerationSubmission:
    form_id: str
    reject: bool
    better_question: Optional[str]
    article_id: Optional[str]
    answer_text: Optional[str]
    moderator_id: str
    channel: str
    message_ts: Optional[str]


def _submitted_action(body: dict) -> dict:
    actions = body.get("actions") or []
    if not actions:
        raise MalformedForm("Submission has no actions")
    action = actions[0]
    if not action.get("value"):
        raise MalformedForm(f"Action {action.get('action_id')} carries no form id")
    return action


def _submitter(body: dict) -> tuple[str, str, Optional[str]]:
    user_id = (body.get("user") or {}).get("id")
    channel = (body.get("channel") or {}).get("id") or (body.get("container") or {}).get("channel_id")
    if not user_id or not channel:
        raise MalformedForm("Submission has no user or channel")
    message_ts = (body.get("container") or {}).get("message_ts") or (body.get("message") or {}).get("ts")
    return user_id, channel, message_ts


def _state(body: dict, block_id: str) -> dict:
    values = (body.get("state") or {}).get("values")
    if values is None:
        raise MalformedForm("Submission has no form state")
    return values.get(block_id) or {}


def _text_input(body: dict, block_id: str) -> Optional[str]:
    value = (_state(body, block_id).get(MODERATION_INPUT_ACTION) or {}).get("value")
    value = (value or "").strip()
    return value or None


def parse_selection(body: dict) -> Selection:
    """Read the disambiguation form. A submission without a chosen option has option None."""
    action = _submitted_action(body)
    user_id, channel, message_ts = _submitter(body)
    choice = _state(body, ANSWER_CHOICE_BLOCK).get(ANSWER_CHOICE_ACTION) or {}
    selected = choice.get("selected_option") or {}
    return Selection(
        form_id=action["value"],
        option=selected.get("value"),
        user_id=user_id,
        channel=channel,
        message_ts=message_ts,
    )


def parse_moderation_submission(body: dict) -> ModerationSubmission:
    action = _submitted_action(body)
    moderator_id, channel, message_ts = _submitter(body)
    reject = action.get("action_id") == MODERATION_REJECT_ACTION
    return ModerationSubmission(
        form_id=action["value"],
        reject=reject,
        better_question=None if reject else _text_input(body, BETTER_QUESTION_BLOCK),
        article_id=None if reject else _text_input(body, ARTICLE_ID_BLOCK),
        answer_text=None if reject else _text_input(body, ANSWER_TEXT_BLOCK),
        moderator_id=moderator_id,
        channel=channel,
        message_ts=message_ts,
    )
