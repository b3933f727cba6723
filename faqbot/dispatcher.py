"""
Per-message state machine: decide whether a message is a question for the
bot, ask the knowledge base, and answer, ask the user to pick an answer, or
escalate to the moderators.
"""
from enum import Enum
from typing import Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from faqbot.answers import AnswerResolver
from faqbot.blocks import disambiguation_blocks
from faqbot.constants import (
    DEFAULT_MAX_CANDIDATES,
    DEFAULT_MIN_SCORE,
    DISAMBIGUATION_PROMPT,
    ERROR_MESSAGE,
    ESCALATED_MESSAGE,
)
from faqbot.conversations import ConversationCache, ConversationType
from faqbot.knowledge import KnowledgeClient
from faqbot.logger import logger
from faqbot.moderation import ModerationWorkflow
from faqbot.models import AnswerCandidate
from faqbot.mrkdwn import to_mrkdwn
from faqbot.pending import PendingQuestion, PendingQuestionStore
from faqbot.replies import post_reply
from faqbot.utils import mentions, normalize_question

# Message subtypes that still carry a user's question
QUESTION_SUBTYPES = {None, "thread_broadcast", "file_share"}


class Outcome(str, Enum):
    IGNORED = "ignored"
    AUTO_ANSWERED = "auto_answered"
    DISAMBIGUATE = "disambiguate"
    ESCALATED = "escalated"
    FAILED = "failed"


def apply_threshold(
    candidates: list[AnswerCandidate],
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
    min_score: float = DEFAULT_MIN_SCORE,
) -> list[AnswerCandidate]:
    """
    Rank candidates by score (ties keep the service's order), keep the top
    max_candidates and drop those scoring min_score or less.
    """
    ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
    return [c for c in ranked[:max_candidates] if c.score > min_score]


class QuestionDispatcher:
    def __init__(
        self,
        client: WebClient,
        knowledge: KnowledgeClient,
        resolver: AnswerResolver,
        store: PendingQuestionStore,
        conversations: ConversationCache,
        workflow: ModerationWorkflow,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
        min_score: float = DEFAULT_MIN_SCORE,
        auto_answer_min_score: Optional[float] = None,
    ):
        self.client = client
        self.knowledge = knowledge
        self.resolver = resolver
        self.store = store
        self.conversations = conversations
        self.workflow = workflow
        self.max_candidates = max_candidates
        self.min_score = min_score
        self.auto_answer_min_score = auto_answer_min_score

    def handle_message(self, event: dict, bot_user_id: Optional[str]) -> Outcome:
        """
        Process one Slack message event. Never raises: failures are logged and
        answered with an apology in the thread.
        """
        try:
            return self._dispatch(event, bot_user_id)
        except Exception:
            logger.exception("Error processing message %s in %s", event.get("ts"), event.get("channel"))
            self._apologize(event)
            return Outcome.FAILED

    def _apologize(self, event: dict) -> None:
        try:
            post_reply(
                self.client,
                event["channel"],
                event.get("thread_ts") or event.get("ts"),
                ERROR_MESSAGE,
            )
        except Exception:
            logger.exception("Error processing message, and error sending the error message to Slack")

    def _is_question(self, event: dict, bot_user_id: Optional[str]) -> bool:
        text = event.get("text") or ""
        if not text.strip():
            logger.debug("Skip message as it has no content")
            return False
        if event.get("subtype") not in QUESTION_SUBTYPES:
            logger.debug("Skip message with subtype %s", event.get("subtype"))
            return False
        if event.get("bot_id") or (bot_user_id and event.get("user") == bot_user_id):
            logger.debug("Skip message as it is sent by a bot")
            return False

        if mentions(text, bot_user_id):
            return True

        try:
            conversation_type = self.conversations.get_type(event["channel"])
        except SlackApiError as e:
            logger.error("Conversation lookup for %s failed, skip message: %s", event["channel"], e)
            return False
        if conversation_type != ConversationType.DIRECT:
            logger.debug("%s conversation message without being mentioned. Skip it.", conversation_type.value)
            return False
        return True

    def _dispatch(self, event: dict, bot_user_id: Optional[str]) -> Outcome:
        if not self._is_question(event, bot_user_id):
            return Outcome.IGNORED

        question = normalize_question(event["text"])
        if not question:
            logger.debug("Skip message as it only contains mentions")
            return Outcome.IGNORED

        channel = event["channel"]
        thread_ts = event.get("thread_ts") or event["ts"]
        logger.info("Lookup knowledge base for question: %s", question)
        candidates = apply_threshold(self.knowledge.ask(question), self.max_candidates, self.min_score)

        if self._should_auto_answer(candidates):
            answer_html = self.resolver.lookup(candidates[0].answer_ref)
            post_reply(self.client, channel, thread_ts, to_mrkdwn(answer_html))
            logger.info("Answered '%s' with %s", question, candidates[0].kb_id)
            return Outcome.AUTO_ANSWERED

        pending = self.store.create(question, candidates, channel, thread_ts, asker_id=event.get("user"))
        try:
            return self._offer(pending)
        except Exception:
            # The asker gets the apology instead, nothing is left to submit
            self.store.pop(pending.form_id)
            raise

    def _offer(self, pending: PendingQuestion) -> Outcome:
        channel, thread_ts, candidates = pending.channel, pending.thread_ts, pending.candidates
        if not candidates:
            reply = post_reply(self.client, channel, thread_ts, ESCALATED_MESSAGE)
            self.store.attach_reply(pending.form_id, reply)
            self.workflow.escalate(pending.form_id)
            return Outcome.ESCALATED

        reply = post_reply(
            self.client,
            channel,
            thread_ts,
            DISAMBIGUATION_PROMPT,
            blocks=disambiguation_blocks(pending),
        )
        self.store.attach_reply(pending.form_id, reply)
        logger.info("Asked user to pick one of %s answers for %s", len(candidates), pending.form_id)
        return Outcome.DISAMBIGUATE

    def _should_auto_answer(self, candidates: list[AnswerCandidate]) -> bool:
        return (
            self.auto_answer_min_score is not None
            and len(candidates) == 1
            and candidates[0].score >= self.auto_answer_min_score
        )
