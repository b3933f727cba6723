"""
Slack Bolt listeners and construction of the process-wide services.
"""
import re
from dataclasses import dataclass

from slack_bolt import App
from slack_sdk import WebClient

from faqbot.answers import AnswerResolver
from faqbot.blocks import parse_moderation_submission, parse_selection
from faqbot.config import Settings
from faqbot.constants import (
    ANSWER_CHOICE_ACTION,
    ANSWER_SUBMIT_ACTION,
    ERROR_MESSAGE,
    MODERATION_REJECT_ACTION,
    MODERATION_SUBMIT_ACTION,
)
from faqbot.conversations import ConversationCache, ConversationLocks
from faqbot.dispatcher import QuestionDispatcher
from faqbot.errors import MalformedForm
from faqbot.knowledge import KnowledgeClient
from faqbot.logger import logger
from faqbot.moderation import ModerationWorkflow
from faqbot.pending import PendingQuestionStore
from faqbot.replies import notify


@dataclass
class Services:
    client: WebClient
    knowledge: KnowledgeClient
    resolver: AnswerResolver
    store: PendingQuestionStore
    conversations: ConversationCache
    locks: ConversationLocks
    workflow: ModerationWorkflow
    dispatcher: QuestionDispatcher
    moderation_channel_id: str


def build_services(settings: Settings, client: WebClient) -> Services:
    knowledge = KnowledgeClient(settings)
    resolver = AnswerResolver(settings)
    store = PendingQuestionStore(ttl_seconds=settings.pending_ttl)
    conversations = ConversationCache(client)
    workflow = ModerationWorkflow(client, knowledge, resolver, store, settings.moderation_channel_id)
    dispatcher = QuestionDispatcher(
        client,
        knowledge,
        resolver,
        store,
        conversations,
        workflow,
        max_candidates=settings.max_candidates,
        min_score=settings.min_score,
        auto_answer_min_score=settings.auto_answer_min_score,
    )
    return Services(
        client=client,
        knowledge=knowledge,
        resolver=resolver,
        store=store,
        conversations=conversations,
        locks=ConversationLocks(),
        workflow=workflow,
        dispatcher=dispatcher,
        moderation_channel_id=settings.moderation_channel_id,
    )


def process_form(services: Services, body: dict, parse, handle) -> None:
    """
    Parse a form submission and hand it to the workflow, serialized with the
    other events of the same conversation. Errors are reported to the
    submitting user only.
    """
    channel = (body.get("channel") or {}).get("id") or ""
    user_id = (body.get("user") or {}).get("id")

    with services.locks.hold(channel):
        try:
            handle(parse(body))
        except MalformedForm as e:
            logger.warning("Malformed form submission from %s in %s: %s", user_id, channel, e)
            _notify_quietly(services, channel, user_id, f"That form could not be processed: {e}")
        except Exception:
            logger.exception("Error processing form submission from %s in %s", user_id, channel)
            _notify_quietly(services, channel, user_id, ERROR_MESSAGE)


def _notify_quietly(services: Services, channel: str, user_id, text: str) -> None:
    if not channel or not user_id:
        return
    try:
        notify(services.client, channel, user_id, text)
    except Exception:
        logger.exception("Error sending the error message to %s in %s", user_id, channel)


def register_listeners(app: App, services: Services) -> None:
    @app.event("message")
    def handle_message(event, context):
        with services.locks.hold(event.get("channel") or ""):
            services.dispatcher.handle_message(event, context.bot_user_id)

    # Mentions are also delivered as message events, which do the work
    @app.event("app_mention")
    def handle_mention(event):
        logger.debug("Mention %s handled as message event", event.get("ts"))

    @app.action(ANSWER_CHOICE_ACTION)
    def handle_choice(ack):
        ack()

    @app.action(ANSWER_SUBMIT_ACTION)
    def handle_answer_submit(ack, body):
        ack()
        process_form(services, body, parse_selection, services.workflow.handle_selection)

    @app.action(re.compile(f"^({MODERATION_SUBMIT_ACTION}|{MODERATION_REJECT_ACTION})$"))
    def handle_moderation(ack, body):
        ack()
        channel = (body.get("channel") or {}).get("id")
        if channel != services.moderation_channel_id:
            logger.warning("Ignoring moderation action from channel %s", channel)
            return
        process_form(services, body, parse_moderation_submission, services.workflow.handle_submission)
