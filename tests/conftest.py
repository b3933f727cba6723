"""
Pytest configuration and common fixtures for all tests
"""
import itertools
from unittest.mock import Mock

import pytest

from faqbot.answers import AnswerResolver
from faqbot.config import Settings
from faqbot.conversations import ConversationCache
from faqbot.dispatcher import QuestionDispatcher
from faqbot.knowledge import KnowledgeClient
from faqbot.models import AnswerCandidate, AnswerRef, RefKind
from faqbot.moderation import ModerationWorkflow
from faqbot.pending import PendingQuestionStore

DIRECT_CHANNEL = "D100"
GROUP_CHANNEL = "G200"
PUBLIC_CHANNEL = "C300"
MODERATION_CHANNEL = "CMOD"
BOT_USER_ID = "UBOT"
ASKER_ID = "U123"
MODERATOR_ID = "UMOD"

CHANNELS = {
    DIRECT_CHANNEL: {"is_im": True},
    GROUP_CHANNEL: {"is_mpim": True},
    PUBLIC_CHANNEL: {"is_channel": True},
    MODERATION_CHANNEL: {"is_channel": True},
}


def make_candidate(kb_id, score, answer="An answer.", question="A question?", kind=RefKind.TEXT):
    return AnswerCandidate(
        kb_id=kb_id,
        answer_ref=AnswerRef(kind, answer),
        score=score,
        question=question,
    )


def make_event(text, channel=DIRECT_CHANNEL, user=ASKER_ID, ts="1700000000.000100", **extra):
    event = {
        "type": "message",
        "channel": channel,
        "user": user,
        "text": text,
        "ts": ts,
    }
    event.update(extra)
    return event


@pytest.fixture
def settings():
    return Settings(
        slack_bot_token="xoxb-test",
        slack_signing_secret="secret",
        knowledgebase_id="kb-1",
        endpoint_key="endpoint-key",
        subscription_key="subscription-key",
        runtime_host="https://faq.example.net/qnamaker",
        moderation_channel_id=MODERATION_CHANNEL,
        management_host="https://qna.example.com/qnamaker/v4.0",
        support_base_url="https://www.circuit.com",
        publish_wait=0,
    )


@pytest.fixture
def slack_client():
    """Mock Slack WebClient returning realistic message references"""
    client = Mock()
    counter = itertools.count(1)

    def post_message(**kwargs):
        return {"ok": True, "channel": kwargs["channel"], "ts": f"1700000001.{next(counter):06d}"}

    client.chat_postMessage.side_effect = post_message
    client.conversations_info.side_effect = lambda channel: {"channel": {"id": channel, **CHANNELS[channel]}}
    return client


@pytest.fixture
def knowledge():
    return Mock(spec=KnowledgeClient)


@pytest.fixture
def resolver():
    resolver = Mock(spec=AnswerResolver)
    resolver.lookup.side_effect = lambda ref: ref.value
    return resolver


@pytest.fixture
def store():
    return PendingQuestionStore()


@pytest.fixture
def conversations(slack_client):
    return ConversationCache(slack_client)


@pytest.fixture
def workflow(slack_client, knowledge, resolver, store):
    return ModerationWorkflow(slack_client, knowledge, resolver, store, MODERATION_CHANNEL)


@pytest.fixture
def make_dispatcher(slack_client, knowledge, resolver, store, conversations, workflow):
    def factory(auto_answer_min_score=None):
        return QuestionDispatcher(
            slack_client,
            knowledge,
            resolver,
            store,
            conversations,
            workflow,
            auto_answer_min_score=auto_answer_min_score,
        )

    return factory
