"""
Conversation metadata cache and per-conversation event serialization.
"""
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from slack_sdk import WebClient

from faqbot.logger import logger


class ConversationType(str, Enum):
    DIRECT = "direct"
    GROUP = "group"
    COMMUNITY = "community"
    OTHER = "other"


@dataclass(frozen=True)
class ConversationMeta:
    id: str
    type: ConversationType


def conversation_type(channel: dict) -> ConversationType:
    """Map a Slack conversations.info channel object onto a conversation type."""
    if channel.get("is_im"):
        return ConversationType.DIRECT
    if channel.get("is_mpim") or channel.get("is_group") or channel.get("is_private"):
        return ConversationType.GROUP
    if channel.get("is_channel"):
        return ConversationType.COMMUNITY
    return ConversationType.OTHER


class ConversationCache:
    """
    Conversation metadata fetched on first access and kept for the lifetime
    of the process. Renamed or converted conversations are not refreshed.
    """

    def __init__(self, client: WebClient):
        self.client = client
        self._conversations: dict[str, ConversationMeta] = {}
        self._lock = threading.Lock()

    def get(self, conversation_id: str) -> ConversationMeta:
        with self._lock:
            meta = self._conversations.get(conversation_id)
        if meta is not None:
            return meta

        response = self.client.conversations_info(channel=conversation_id)
        meta = ConversationMeta(id=conversation_id, type=conversation_type(response["channel"]))
        logger.debug("Cached conversation %s as %s", conversation_id, meta.type.value)
        with self._lock:
            # Another thread may have fetched it meanwhile, keep the first one
            return self._conversations.setdefault(conversation_id, meta)

    def get_type(self, conversation_id: str) -> ConversationType:
        return self.get(conversation_id).type

    def __len__(self) -> int:
        with self._lock:
            return len(self._conversations)


class _ConversationLock:
    def __init__(self):
        self.lock = threading.Lock()
        # Threads holding or waiting for the lock
        self.users = 0


class ConversationLocks:
    """
    One lock per conversation, so events of a conversation never interleave.
    A lock is dropped once no thread holds or waits for it.
    """

    def __init__(self):
        self._locks: dict[str, _ConversationLock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, conversation_id: str):
        with self._guard:
            entry = self._locks.get(conversation_id)
            if entry is None:
                entry = self._locks[conversation_id] = _ConversationLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[conversation_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
