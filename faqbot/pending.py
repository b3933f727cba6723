"""
In-memory table of questions waiting for a form submission: a user picking
one of the candidate answers, or a moderator answering an escalation.
"""
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Optional

from faqbot.constants import DEFAULT_PENDING_TTL_SECONDS
from faqbot.logger import logger
from faqbot.models import AnswerCandidate, MessageRef


@dataclass(frozen=True)
class PendingQuestion:
    form_id: str
    question: str
    candidates: tuple[AnswerCandidate, ...]
    channel: str
    thread_ts: str
    asker_id: Optional[str] = None
    reply: Optional[MessageRef] = None
    moderation_message: Optional[MessageRef] = None
    escalated: bool = False
    created_at: float = field(default_factory=time.monotonic)


class PendingQuestionStore:
    """
    Entries are immutable, updates replace them under the store lock. Entries
    older than the TTL are evicted whenever a new question is added.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_PENDING_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._pending: dict[str, PendingQuestion] = {}
        self._lock = threading.Lock()

    def create(
        self,
        question: str,
        candidates,
        channel: str,
        thread_ts: str,
        asker_id: Optional[str] = None,
    ) -> PendingQuestion:
        pending = PendingQuestion(
            form_id=uuid.uuid4().hex,
            question=question,
            candidates=tuple(candidates),
            channel=channel,
            thread_ts=thread_ts,
            asker_id=asker_id,
        )
        with self._lock:
            self._prune_locked()
            self._pending[pending.form_id] = pending
        logger.debug("Pending question %s created: %s", pending.form_id, question)
        return pending

    def _prune_locked(self) -> None:
        cutoff = time.monotonic() - self.ttl_seconds
        expired = [form_id for form_id, p in self._pending.items() if p.created_at < cutoff]
        for form_id in expired:
            del self._pending[form_id]
        if expired:
            logger.info("Evicted %s abandoned pending questions", len(expired))

    def _update(self, form_id: str, **changes) -> Optional[PendingQuestion]:
        with self._lock:
            pending = self._pending.get(form_id)
            if pending is None:
                return None
            pending = replace(pending, **changes)
            self._pending[form_id] = pending
            return pending

    def attach_reply(self, form_id: str, reply: MessageRef) -> Optional[PendingQuestion]:
        """Remember the user-facing message that shows the final answer."""
        return self._update(form_id, reply=reply)

    def attach_moderation_message(self, form_id: str, message: MessageRef) -> Optional[PendingQuestion]:
        return self._update(form_id, moderation_message=message)

    def claim_escalation(self, form_id: str) -> Optional[PendingQuestion]:
        """
        Mark the question as escalated. Returns None if it is unknown or was
        already escalated, so a question is never sent to moderators twice.
        """
        with self._lock:
            pending = self._pending.get(form_id)
            if pending is None or pending.escalated:
                return None
            pending = replace(pending, escalated=True)
            self._pending[form_id] = pending
            return pending

    def release_escalation(self, form_id: str) -> Optional[PendingQuestion]:
        """Undo claim_escalation() when the moderation form could not be posted."""
        return self._update(form_id, escalated=False)

    def get(self, form_id: str) -> Optional[PendingQuestion]:
        with self._lock:
            return self._pending.get(form_id)

    def pop(self, form_id: str) -> Optional[PendingQuestion]:
        """Remove and return the entry; a second pop of the same form returns None."""
        with self._lock:
            return self._pending.pop(form_id, None)

    def __contains__(self, form_id: str) -> bool:
        with self._lock:
            return form_id in self._pending

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
