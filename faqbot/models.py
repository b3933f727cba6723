from dataclasses import dataclass
from enum import Enum
from typing import Union


class RefKind(str, Enum):
    TEXT = "text"
    ARTICLE = "article"
    ID = "id"


@dataclass(frozen=True)
class AnswerRef:
    """
    Points at an answer: a direct answer text, a support article identifier,
    or a numeric knowledge-base entry id.
    """

    kind: RefKind
    value: Union[str, int]

    @classmethod
    def text(cls, value: str) -> "AnswerRef":
        return cls(RefKind.TEXT, value)

    @classmethod
    def article(cls, value: str) -> "AnswerRef":
        return cls(RefKind.ARTICLE, str(value).strip())

    @classmethod
    def by_id(cls, value: int) -> "AnswerRef":
        return cls(RefKind.ID, int(value))


@dataclass(frozen=True)
class AnswerCandidate:
    kb_id: int
    answer_ref: AnswerRef
    score: float
    question: str


@dataclass(frozen=True)
class MessageRef:
    """A Slack message, addressed by channel and timestamp."""

    channel: str
    ts: str
