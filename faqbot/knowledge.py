"""
Client for the QnA knowledge base: asking questions, teaching new questions
and answers, and publishing edits to the serving index.
"""
import re
import time
from typing import Optional

import requests

from faqbot.config import Settings
from faqbot.constants import NEW_ANSWER_SOURCE, NO_MATCH_ANSWER_ID, OPERATION_POLL_INTERVAL_SECONDS
from faqbot.errors import UnknownArticle, UpstreamUnavailable
from faqbot.logger import logger
from faqbot.models import AnswerCandidate, AnswerRef, RefKind


class KnowledgeClient:
    """
    Wraps the runtime (generateAnswer) and management (download, update,
    publish) endpoints of the knowledge base.

    Every edit is published right away: add_alternate_questions() and
    add_new_answer() wait for the service to apply the update and then call
    publish(). New answers become queryable once the service finishes
    indexing, usually a few seconds after publish returns.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self._article_pattern = re.compile(settings.article_id_pattern)
        # article id -> numeric entry id, built once by load_article_index()
        self._article_index: dict[str, int] = {}

    @property
    def _kb_url(self) -> str:
        return f"{self.settings.management_host}/knowledgebases/{self.settings.knowledgebase_id}"

    @property
    def _management_headers(self) -> dict:
        return {
            "Ocp-Apim-Subscription-Key": self.settings.subscription_key,
            "Content-Type": "application/json",
        }

    def _request(self, method: str, url: str, operation: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.settings.qna_timeout, **kwargs)
        except requests.Timeout as e:
            logger.error("QnA %s timed out after %ss: %s", operation, self.settings.qna_timeout, e)
            raise UpstreamUnavailable(f"QnA {operation} timed out") from e
        except requests.RequestException as e:
            logger.error("QnA %s failed: %s", operation, e)
            raise UpstreamUnavailable(f"QnA {operation} failed: {e}") from e

        if not response.ok:
            logger.error(
                "QnA %s returned status %s: %s", operation, response.status_code, response.text[:500]
            )
            raise UpstreamUnavailable(f"QnA {operation} returned status {response.status_code}")
        return response

    @staticmethod
    def _json(response: requests.Response, operation: str) -> dict:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"QnA {operation} returned an invalid body") from e

    def _to_answer_ref(self, answer) -> AnswerRef:
        if isinstance(answer, int):
            return AnswerRef.article(str(answer))
        answer = answer or ""
        if self._article_pattern.match(answer.strip()):
            return AnswerRef.article(answer)
        return AnswerRef.text(answer)

    def load_article_index(self) -> None:
        """
        Download the knowledge base once and map article ids to entry ids for
        the entries that came from the FAQ articles import. Failures are logged,
        teaching by entry id keeps working without the index.
        """
        env = "Prod" if self.settings.production else "Test"
        try:
            response = self._request(
                "GET", f"{self._kb_url}/{env}/qna", "download", headers=self._management_headers
            )
            documents = self._json(response, "download").get("qnaDocuments") or []
        except UpstreamUnavailable:
            logger.exception("Error downloading knowledge base, article index is empty")
            return

        index = {}
        for doc in documents:
            if doc.get("source") == self.settings.article_source and doc.get("answer"):
                index[str(doc["answer"]).strip()] = doc["id"]
        self._article_index = index
        logger.info(
            "Article index built with %s entries out of %s documents", len(index), len(documents)
        )

    def resolve_article(self, article_id: str) -> Optional[int]:
        return self._article_index.get(str(article_id).strip())

    def ask(self, question: str) -> list[AnswerCandidate]:
        """
        Ask the knowledge base for answers to a question.

        Returns:
            Candidates in the order the service returned them, empty when
            nothing matched.

        Raises:
            UpstreamUnavailable: transport error, timeout or error status
        """
        url = f"{self.settings.runtime_host}/knowledgebases/{self.settings.knowledgebase_id}/generateAnswer"
        payload = {
            "question": question,
            "top": self.settings.max_candidates,
            "isTest": not self.settings.production,
        }
        logger.debug("generateAnswer request for question: %s", question)
        response = self._request(
            "POST",
            url,
            "generateAnswer",
            json=payload,
            headers={"Authorization": f"EndpointKey {self.settings.endpoint_key}"},
        )
        answers = self._json(response, "generateAnswer").get("answers") or []

        candidates = []
        for answer in answers:
            kb_id = answer.get("id", NO_MATCH_ANSWER_ID)
            if kb_id == NO_MATCH_ANSWER_ID:
                continue
            questions = answer.get("questions") or []
            candidates.append(
                AnswerCandidate(
                    kb_id=int(kb_id),
                    answer_ref=self._to_answer_ref(answer.get("answer")),
                    score=float(answer.get("score", 0)),
                    question=questions[0] if questions else "",
                )
            )
        logger.info("Answers for '%s': %s", question, candidates)
        return candidates

    def publish(self) -> None:
        logger.info("QnA publish started")
        self._request("POST", self._kb_url, "publish", headers=self._management_headers)
        logger.info("QnA published")

    def _wait_for_operation(self, operation_id: str) -> None:
        deadline = time.monotonic() + self.settings.publish_wait
        url = f"{self.settings.management_host}/operations/{operation_id}"
        while True:
            response = self._request("GET", url, "operation status", headers=self._management_headers)
            state = self._json(response, "operation status").get("operationState")
            if state == "Succeeded":
                return
            if state == "Failed":
                raise UpstreamUnavailable(f"QnA update operation {operation_id} failed")
            if time.monotonic() >= deadline:
                raise UpstreamUnavailable(
                    f"QnA update operation {operation_id} still {state} after {self.settings.publish_wait}s"
                )
            time.sleep(OPERATION_POLL_INTERVAL_SECONDS)

    def _update(self, payload: dict, operation: str) -> None:
        response = self._request(
            "PATCH", self._kb_url, operation, json=payload, headers=self._management_headers
        )
        operation_id = None
        if response.content:
            operation_id = self._json(response, operation).get("operationId")
        if operation_id:
            self._wait_for_operation(operation_id)
        self.publish()

    def add_alternate_questions(self, answer_ref: AnswerRef, questions) -> None:
        """
        Teach the knowledge base that the given questions map to an existing answer.

        Args:
            answer_ref: ID ref, or ARTICLE ref resolved through the article index
            questions: One question or a list of questions

        Raises:
            UnknownArticle: the article id is not in the article index
            UpstreamUnavailable: the update or publish failed
        """
        if answer_ref.kind == RefKind.ARTICLE:
            kb_id = self.resolve_article(answer_ref.value)
            if kb_id is None:
                logger.error("Article not found with ID: %s", answer_ref.value)
                raise UnknownArticle(answer_ref.value)
        elif answer_ref.kind == RefKind.ID:
            kb_id = answer_ref.value
        else:
            raise ValueError(f"Cannot teach against a {answer_ref.kind.value} answer reference")

        questions = [questions] if isinstance(questions, str) else list(questions)
        payload = {
            "update": {
                "qnaList": [
                    {
                        "id": kb_id,
                        "questions": {"add": questions},
                    }
                ]
            }
        }
        logger.debug("addAlternateQuestions request: %s", payload)
        self._update(payload, "add alternate questions")
        logger.info("Alternate questions added to %s: %s", kb_id, questions)

    def add_new_answer(self, questions, answer: str, creator_id: Optional[str] = None) -> int:
        """
        Create a new question/answer pair tagged with its creator.

        Returns:
            The id assigned to the new entry.
        """
        questions = [questions] if isinstance(questions, str) else list(questions)
        kb_id = int(time.time())
        payload = {
            "add": {
                "qnaList": [
                    {
                        "id": kb_id,
                        "answer": answer,
                        "questions": questions,
                        "source": NEW_ANSWER_SOURCE,
                        "metadata": [
                            {
                                "name": "creator",
                                "value": creator_id or "-1",
                            }
                        ],
                    }
                ]
            }
        }
        logger.debug("addNewAnswer request: %s", payload)
        self._update(payload, "add new answer")
        logger.info("New answer %s added by %s for questions %s", kb_id, creator_id, questions)
        return kb_id
