"""
Moderation workflow: escalating unanswered questions to the moderation
channel, applying moderator answers, and resolving disambiguation choices.
"""
from slack_sdk import WebClient

from faqbot.answers import AnswerResolver
from faqbot.blocks import (
    ModerationSubmission,
    Selection,
    moderation_blocks,
    moderation_result_blocks,
)
from faqbot.constants import (
    ALREADY_RESOLVED_MESSAGE,
    ESCALATED_MESSAGE,
    MODERATION_MISSING_INPUT_MESSAGE,
    MODERATION_PROMPT,
    NOT_RELEVANT_MESSAGE,
    NOT_YOUR_QUESTION_MESSAGE,
    PICK_AN_OPTION_MESSAGE,
)
from faqbot.errors import FaqBotError, MalformedForm, UnknownArticle, UpstreamUnavailable
from faqbot.knowledge import KnowledgeClient
from faqbot.logger import logger
from faqbot.models import AnswerCandidate, AnswerRef, MessageRef
from faqbot.pending import PendingQuestion, PendingQuestionStore
from faqbot.replies import notify, post_reply, show_answer, update_message, update_reply


def _distinct(questions) -> list[str]:
    seen = set()
    result = []
    for question in questions:
        if question and question.casefold() not in seen:
            seen.add(question.casefold())
            result.append(question)
    return result


class ModerationWorkflow:
    def __init__(
        self,
        client: WebClient,
        knowledge: KnowledgeClient,
        resolver: AnswerResolver,
        store: PendingQuestionStore,
        moderation_channel_id: str,
    ):
        self.client = client
        self.knowledge = knowledge
        self.resolver = resolver
        self.store = store
        self.moderation_channel_id = moderation_channel_id

    def escalate(self, form_id: str) -> bool:
        """
        Post the moderation form for a pending question. Returns False when the
        question is unknown or has already been escalated.
        """
        pending = self.store.claim_escalation(form_id)
        if pending is None:
            logger.info("Pending question %s already escalated or resolved, skip it", form_id)
            return False

        try:
            message = post_reply(
                self.client,
                self.moderation_channel_id,
                None,
                text=f"{MODERATION_PROMPT} Question: {pending.question}",
                blocks=moderation_blocks(pending),
            )
        except Exception:
            logger.error("Posting the moderation form for %s failed, escalation released", form_id)
            self.store.release_escalation(form_id)
            raise
        self.store.attach_moderation_message(form_id, message)
        logger.info("Question %s escalated to moderation: %s", form_id, pending.question)
        return True

    def handle_selection(self, selection: Selection) -> None:
        """Apply the user's choice on a disambiguation form."""
        pending = self.store.get(selection.form_id)
        if pending is None:
            logger.info("Selection for unknown or resolved form %s", selection.form_id)
            notify(self.client, selection.channel, selection.user_id, ALREADY_RESOLVED_MESSAGE)
            return

        if pending.asker_id and selection.user_id != pending.asker_id:
            logger.info(
                "User %s tried to answer the form %s of %s", selection.user_id, selection.form_id, pending.asker_id
            )
            notify(self.client, selection.channel, selection.user_id, NOT_YOUR_QUESTION_MESSAGE)
            return

        if selection.option is None:
            notify(self.client, selection.channel, selection.user_id, PICK_AN_OPTION_MESSAGE)
            return

        if selection.none_of_the_above:
            if pending.escalated:
                return
            logger.info("None of the candidates fits question %s, escalating", selection.form_id)
            update_reply(self.client, pending, ESCALATED_MESSAGE)
            self.escalate(selection.form_id)
            return

        try:
            candidate = pending.candidates[int(selection.option)]
        except (ValueError, IndexError) as e:
            raise MalformedForm(f"Unknown option {selection.option!r} for form {selection.form_id}") from e

        answer_html = self.resolver.lookup(candidate.answer_ref)
        pending = self.store.pop(selection.form_id)
        if pending is None:
            return
        show_answer(self.client, pending, answer_html)
        logger.info("User %s picked answer %s for '%s'", selection.user_id, candidate.kb_id, pending.question)
        self._teach_selection(pending, candidate)

    def _teach_selection(self, pending: PendingQuestion, candidate: AnswerCandidate) -> None:
        if pending.question.casefold() == candidate.question.casefold():
            return
        try:
            self.knowledge.add_alternate_questions(AnswerRef.by_id(candidate.kb_id), [pending.question])
        except FaqBotError:
            # Not reported to the user, the answer is already shown
            logger.exception("Error teaching '%s' as alternate for %s", pending.question, candidate.kb_id)

    def handle_submission(self, submission: ModerationSubmission) -> None:
        """Apply a moderator's answer to an escalated question."""
        pending = self.store.get(submission.form_id)
        if pending is None:
            logger.info("Moderation submission for unknown or resolved form %s", submission.form_id)
            notify(self.client, submission.channel, submission.moderator_id, ALREADY_RESOLVED_MESSAGE)
            return

        if submission.reject:
            self._reject(pending, submission)
            return

        if not submission.article_id and not submission.answer_text:
            logger.warning(
                "Moderation submission for %s has neither article ID nor answer", submission.form_id
            )
            notify(self.client, submission.channel, submission.moderator_id, MODERATION_MISSING_INPUT_MESSAGE)
            return

        questions = _distinct([pending.question, submission.better_question])
        try:
            if submission.article_id:
                answer_ref = AnswerRef.article(submission.article_id)
                answer_html = self.resolver.lookup(answer_ref)
                self.knowledge.add_alternate_questions(answer_ref, questions)
            else:
                answer_html = submission.answer_text
                self.knowledge.add_new_answer(questions, submission.answer_text, submission.moderator_id)
        except UnknownArticle as e:
            notify(self.client, submission.channel, submission.moderator_id, str(e))
            return
        except UpstreamUnavailable as e:
            logger.exception("Error applying moderation for %s", submission.form_id)
            notify(
                self.client,
                submission.channel,
                submission.moderator_id,
                f"Could not update the knowledge base, please try again. ({e})",
            )
            return

        pending = self.store.pop(submission.form_id)
        if pending is None:
            return
        answer_text = show_answer(self.client, pending, answer_html)
        self._close_moderation(
            pending,
            submission,
            f"*Answered by* <@{submission.moderator_id}>:\n{answer_text}",
        )
        logger.info("Moderator %s answered question %s", submission.moderator_id, submission.form_id)

    def _reject(self, pending: PendingQuestion, submission: ModerationSubmission) -> None:
        pending = self.store.pop(submission.form_id)
        if pending is None:
            return
        update_reply(self.client, pending, NOT_RELEVANT_MESSAGE)
        self._close_moderation(pending, submission, f"*Rejected by* <@{submission.moderator_id}>")
        logger.info("Moderator %s rejected question %s", submission.moderator_id, submission.form_id)

    def _close_moderation(self, pending: PendingQuestion, submission: ModerationSubmission, outcome: str) -> None:
        message = pending.moderation_message
        if message is None and submission.message_ts:
            message = MessageRef(channel=submission.channel, ts=submission.message_ts)
        if message is None:
            return
        blocks = moderation_result_blocks(pending, outcome)
        update_message(self.client, message, text=f"{pending.question}: {outcome}", blocks=blocks)
