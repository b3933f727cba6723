"""
Unit tests for faqbot/blocks.py
"""
import pytest

from faqbot.blocks import (
    MAX_SECTION_TEXT_LENGTH,
    disambiguation_blocks,
    moderation_blocks,
    parse_moderation_submission,
    parse_selection,
    text_blocks,
)
from faqbot.constants import (
    ANSWER_CHOICE_ACTION,
    ANSWER_CHOICE_BLOCK,
    ANSWER_SUBMIT_ACTION,
    MODERATION_REJECT_ACTION,
    MODERATION_SUBMIT_ACTION,
    NONE_OF_THE_ABOVE,
)
from faqbot.errors import MalformedForm
from faqbot.pending import PendingQuestionStore

from conftest import ASKER_ID, DIRECT_CHANNEL, MODERATION_CHANNEL, MODERATOR_ID, make_candidate


def selection_body(form_id="form-1", selected="0", **overrides):
    choice = {"type": "radio_buttons"}
    if selected is not None:
        choice["selected_option"] = {"value": selected}
    body = {
        "type": "block_actions",
        "user": {"id": ASKER_ID},
        "channel": {"id": DIRECT_CHANNEL},
        "container": {"type": "message", "message_ts": "1700000000.000200", "channel_id": DIRECT_CHANNEL},
        "actions": [{"action_id": ANSWER_SUBMIT_ACTION, "value": form_id}],
        "state": {"values": {ANSWER_CHOICE_BLOCK: {ANSWER_CHOICE_ACTION: choice}}},
    }
    body.update(overrides)
    return body


def moderation_body(action_id=MODERATION_SUBMIT_ACTION, better=None, article=None, answer=None, **overrides):
    body = {
        "type": "block_actions",
        "user": {"id": MODERATOR_ID},
        "channel": {"id": MODERATION_CHANNEL},
        "message": {"ts": "1700000009.000001"},
        "actions": [{"action_id": action_id, "value": "form-1"}],
        "state": {
            "values": {
                "better_question": {"value": {"type": "plain_text_input", "value": better}},
                "article_id": {"value": {"type": "plain_text_input", "value": article}},
                "answer_text": {"value": {"type": "plain_text_input", "value": answer}},
            }
        },
    }
    body.update(overrides)
    return body


@pytest.fixture
def pending():
    store = PendingQuestionStore()
    return store.create(
        "How do I <reset> my password?",
        [make_candidate(1, 70, question="Reset password"), make_candidate(2, 50, question="")],
        DIRECT_CHANNEL,
        "1700000000.000100",
        asker_id=ASKER_ID,
    )


class TestLayouts:
    def test_disambiguation_options(self, pending):
        blocks = disambiguation_blocks(pending)
        radio = blocks[1]["elements"][0]

        assert blocks[1]["block_id"] == ANSWER_CHOICE_BLOCK
        assert radio["action_id"] == ANSWER_CHOICE_ACTION
        assert [o["value"] for o in radio["options"]] == ["0", "1", NONE_OF_THE_ABOVE]
        assert radio["options"][0]["text"]["text"] == "Reset password"
        assert radio["options"][1]["text"]["text"] == "Answer 2"
        assert blocks[2]["elements"][0]["value"] == pending.form_id

    def test_long_option_text_is_truncated(self):
        store = PendingQuestionStore()
        pending = store.create("q", [make_candidate(1, 70, question="x" * 200)], DIRECT_CHANNEL, "1")

        text = disambiguation_blocks(pending)[1]["elements"][0]["options"][0]["text"]["text"]

        assert len(text) == 75
        assert text.endswith("…")

    def test_moderation_form(self, pending):
        blocks = moderation_blocks(pending)

        assert "How do I &lt;reset&gt; my password?" in blocks[0]["text"]["text"]
        assert f"<@{ASKER_ID}>" in blocks[0]["text"]["text"]
        assert [b["block_id"] for b in blocks if b["type"] == "input"] == [
            "better_question",
            "article_id",
            "answer_text",
        ]
        assert all(b["optional"] for b in blocks if b["type"] == "input")
        buttons = blocks[-1]["elements"]
        assert [b["action_id"] for b in buttons] == [MODERATION_SUBMIT_ACTION, MODERATION_REJECT_ACTION]
        assert {b["value"] for b in buttons} == {pending.form_id}

    def test_text_blocks_split_long_text(self):
        blocks = text_blocks("a" * (MAX_SECTION_TEXT_LENGTH + 10))

        assert len(blocks) == 2
        assert len(blocks[0]["text"]["text"]) == MAX_SECTION_TEXT_LENGTH

    def test_text_blocks_never_empty(self):
        assert text_blocks("")[0]["text"]["text"] == " "


class TestParseSelection:
    def test_selected_option(self):
        selection = parse_selection(selection_body(selected="1"))

        assert selection.form_id == "form-1"
        assert selection.option == "1"
        assert selection.user_id == ASKER_ID
        assert selection.channel == DIRECT_CHANNEL
        assert selection.message_ts == "1700000000.000200"
        assert not selection.none_of_the_above

    def test_none_of_the_above(self):
        assert parse_selection(selection_body(selected=NONE_OF_THE_ABOVE)).none_of_the_above

    def test_nothing_selected(self):
        assert parse_selection(selection_body(selected=None)).option is None

    def test_channel_from_container(self):
        body = selection_body()
        del body["channel"]

        assert parse_selection(body).channel == DIRECT_CHANNEL

    @pytest.mark.parametrize(
        "overrides",
        [
            {"actions": []},
            {"actions": [{"action_id": ANSWER_SUBMIT_ACTION}]},
            {"user": None},
            {"state": {}},
        ],
    )
    def test_malformed(self, overrides):
        with pytest.raises(MalformedForm):
            parse_selection(selection_body(**overrides))


class TestParseModerationSubmission:
    def test_inputs_are_trimmed(self):
        submission = parse_moderation_submission(
            moderation_body(better="  Better wording ", article=" 12345 ", answer="   ")
        )

        assert not submission.reject
        assert submission.better_question == "Better wording"
        assert submission.article_id == "12345"
        assert submission.answer_text is None
        assert submission.moderator_id == MODERATOR_ID
        assert submission.channel == MODERATION_CHANNEL
        assert submission.message_ts == "1700000009.000001"

    def test_reject_ignores_the_inputs(self):
        submission = parse_moderation_submission(
            moderation_body(action_id=MODERATION_REJECT_ACTION, answer="typed anyway", state=None)
        )

        assert submission.reject
        assert submission.answer_text is None

    def test_submit_without_state(self):
        with pytest.raises(MalformedForm):
            parse_moderation_submission(moderation_body(state=None))

    def test_missing_input_blocks_read_as_empty(self):
        submission = parse_moderation_submission(moderation_body(state={"values": {}}))

        assert submission.better_question is None
        assert submission.article_id is None
        assert submission.answer_text is None
