"""
Constants shared across the bot: thresholds, timeouts, form identifiers and
user-facing messages.
"""

# Candidate thresholding
DEFAULT_MAX_CANDIDATES = 3
DEFAULT_MIN_SCORE = 30.0

# The knowledge base returns this id when nothing matched
NO_MATCH_ANSWER_ID = -1

# Upstream timeouts (seconds)
DEFAULT_QNA_TIMEOUT_SECONDS = 10.0
DEFAULT_SUPPORT_TIMEOUT_SECONDS = 10.0
DEFAULT_PUBLISH_WAIT_SECONDS = 60.0
OPERATION_POLL_INTERVAL_SECONDS = 1.0

# Pending questions older than this are evicted (7 days)
DEFAULT_PENDING_TTL_SECONDS = 7 * 24 * 60 * 60

DEFAULT_SUPPORT_BASE_URL = "https://www.circuit.com"
DEFAULT_ARTICLE_SOURCE = "faq-articles.xlsx"
DEFAULT_ARTICLE_ID_PATTERN = r"^\d+$"
NEW_ANSWER_SOURCE = "admin-bot"

# Block Kit identifiers
ANSWER_CHOICE_BLOCK = "answer_choice"
ANSWER_CHOICE_ACTION = "answer_choice"
ANSWER_SUBMIT_ACTION = "answer_submit"
NONE_OF_THE_ABOVE = "none"

BETTER_QUESTION_BLOCK = "better_question"
ARTICLE_ID_BLOCK = "article_id"
ANSWER_TEXT_BLOCK = "answer_text"
MODERATION_INPUT_ACTION = "value"
MODERATION_SUBMIT_ACTION = "moderation_submit"
MODERATION_REJECT_ACTION = "moderation_reject"

# User-facing messages
SUPPORT_LINK = "<https://www.circuit.com/support|Circuit Support>"

ERROR_MESSAGE = (
    "There was an error processing your request. "
    f"Check if you find an answer on {SUPPORT_LINK}."
)
ESCALATED_MESSAGE = (
    "Sorry, I could not find an answer to your question. "
    "I have forwarded it to our experts and will update this message once they reply. "
    f"In the meantime check if you find an answer on {SUPPORT_LINK}."
)
DISAMBIGUATION_PROMPT = "I found a few answers that might help. Which one matches your question?"
NONE_OF_THE_ABOVE_LABEL = "None of the above"
PICK_AN_OPTION_MESSAGE = "Please pick one of the options before submitting."
NOT_YOUR_QUESTION_MESSAGE = "Only the person who asked this question can pick the answer."
NOT_RELEVANT_MESSAGE = (
    "Our experts reviewed your question and found it is not relevant for this FAQ bot. "
    f"Check if you find an answer on {SUPPORT_LINK}."
)
ALREADY_RESOLVED_MESSAGE = "This question has already been answered."
MODERATION_PROMPT = "A user question could not be answered."
MODERATION_MISSING_INPUT_MESSAGE = (
    "Please enter either an article ID or an answer text, or reject the question."
)
