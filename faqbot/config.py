"""
Configuration and environment variable validation.
"""
import os
import sys
from dataclasses import dataclass
from typing import Optional

from faqbot.logger import logger
from faqbot.constants import (
    DEFAULT_ARTICLE_ID_PATTERN,
    DEFAULT_ARTICLE_SOURCE,
    DEFAULT_MAX_CANDIDATES,
    DEFAULT_MIN_SCORE,
    DEFAULT_PENDING_TTL_SECONDS,
    DEFAULT_PUBLISH_WAIT_SECONDS,
    DEFAULT_QNA_TIMEOUT_SECONDS,
    DEFAULT_SUPPORT_BASE_URL,
    DEFAULT_SUPPORT_TIMEOUT_SECONDS,
)

REQUIRED_VARS = {
    "SLACK_BOT_TOKEN": "Slack bot token for authentication",
    "SLACK_SIGNING_SECRET": "Slack signing secret for request verification",
    "QNA_KNOWLEDGEBASE_ID": "QnA knowledge base ID",
    "QNA_ENDPOINT_KEY": "QnA runtime endpoint key used to ask questions",
    "QNA_SUBSCRIPTION_KEY": "QnA subscription key used to download, teach and publish",
    "QNA_RUNTIME_HOST": "QnA runtime host, e.g. https://<name>.azurewebsites.net/qnamaker",
    "MODERATION_CHANNEL_ID": "Slack channel where unanswered questions are escalated",
}

OPTIONAL_VARS = {
    "QNA_MANAGEMENT_HOST": "QnA management API base URL (defaults to westus v4.0)",
    "QNA_PRODUCTION": "Query the published production index (defaults to false)",
    "QNA_ARTICLE_SOURCE": "Source name of the FAQ articles import (defaults to faq-articles.xlsx)",
    "ARTICLE_ID_PATTERN": "Regex telling article IDs apart from answer text (defaults to digits only)",
    "SUPPORT_BASE_URL": "Support portal base URL (defaults to https://www.circuit.com)",
    "QNA_TIMEOUT_SECONDS": "Timeout of knowledge base requests",
    "SUPPORT_TIMEOUT_SECONDS": "Timeout of support portal requests",
    "PUBLISH_WAIT_SECONDS": "How long to wait for a knowledge base update before giving up",
    "MIN_SCORE": "Candidates scoring this or less are dropped (defaults to 30)",
    "MAX_CANDIDATES": "Candidates offered to the user (defaults to 3)",
    "AUTO_ANSWER_MIN_SCORE": "Answer directly when a single candidate scores at least this (disabled if not set)",
    "PENDING_TTL_SECONDS": "Seconds an unanswered question is kept (defaults to 7 days)",
    "PORT": "Server port (defaults to 3000 if not set)",
    "ENV": "Environment (prod/dev, defaults to dev if not set)",
    "LOG_LEVEL": "Log level (defaults to DEBUG)",
}


@dataclass
class Settings:
    slack_bot_token: str
    slack_signing_secret: str
    knowledgebase_id: str
    endpoint_key: str
    subscription_key: str
    runtime_host: str
    moderation_channel_id: str
    management_host: str = "https://westus.api.cognitive.microsoft.com/qnamaker/v4.0"
    production: bool = False
    article_source: str = DEFAULT_ARTICLE_SOURCE
    article_id_pattern: str = DEFAULT_ARTICLE_ID_PATTERN
    support_base_url: str = DEFAULT_SUPPORT_BASE_URL
    qna_timeout: float = DEFAULT_QNA_TIMEOUT_SECONDS
    support_timeout: float = DEFAULT_SUPPORT_TIMEOUT_SECONDS
    publish_wait: float = DEFAULT_PUBLISH_WAIT_SECONDS
    min_score: float = DEFAULT_MIN_SCORE
    max_candidates: int = DEFAULT_MAX_CANDIDATES
    auto_answer_min_score: Optional[float] = None
    pending_ttl: float = DEFAULT_PENDING_TTL_SECONDS


def validate_environment_variables() -> None:
    """
    Validate all required environment variables at startup.
    Exits the application with a clear error message if any are missing.
    """
    missing_vars = []

    for var_name, description in REQUIRED_VARS.items():
        value = os.getenv(var_name)
        if not value or not value.strip():
            missing_vars.append(f"  - {var_name}: {description}")
            logger.error("Missing required environment variable: %s", var_name)

    if missing_vars:
        error_message = (
            "Missing required environment variables:\n"
            + "\n".join(missing_vars)
            + "\n\nPlease set these variables before starting the application."
        )
        logger.critical(error_message)
        print(error_message, file=sys.stderr)
        sys.exit(1)

    # Log optional variables status
    for var_name, description in OPTIONAL_VARS.items():
        value = os.getenv(var_name)
        if not value or not value.strip():
            logger.info("Optional environment variable not set: %s - %s", var_name, description)
        else:
            logger.debug("Environment variable set: %s", var_name)

    logger.info("Environment variable validation completed successfully")


def _get_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric value for %s: %r", name, value)
        return default


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return default
    return value in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """
    Read settings from the environment. Call validate_environment_variables() first,
    missing required variables raise KeyError here.
    """
    settings = Settings(
        slack_bot_token=os.environ["SLACK_BOT_TOKEN"],
        slack_signing_secret=os.environ["SLACK_SIGNING_SECRET"],
        knowledgebase_id=os.environ["QNA_KNOWLEDGEBASE_ID"],
        endpoint_key=os.environ["QNA_ENDPOINT_KEY"],
        subscription_key=os.environ["QNA_SUBSCRIPTION_KEY"],
        runtime_host=os.environ["QNA_RUNTIME_HOST"].rstrip("/"),
        moderation_channel_id=os.environ["MODERATION_CHANNEL_ID"],
        management_host=os.getenv("QNA_MANAGEMENT_HOST", Settings.management_host).rstrip("/"),
        production=_get_bool("QNA_PRODUCTION", Settings.production),
        article_source=os.getenv("QNA_ARTICLE_SOURCE", Settings.article_source),
        article_id_pattern=os.getenv("ARTICLE_ID_PATTERN", Settings.article_id_pattern),
        support_base_url=os.getenv("SUPPORT_BASE_URL", Settings.support_base_url).rstrip("/"),
        qna_timeout=_get_float("QNA_TIMEOUT_SECONDS", Settings.qna_timeout),
        support_timeout=_get_float("SUPPORT_TIMEOUT_SECONDS", Settings.support_timeout),
        publish_wait=_get_float("PUBLISH_WAIT_SECONDS", Settings.publish_wait),
        min_score=_get_float("MIN_SCORE", Settings.min_score),
        max_candidates=int(_get_float("MAX_CANDIDATES", Settings.max_candidates)),
        auto_answer_min_score=_get_float("AUTO_ANSWER_MIN_SCORE", None),
        pending_ttl=_get_float("PENDING_TTL_SECONDS", Settings.pending_ttl),
    )
    logger.info(
        "Loaded settings: knowledgebase=%s, production=%s, moderation_channel=%s, "
        "min_score=%s, max_candidates=%s, auto_answer_min_score=%s",
        settings.knowledgebase_id,
        settings.production,
        settings.moderation_channel_id,
        settings.min_score,
        settings.max_candidates,
        settings.auto_answer_min_score,
    )
    return settings
