"""
Error taxonomy shared by the knowledge client, the answer resolver and the
Slack-facing workflows.
"""


class FaqBotError(Exception):
    """Base class for all errors raised by the bot."""


class UpstreamUnavailable(FaqBotError):
    """The knowledge base or the support portal failed, timed out or answered with an error status."""


class ArticleNotFound(UpstreamUnavailable):
    """The support page was fetched but does not contain the expected answer content."""

    def __init__(self, article_id: str):
        super().__init__(f"No answer content found for article {article_id}")
        self.article_id = article_id


class UnknownArticle(FaqBotError):
    """A teach call referenced an article identifier that is not in the article index."""

    def __init__(self, article_id: str):
        super().__init__(
            f"Article ID {article_id} not supported. "
            "Reason may be that this is a newly added article."
        )
        self.article_id = article_id


class MalformedForm(FaqBotError):
    """A form submission is missing fields the bot needs to act on it."""
