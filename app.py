import os

from slack_bolt import App
from slack_bolt.adapter.fastapi import SlackRequestHandler

from faqbot.logger import logger
from faqbot.config import load_settings, validate_environment_variables
from faqbot.listeners import build_services, register_listeners
from faqbot.web import create_web_app

# Validate environment variables at startup
validate_environment_variables()
settings = load_settings()

# Slack app setup
slack_app = App(
    token=settings.slack_bot_token,
    signing_secret=settings.slack_signing_secret,
    # Ack first, then run listeners on Bolt's worker threads; knowledge base
    # teaching and publishing take longer than Slack's 3 second limit
    process_before_response=False,
)

services = build_services(settings, slack_app.client)
register_listeners(slack_app, services)

# Best effort, teaching by article ID needs it but asking does not
services.knowledge.load_article_index()

handler = SlackRequestHandler(slack_app)
fastapi_app = create_web_app(handler)
logger.info("FAQ bot started")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:fastapi_app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 3000)),
        reload=os.getenv("ENV") != "prod",
    )
