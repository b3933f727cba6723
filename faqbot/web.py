from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


def create_web_app(handler) -> FastAPI:
    """
    FastAPI app exposing the Slack events endpoint and a health check.

    Args:
        handler: Bolt request handler, e.g. slack_bolt.adapter.fastapi.SlackRequestHandler
    """
    fastapi_app = FastAPI()

    @fastapi_app.post("/slack/events")
    async def slack_events(request: Request):
        # Events arrive as JSON, interactions as form-encoded payloads; Bolt parses both
        return await handler.handle(request)

    @fastapi_app.get("/")
    async def ping():
        return JSONResponse({"status": "running"})

    return fastapi_app
