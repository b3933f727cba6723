"""
Unit tests for faqbot/web.py
"""
from unittest.mock import AsyncMock

import pytest
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from faqbot.web import create_web_app


@pytest.fixture
def handler():
    handler = AsyncMock()
    handler.handle.return_value = JSONResponse({"ok": True})
    return handler


@pytest.fixture
def client(handler):
    return TestClient(create_web_app(handler))


def test_health_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "running"}


def test_slack_events_are_forwarded(client, handler):
    response = client.post("/slack/events", json={"type": "url_verification", "challenge": "abc"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    handler.handle.assert_awaited_once()
