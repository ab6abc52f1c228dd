"""
Test configuration and fixtures for FitBot.

Environment is pinned before any ``fitbot`` import so cached settings never
pick up a developer's real keys.
"""

import os

os.environ.update(
    {
        "LLM_PROVIDER": "openrouter",
        "OPENROUTER_API_KEY": "",
        "OPENAI_API_KEY": "",
        "WHATSAPP_TOKEN": "test-token",
        "WHATSAPP_PHONE_ID": "123456",
        "WHATSAPP_APP_SECRET": "test-secret",
        "WHATSAPP_VERIFY_TOKEN": "verify-me",
        "PRIMARY_USER_PHONE": "",
    }
)

import pytest

from fitbot.handlers.commands import CommandRunner
from fitbot.models import InboundMessage
from fitbot.services.storage import MealLog, MediaStore
from tests.fixtures.mocks import FakeTransport, MockProvider


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def media_store(tmp_path) -> MediaStore:
    return MediaStore(tmp_path / "downloads")


@pytest.fixture
def meal_log(tmp_path) -> MealLog:
    return MealLog(tmp_path / "data")


@pytest.fixture
def runner(fake_transport, mock_provider, media_store, meal_log) -> CommandRunner:
    return CommandRunner(
        transport=fake_transport,
        provider=mock_provider,
        media_store=media_store,
        meal_log=meal_log,
    )


@pytest.fixture
def make_message():
    """Factory for inbound messages."""

    def _make(body: str = "", media_id=None, mime_type=None, msg_id: str = "wamid.in.1"):
        return InboundMessage(
            id=msg_id,
            chat_id="15551234567",
            body=body,
            media_id=media_id,
            mime_type=mime_type,
        )

    return _make
