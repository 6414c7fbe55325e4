"""Root conftest for pipeline and API tests.

Provides:
- Pillow-generated screenshots (PNG/JPEG bytes and SourceImage)
- FakeGateway: scripted replies keyed by system prompt, records every call
- FastAPI AsyncClient over ASGITransport
"""

from __future__ import annotations

import io
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, Union

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image, ImageDraw

from superprompt import runtime
from superprompt.errors import AuthenticationError
from superprompt.imaging import SourceImage


# ---------------------------------------------------------------------------
# Screenshots
# ---------------------------------------------------------------------------

def make_screenshot(width: int = 200, height: int = 120, fmt: str = "PNG") -> bytes:
    """White page with a blue header bar and a grey button."""
    img = Image.new("RGB", (width, height), (255, 255, 255))
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, width, 20), fill=(30, 60, 200))
    draw.rectangle((20, 50, 80, 70), fill=(180, 180, 180))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_screenshot()


@pytest.fixture
def screenshot(png_bytes: bytes) -> SourceImage:
    return SourceImage.from_bytes(png_bytes)


# ---------------------------------------------------------------------------
# Scripted gateway
# ---------------------------------------------------------------------------

Reply = Union[str, BaseException, Callable[[Dict[str, Any]], str]]


class FakeGateway:
    """Stand-in for ModelGateway.

    ``replies`` maps a substring of the system prompt (``None`` matches calls
    without one) to a reply: a string, an exception to raise, or a callable
    receiving the call kwargs. Unmatched calls return ``default``.
    """

    def __init__(
        self,
        replies: Optional[Dict[Optional[str], Reply]] = None,
        default: str = "ok",
        has_credentials: bool = True,
    ):
        self.replies = replies or {}
        self.default = default
        self.has_credentials = has_credentials
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def check_credentials(self) -> None:
        if not self.has_credentials:
            raise AuthenticationError("API key not set for openai. Set OPENAI_API_KEY or configure it in settings.")

    async def invoke(self, **kwargs: Any) -> str:
        self.check_credentials()
        self.calls.append(kwargs)
        system_prompt = kwargs.get("system_prompt")
        for key, reply in self.replies.items():
            if (key is None and system_prompt is None) or (
                key is not None and system_prompt and key in system_prompt
            ):
                if isinstance(reply, BaseException):
                    raise reply
                if callable(reply):
                    return reply(kwargs)
                return reply
        return self.default

    async def close(self) -> None:
        self.closed = True

    def calls_matching(self, fragment: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c.get("system_prompt") and fragment in c["system_prompt"]]


@pytest.fixture
def fake_gateway_factory():
    return FakeGateway


# ---------------------------------------------------------------------------
# Process-wide settings reset
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def reset_runtime(monkeypatch):
    """Restore detection mode, verbosity and credentials after each test."""
    monkeypatch.setattr(runtime, "_detection_mode", "llm")
    monkeypatch.setattr(runtime, "_prompt_verbosity", "concise")
    monkeypatch.setattr(runtime, "credentials", runtime.CredentialStore(env_fallback=False))
    yield


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI routes."""
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def screenshot_factory():
    return make_screenshot
