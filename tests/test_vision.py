"""
tests/test_vision.py
Unit tests for umlforge.vision.

The HTTP layer is replaced by ``httpx.MockTransport``; no network access.
"""

from __future__ import annotations

import asyncio
import json
import pathlib
from typing import Any, Callable, Dict, List

import httpx
import pytest

from umlforge.models import ImportResult, TranslationConfig
from umlforge.vision import (
    MAX_IMAGE_BYTES,
    PROMPT,
    VisionClient,
    VisionServiceError,
    extract_json_object,
    image_data_url,
)

ENDPOINT = "https://vision.invalid/v1/chat/completions"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"

DOCUMENT: Dict[str, Any] = {
    "classes": [
        {"name": "Cliente", "attributes": ["- email: String"]},
        {"name": "Factura", "attributes": ["+ total: Double"]},
    ],
    "relationships": [
        {"type": "association", "from": "Cliente", "to": "Factura",
         "sourceMultiplicity": "1", "targetMultiplicity": "*"},
    ],
}


def _chat_reply(content: str) -> Dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(
    handler: Callable[[httpx.Request], httpx.Response], api_key: str = "secret"
) -> VisionClient:
    return VisionClient(ENDPOINT, "vision-model", api_key, transport=httpx.MockTransport(handler))


def _run(client: VisionClient, data: bytes = PNG_BYTES) -> ImportResult:
    return asyncio.run(client.import_bytes(data, "image/png"))


# ===========================================================================
# Reply parsing
# ===========================================================================


class TestExtractJsonObject:
    """Model replies come bare, fenced or wrapped in prose."""

    def test_bare(self) -> None:
        assert extract_json_object('{"classes": []}') == {"classes": []}

    def test_fenced(self) -> None:
        reply = 'Here it is:\n```json\n{"classes": [{"name": "A"}]}\n```\nDone.'
        assert extract_json_object(reply) == {"classes": [{"name": "A"}]}

    def test_prose_around_object(self) -> None:
        assert extract_json_object('Sure! {"a": 1} Hope this helps.') == {"a": 1}

    @pytest.mark.parametrize("reply", ["no json here", "[1, 2]", "{broken", "{'single': 'quotes'}"])
    def test_unreadable(self, reply: str) -> None:
        with pytest.raises(VisionServiceError):
            extract_json_object(reply)


def test_image_data_url() -> None:
    assert image_data_url(b"abc", "image/png") == "data:image/png;base64,YWJj"


# ===========================================================================
# Client
# ===========================================================================


class TestVisionClient:
    """End-to-end import through a mock transport."""

    def test_successful_import(self) -> None:
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_chat_reply(json.dumps(DOCUMENT)))

        result = _run(_client(handler))
        assert result.success, result.error
        assert result.classes_created == 2
        assert result.relationships_created == 1
        assert [c["name"] for c in result.snapshot["classes"]] == ["Cliente", "Factura"]

        [request] = seen
        assert request.headers["Authorization"] == "Bearer secret"
        body = json.loads(request.content)
        assert body["model"] == "vision-model"
        text_part, image_part = body["messages"][0]["content"]
        assert text_part == {"type": "text", "text": PROMPT}
        assert image_part["image_url"]["url"].startswith("data:image/png;base64,")

    def test_missing_api_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected without an API key")

        result = _run(_client(handler, api_key=""))
        assert result.success is False
        assert "UMLFORGE_VISION_API_KEY" in result.error

    def test_http_error_status(self) -> None:
        result = _run(_client(lambda request: httpx.Response(401, text="invalid key")))
        assert result.success is False
        assert result.error.startswith("Vision service error: 401")

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = _run(_client(handler))
        assert result.success is False
        assert "ConnectError" in result.error

    def test_non_json_body(self) -> None:
        result = _run(_client(lambda request: httpx.Response(200, text="<html>")))
        assert result.success is False
        assert "non-JSON" in result.error

    def test_reply_without_content(self) -> None:
        result = _run(_client(lambda request: httpx.Response(200, json={"choices": []})))
        assert result.success is False
        assert "no message content" in result.error

    def test_no_classes_recognised(self) -> None:
        reply = _chat_reply('{"classes": [], "relationships": []}')
        result = _run(_client(lambda request: httpx.Response(200, json=reply)))
        assert result.success is False
        assert "No UML classes" in result.error

    def test_empty_and_oversized_images(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = _client(handler)
        assert _run(client, b"").error == "The image is empty."
        assert "limit" in _run(client, b"0" * (MAX_IMAGE_BYTES + 1)).error

    def test_unsupported_extension(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "diagram.gif"
        path.write_bytes(b"GIF89a")
        client = _client(lambda request: httpx.Response(500))
        result = asyncio.run(client.import_image(path))
        assert result.success is False
        assert "Unsupported image type '.gif'" in result.error

    def test_import_image_reads_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "pizarra.PNG"
        path.write_bytes(PNG_BYTES)
        reply = _chat_reply(json.dumps(DOCUMENT))
        client = _client(lambda request: httpx.Response(200, json=reply))
        assert asyncio.run(client.import_image(path)).success

    def test_from_config(self) -> None:
        config = TranslationConfig.from_title("Demo", vision_model="otro-modelo")
        client = VisionClient.from_config(config, api_key="k")
        assert client.model == "otro-modelo"
        assert client.endpoint == config.vision_endpoint
        assert "otro-modelo" in repr(client)
