# File: umlforge/vision.py
"""
NexaFlow UMLForge - Vision Import Client
=========================================

Turns a picture of a UML class diagram into a diagram snapshot by asking an
OpenAI-compatible chat-completions endpoint (Groq, OpenAI, a local server)
for an interchange document, then running it through the interchange
importer.

The call is ``async`` (``httpx.AsyncClient``) with a bounded timeout and no
retries. Every failure (unsupported image, transport error, HTTP status,
unreadable reply) comes back as ``ImportResult(success=False, error=...)``.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from umlforge.generators.interchange import import_document
from umlforge.models import ImportResult, TranslationConfig

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.vision")

API_KEY_ENV: str = "UMLFORGE_VISION_API_KEY"

MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

MIME_TYPES: Dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}

PROMPT: str = """\
You are reading a picture of a UML class diagram.

Reply with ONE JSON object and nothing else, shaped like:
{
  "classes": [
    {"name": "Customer",
     "attributes": ["- email: String"],
     "methods": ["+ placeOrder(): Order"]}
  ],
  "relationships": [
    {"type": "association", "from": "Customer", "to": "Order",
     "sourceMultiplicity": "1", "targetMultiplicity": "*"}
  ]
}

"type" is one of association, composition, aggregation, inheritance.
For inheritance "from" is the subclass and "to" the superclass; for
composition and aggregation "from" is the whole.
If the picture is not a UML class diagram reply {"classes": [], "relationships": []}.
"""

_FENCE_RE: re.Pattern[str] = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class VisionServiceError(Exception):
    """The vision service could not produce a usable document."""


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    Accepts bare JSON, fenced code blocks and prose around the object.

    Raises:
        VisionServiceError: If no JSON object can be read.
    """
    candidate: str = text.strip()
    fenced = _FENCE_RE.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()
    start: int = candidate.find("{")
    end: int = candidate.rfind("}")
    if start < 0 or end <= start:
        raise VisionServiceError("The vision reply contains no JSON object.")
    try:
        data: Any = json.loads(candidate[start : end + 1])
    except json.JSONDecodeError as exc:
        raise VisionServiceError(f"The vision reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise VisionServiceError("The vision reply is not a JSON object.")
    return data


def image_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class VisionClient:
    """
    Async client for an OpenAI-compatible vision endpoint.

    Usage::

        client = VisionClient.from_config(config, api_key=os.environ[API_KEY_ENV])
        result = asyncio.run(client.import_image(Path("diagram.png")))

    *transport* lets tests plug in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        endpoint: str,
        model: str,
        api_key: Optional[str],
        *,
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint: str = endpoint
        self.model: str = model
        self._api_key: Optional[str] = api_key
        self._timeout: httpx.Timeout = httpx.Timeout(timeout_seconds, connect=10.0)
        self._transport: Optional[httpx.AsyncBaseTransport] = transport

    @classmethod
    def from_config(
        cls,
        config: TranslationConfig,
        api_key: Optional[str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "VisionClient":
        return cls(
            config.vision_endpoint,
            config.vision_model,
            api_key,
            timeout_seconds=config.vision_timeout_seconds,
            transport=transport,
        )

    def __repr__(self) -> str:
        return f"<VisionClient model={self.model!r} endpoint={self.endpoint!r}>"

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    async def import_image(self, path: Path) -> ImportResult:
        """Read an image file and import the diagram it shows."""
        path = Path(path)
        mime_type: Optional[str] = MIME_TYPES.get(path.suffix.lower())
        if mime_type is None:
            return self._failure(
                f"Unsupported image type '{path.suffix}'. Use PNG, JPEG or WEBP."
            )
        try:
            data: bytes = path.read_bytes()
        except OSError as exc:
            return self._failure(f"Cannot read image {path}: {exc}")
        return await self.import_bytes(data, mime_type)

    async def import_bytes(self, data: bytes, mime_type: str) -> ImportResult:
        """Send image bytes to the service and import its reply."""
        if not data:
            return self._failure("The image is empty.")
        if len(data) > MAX_IMAGE_BYTES:
            return self._failure(
                f"The image is {len(data)} bytes; the limit is {MAX_IMAGE_BYTES}."
            )
        try:
            reply: str = await self._complete(image_data_url(data, mime_type))
            document: Dict[str, Any] = extract_json_object(reply)
        except VisionServiceError as exc:
            return self._failure(str(exc))

        result: ImportResult = import_document(document)
        if result.success and result.classes_created == 0:
            return self._failure("No UML classes were recognised in the image.")
        return result

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _payload(self, data_url: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": PROMPT},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                }
            ],
        }

    async def _complete(self, data_url: str) -> str:
        if not self._api_key:
            raise VisionServiceError(
                f"No API key for the vision service; set {API_KEY_ENV}."
            )

        logger.info("Sending diagram image to %s (model %s).", self.endpoint, self.model)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response: httpx.Response = await client.post(
                    self.endpoint,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json=self._payload(data_url),
                )
                response.raise_for_status()
                payload: Any = response.json()
        except httpx.HTTPStatusError as exc:
            raise VisionServiceError(
                f"Vision service error: {exc.response.status_code} {exc.response.text[:200]}"
            ) from exc
        except httpx.RequestError as exc:
            raise VisionServiceError(
                f"Vision request failed: {type(exc).__name__}: {exc}"
            ) from exc
        except ValueError as exc:
            raise VisionServiceError("Vision service returned a non-JSON body.") from exc

        try:
            content: Any = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise VisionServiceError("Vision service reply has no message content.") from exc
        if not isinstance(content, str) or not content.strip():
            raise VisionServiceError("Vision service returned an empty reply.")
        return content

    @staticmethod
    def _failure(error: str) -> ImportResult:
        logger.warning("Vision import failed: %s", error)
        return ImportResult(success=False, error=error)


__all__: List[str] = [
    "API_KEY_ENV",
    "MAX_IMAGE_BYTES",
    "PROMPT",
    "VisionClient",
    "VisionServiceError",
    "extract_json_object",
    "image_data_url",
]

logger.debug("umlforge.vision loaded.")
