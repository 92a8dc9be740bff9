"""
Gemini Oracle
Thin async wrapper around the google-genai SDK used for segment scoring and
clip enrichment
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import get_settings
from ..utils.exceptions import APIKeyError, OracleUnavailableError, RateLimitError
from ..utils.logger import get_logger

logger = get_logger()

SERVICE_NAME = "Gemini"


@dataclass
class OracleFile:
    """Media artifact uploaded to the oracle's file store"""
    name: str
    uri: str
    mime_type: str
    state: str = "PROCESSING"


class GeminiOracle:
    """Schema-constrained JSON generation and media upload via Gemini"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.settings = get_settings()
        self.api_key = api_key if api_key is not None else self.settings.gemini_api_key
        self.model = model or self.settings.gemini_model
        self._client = None

    def _ensure_client(self):
        """Lazy load the Gemini client"""
        if self._client is not None:
            return

        if not self.api_key:
            raise APIKeyError(SERVICE_NAME)

        from google import genai
        self._client = genai.Client(api_key=self.api_key)
        logger.info("Gemini client initialized")

    async def _call(self, fn, *args, **kwargs):
        """Run a blocking SDK call in the default executor, mapping API errors"""
        from google.genai import errors

        self._ensure_client()
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))
        except errors.ClientError as e:
            if e.code == 429:
                raise RateLimitError(SERVICE_NAME) from e
            raise
        except errors.ServerError as e:
            raise OracleUnavailableError(SERVICE_NAME, str(e)) from e

    async def upload_media(self, path: str, mime_type: str) -> OracleFile:
        """Upload a local media file to the Gemini Files API"""
        self._ensure_client()
        uploaded = await self._call(
            self._client.files.upload,
            file=path,
            config={
                "mime_type": mime_type,
                "display_name": f"repurpose_video_{int(time.time() * 1000)}",
            },
        )
        logger.info(f"Video uploaded to Gemini: {uploaded.name}")
        return OracleFile(
            name=uploaded.name,
            uri=uploaded.uri,
            mime_type=uploaded.mime_type or mime_type,
            state=_state_name(uploaded.state),
        )

    async def get_media_state(self, name: str) -> str:
        """Current processing state of an uploaded file"""
        self._ensure_client()
        remote = await self._call(self._client.files.get, name=name)
        return _state_name(remote.state)

    async def generate_json(
        self,
        prompt: str,
        media: Optional[OracleFile] = None,
        schema: Optional[Dict[str, Any]] = None,
        temperature: float = 0.8,
        max_output_tokens: int = 1024,
    ) -> str:
        """Generate a JSON document for ``prompt``, optionally grounded on ``media``"""
        from google.genai import types

        self._ensure_client()

        contents: list = [prompt]
        if media is not None:
            contents.append(types.Part.from_uri(file_uri=media.uri, mime_type=media.mime_type))

        config: Dict[str, Any] = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
            "response_mime_type": "application/json",
        }
        if schema is not None:
            config["response_schema"] = schema

        response = await self._call(
            self._client.models.generate_content,
            model=self.model,
            contents=contents,
            config=config,
        )

        if not response or not getattr(response, "text", None):
            return ""
        return response.text


def _state_name(state) -> str:
    if state is None:
        return "PROCESSING"
    return str(getattr(state, "name", state)).upper()
