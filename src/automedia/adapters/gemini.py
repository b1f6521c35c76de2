"""
Gemini REST adapters: key validation, per-line image generation and
narration alignment. Uses the REST API directly (requests) so errors can be
classified from the HTTP status and the error payload.
"""

import base64
import json
from typing import Any, Dict, List, Optional, Sequence

import requests

from automedia.config import (
    GEMINI_ALIGN_MODEL,
    GEMINI_API_BASE,
    GEMINI_IMAGE_MODEL,
    REQUEST_TIMEOUT,
)
from automedia.domain.errors import ErrorKind, GenerationError
from automedia.domain.models import AlignmentHint, ScriptLine
from automedia.ports.interfaces import IAudioAligner, IImageGenerator, IKeyValidator

# Statuses after which the key cannot be used for generation any more
_QUOTA_STATUSES = {"RESOURCE_EXHAUSTED", "PERMISSION_DENIED"}


def _error_from_response(response: requests.Response) -> GenerationError:
    """Map a non-200 Gemini response to a GenerationError with the right kind."""
    status = ""
    message = response.text[:300]
    try:
        error = response.json().get("error", {})
        status = error.get("status", "") or ""
        message = error.get("message", message) or message
    except ValueError:
        pass

    if response.status_code in (429, 403) or status in _QUOTA_STATUSES:
        return GenerationError(f"{status or response.status_code}: {message}", kind=ErrorKind.QUOTA_EXHAUSTED)
    return GenerationError(f"Gemini API error {response.status_code}: {message}")


def _strip_json_fences(text: str) -> str:
    text = (text or "").strip()
    if text.startswith("```"):
        lines = text.splitlines()[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text


class _GeminiRestClient:
    def __init__(self, base_url: str = GEMINI_API_BASE, timeout: float = REQUEST_TIMEOUT, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def generate_content(self, model: str, api_key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/models/{model}:generateContent"
        try:
            response = self.http.post(url, params={"key": api_key}, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise GenerationError(f"Request to Gemini failed: {e}") from e
        if response.status_code != 200:
            raise _error_from_response(response)
        return response.json()

    @staticmethod
    def parts(result: Dict[str, Any]) -> List[Dict[str, Any]]:
        candidates = result.get("candidates") or []
        if not candidates:
            feedback = result.get("promptFeedback", {})
            raise GenerationError(f"Gemini returned no candidates {feedback or ''}".strip())
        return (candidates[0].get("content") or {}).get("parts") or []


class GeminiKeyValidator(IKeyValidator):
    """A key is valid if it can list models."""

    def __init__(self, client: Optional[_GeminiRestClient] = None):
        self._client = client or _GeminiRestClient()

    def validate_key(self, api_key: str) -> bool:
        if not (api_key or "").strip():
            return False
        try:
            response = self._client.http.get(
                f"{self._client.base_url}/models",
                params={"key": api_key, "pageSize": 1},
                timeout=min(self._client.timeout, 15),
            )
        except requests.RequestException as e:
            print(f"  ⚠️  Key validation request failed: {e}")
            return False
        return response.status_code == 200


class GeminiImageAdapter(IImageGenerator):
    """One image per script line via Gemini native image output."""

    def __init__(self, model: str = GEMINI_IMAGE_MODEL, aspect_ratio: str = "16:9", client: Optional[_GeminiRestClient] = None):
        self._model = model
        self._aspect_ratio = aspect_ratio
        self._client = client or _GeminiRestClient()

    @staticmethod
    def build_prompt(line: ScriptLine, style: str) -> str:
        subject = line.image_prompt or line.spoken_text
        return (
            f"{style}\n\n"
            f"Scene: {subject}\n"
            "Create a single 16:9 illustration for this scene. Do not render any text in the image."
        )

    def generate_image(self, api_key: str, line: ScriptLine, style: str) -> bytes:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": self.build_prompt(line, style)}]}],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": {"aspectRatio": self._aspect_ratio},
            },
        }
        result = self._client.generate_content(self._model, api_key, payload)
        for part in self._client.parts(result):
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                return base64.b64decode(inline["data"])
        raise GenerationError("Gemini response contained no image data")


class GeminiAlignerAdapter(IAudioAligner):
    """Asks Gemini to listen to the narration and timestamp each script line."""

    def __init__(self, model: str = GEMINI_ALIGN_MODEL, client: Optional[_GeminiRestClient] = None):
        self._model = model
        self._client = client or _GeminiRestClient()

    @staticmethod
    def build_prompt(lines: Sequence[ScriptLine]) -> str:
        listing = "\n".join(f"{line.id}: {line.spoken_text}" for line in lines)
        return (
            "You are given a narration audio file and the script lines it reads, in order.\n"
            "For each line, return when it starts and ends in the audio, in seconds.\n"
            "Return ONLY a JSON array of objects: "
            '[{"lineId": "<id>", "startTime": <float>, "endTime": <float>}].\n'
            "Skip lines you cannot find.\n\n"
            f"Script lines:\n{listing}"
        )

    @staticmethod
    def parse_hints(text: str) -> List[AlignmentHint]:
        data = json.loads(_strip_json_fences(text))
        if isinstance(data, dict):
            data = data.get("alignments") or data.get("lines") or []
        hints = []
        for item in data:
            if not isinstance(item, dict) or not item.get("lineId"):
                continue
            try:
                start = float(item.get("startTime", 0) or 0)
                end = float(item.get("endTime", 0) or 0)
            except (TypeError, ValueError):
                continue
            hints.append(AlignmentHint(line_id=str(item["lineId"]), start_time=start, end_time=end))
        return hints

    def align(
        self,
        api_key: str,
        audio_bytes: bytes,
        mime_type: str,
        lines: Sequence[ScriptLine],
    ) -> List[AlignmentHint]:
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inlineData": {"mimeType": mime_type, "data": base64.b64encode(audio_bytes).decode("ascii")}},
                        {"text": self.build_prompt(lines)},
                    ],
                }
            ],
            "generationConfig": {"responseMimeType": "application/json", "temperature": 0},
        }
        result = self._client.generate_content(self._model, api_key, payload)
        text = "".join(part.get("text", "") for part in self._client.parts(result))
        if not text.strip():
            raise GenerationError("Gemini returned an empty alignment")
        return self.parse_hints(text)
