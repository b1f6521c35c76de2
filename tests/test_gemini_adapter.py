import base64
import json

import pytest
import requests

from automedia.adapters.gemini import (
    GeminiAlignerAdapter,
    GeminiImageAdapter,
    GeminiKeyValidator,
    _GeminiRestClient,
    _error_from_response,
)
from automedia.application.script_parser import parse_script
from automedia.domain.errors import ErrorKind, GenerationError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload or {})

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def _send(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def post(self, url, **kwargs):
        return self._send("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._send("GET", url, **kwargs)


def client_with(response=None, error=None):
    http = FakeHttp(response, error)
    return _GeminiRestClient(base_url="https://example.test/v1beta/", timeout=5, session=http), http


def text_result(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestErrorClassification:
    @pytest.mark.parametrize(
        "status_code, payload",
        [
            (429, {"error": {"status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}}),
            (403, {"error": {"status": "PERMISSION_DENIED", "message": "API key blocked"}}),
            (400, {"error": {"status": "RESOURCE_EXHAUSTED", "message": "odd but quota"}}),
            (429, None),
        ],
    )
    def test_quota_signals(self, status_code, payload):
        error = _error_from_response(FakeResponse(status_code, payload, text="rate limited"))
        assert error.kind == ErrorKind.QUOTA_EXHAUSTED
        assert error.is_quota_exhausted

    @pytest.mark.parametrize("status_code", [400, 500, 503])
    def test_other_errors_are_transient(self, status_code):
        payload = {"error": {"status": "INTERNAL", "message": "backend error"}}
        error = _error_from_response(FakeResponse(status_code, payload))
        assert error.kind == ErrorKind.TRANSIENT
        assert "backend error" in str(error)

    def test_network_failure_is_transient(self):
        client, _ = client_with(error=requests.ConnectionError("dns"))
        with pytest.raises(GenerationError) as info:
            client.generate_content("m", "k", {})
        assert info.value.kind == ErrorKind.TRANSIENT


class TestImageAdapter:
    def test_decodes_inline_image_and_sends_key_as_param(self):
        png = b"\x89PNG fake"
        result = {
            "candidates": [
                {"content": {"parts": [{"text": "here"}, {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(png).decode()}}]}}
            ]
        }
        client, http = client_with(FakeResponse(200, result))
        (line,) = parse_script("Hello|a red fox")

        data = GeminiImageAdapter(model="img-model", client=client).generate_image("secret", line, "flat style")

        assert data == png
        method, url, kwargs = http.requests[0]
        assert method == "POST"
        assert url == "https://example.test/v1beta/models/img-model:generateContent"
        assert kwargs["params"] == {"key": "secret"}
        prompt = kwargs["json"]["contents"][0]["parts"][0]["text"]
        assert "flat style" in prompt
        assert "a red fox" in prompt

    def test_prompt_falls_back_to_narration(self):
        (line,) = parse_script("Only narration")
        assert "Only narration" in GeminiImageAdapter.build_prompt(line, "style")

    def test_no_image_is_transient_error(self):
        client, _ = client_with(FakeResponse(200, text_result("sorry, no picture")))
        (line,) = parse_script("a|b")
        with pytest.raises(GenerationError) as info:
            GeminiImageAdapter(client=client).generate_image("k", line, "s")
        assert not info.value.is_quota_exhausted

    def test_quota_response_propagates_kind(self):
        payload = {"error": {"status": "RESOURCE_EXHAUSTED", "message": "limit"}}
        client, _ = client_with(FakeResponse(429, payload))
        (line,) = parse_script("a|b")
        with pytest.raises(GenerationError) as info:
            GeminiImageAdapter(client=client).generate_image("k", line, "s")
        assert info.value.is_quota_exhausted


class TestKeyValidator:
    def test_valid_key(self):
        client, http = client_with(FakeResponse(200, {"models": []}))
        assert GeminiKeyValidator(client=client).validate_key("abc")
        assert http.requests[0][2]["params"]["key"] == "abc"

    def test_rejected_key(self):
        client, _ = client_with(FakeResponse(400, {"error": {"status": "INVALID_ARGUMENT"}}))
        assert not GeminiKeyValidator(client=client).validate_key("abc")

    def test_network_error_is_not_valid(self):
        client, _ = client_with(error=requests.Timeout("slow"))
        assert not GeminiKeyValidator(client=client).validate_key("abc")

    def test_blank_key_skips_request(self):
        client, http = client_with(FakeResponse(200, {}))
        assert not GeminiKeyValidator(client=client).validate_key("  ")
        assert http.requests == []


class TestAligner:
    def test_parse_plain_list(self):
        hints = GeminiAlignerAdapter.parse_hints(
            '[{"lineId": "line-0", "startTime": 0, "endTime": 1.5}, {"lineId": "line-1", "startTime": "1.5", "endTime": 3}]'
        )
        assert [(h.line_id, h.start_time, h.end_time) for h in hints] == [("line-0", 0.0, 1.5), ("line-1", 1.5, 3.0)]

    def test_parse_fenced_object_and_skips_bad_items(self):
        text = '```json\n{"alignments": [{"lineId": "line-0", "startTime": "x"}, {"startTime": 1}, 7, {"lineId": "line-2", "endTime": 4}]}\n```'
        hints = GeminiAlignerAdapter.parse_hints(text)
        assert [(h.line_id, h.start_time, h.end_time) for h in hints] == [("line-2", 0.0, 4.0)]

    def test_align_sends_audio_inline(self):
        reply = '[{"lineId": "line-0", "startTime": 0.2, "endTime": 2}]'
        client, http = client_with(FakeResponse(200, text_result(reply)))
        lines = parse_script("Hi there|x")

        hints = GeminiAlignerAdapter(model="align", client=client).align("k", b"RIFF", "audio/wav", lines)

        assert hints[0].line_id == "line-0"
        parts = http.requests[0][2]["json"]["contents"][0]["parts"]
        assert parts[0]["inlineData"] == {"mimeType": "audio/wav", "data": base64.b64encode(b"RIFF").decode()}
        assert "line-0: Hi there" in parts[1]["text"]

    def test_empty_alignment_is_an_error(self):
        client, _ = client_with(FakeResponse(200, text_result("  ")))
        with pytest.raises(GenerationError):
            GeminiAlignerAdapter(client=client).align("k", b"", "audio/mpeg", parse_script("a|b"))
