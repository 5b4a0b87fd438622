import base64
from typing import Any, Dict, List, Optional

import httpx

from app.core.exceptions import UpstreamServiceError
from app.prompts.question_extraction import (
    QUESTION_EXTRACTION_PROMPT,
    RETURN_QUESTIONS_DECLARATION,
    RETURN_QUESTIONS_FUNCTION,
)
from app.services.extraction.models import DEFAULT_MIME_TYPE, RawModelOutput
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ExtractionRequester:
    """Sends a document to the Gemini ``generateContent`` endpoint.

    The request carries the document inline, the instruction text, and a
    ``return_questions`` function declaration with function calling set to
    ``ANY`` so the model has to answer with a structured call. Exactly one
    HTTP call is made per request; retrying is left to the caller.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash-exp",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: int = 120,
        temperature: float = 0.1,
    ):
        """Initialize the requester.

        Args:
            api_key: Gemini API key
            model: Model name
            base_url: API base URL (without the ``/models/...`` suffix)
            timeout: Request timeout in seconds
            temperature: Sampling temperature
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.temperature = temperature

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(self, document_bytes: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> Dict[str, Any]:
        """Build the ``generateContent`` request body."""
        encoded = base64.b64encode(document_bytes).decode("ascii")
        return {
            "contents": [
                {
                    "parts": [
                        {"text": QUESTION_EXTRACTION_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": encoded,
                            }
                        },
                    ]
                }
            ],
            "tools": [{"function_declarations": [RETURN_QUESTIONS_DECLARATION]}],
            "tool_config": {"function_calling_config": {"mode": "ANY"}},
            "generationConfig": {"temperature": self.temperature},
        }

    async def request_extraction(
        self,
        document_bytes: bytes,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> RawModelOutput:
        """Ask the model to extract questions from a document.

        Args:
            document_bytes: Raw document content
            mime_type: MIME type of the document

        Returns:
            RawModelOutput: Unwrapped response

        Raises:
            UpstreamServiceError: On transport failure or a non-2xx status
        """
        payload = self.build_payload(document_bytes, mime_type)
        LOGGER.info(
            f"[parse-pdf] PDF size: {len(document_bytes)} bytes, calling Gemini API",
            extra={"model": self.model, "mime_type": mime_type}
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.TimeoutException as e:
            LOGGER.error(f"[parse-pdf] Gemini API timeout after {self.timeout}s")
            raise UpstreamServiceError(f"Gemini API timeout: {str(e)}", original_error=e)
        except httpx.HTTPError as e:
            LOGGER.error(f"[parse-pdf] Gemini API transport error: {e}", exc_info=True)
            raise UpstreamServiceError(f"Gemini API error: {str(e)}", original_error=e)

        if not 200 <= response.status_code < 300:
            error_body = response.text
            LOGGER.error(
                f"[parse-pdf] Gemini API error: {response.status_code}",
                extra={"error_body": error_body[:500]}
            )
            raise UpstreamServiceError(
                f"Gemini API error: {response.status_code} - {error_body[:500]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamServiceError(
                "Gemini API returned a non-JSON body",
                status_code=response.status_code,
                original_error=e,
            )

        LOGGER.info("[parse-pdf] Gemini response received")
        return self.unwrap(data)

    @staticmethod
    def unwrap(data: Any) -> RawModelOutput:
        """Pull the function call and text parts out of a response envelope.

        The first ``return_questions`` call across all candidates wins; text
        parts come from the first candidate only.
        """
        if not isinstance(data, dict):
            return RawModelOutput(payload={})

        candidates = data.get("candidates") or []
        function_args: Optional[Any] = None
        for candidate in candidates:
            for part in _parts_of(candidate):
                call = part.get("functionCall")
                if isinstance(call, dict) and call.get("name") == RETURN_QUESTIONS_FUNCTION:
                    function_args = call.get("args")
                    break
            if function_args is not None:
                break

        text_parts: List[str] = []
        if candidates:
            text_parts = [
                part["text"] for part in _parts_of(candidates[0])
                if isinstance(part.get("text"), str) and part["text"]
            ]

        return RawModelOutput(function_args=function_args, text_parts=text_parts, payload=data)


def _parts_of(candidate: Any) -> List[Dict[str, Any]]:
    if not isinstance(candidate, dict):
        return []
    content = candidate.get("content") or {}
    if not isinstance(content, dict):
        return []
    return [part for part in content.get("parts") or [] if isinstance(part, dict)]
