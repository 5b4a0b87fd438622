"""Recover a JSON object from a generation API response.

The model is asked for a forced function call, but some responses still
arrive as free text: wrapped in Markdown fences, prefixed with commentary,
or with JSON5-isms like trailing commas and single quotes. The normalizer
tries an ordered list of named parsing strategies and returns the first
JSON object any of them produces:

1. ``function_call``   - structured call arguments, no text parsing
2. ``strict_json``     - ``json.loads`` of the cleaned text
3. ``sliced_json``     - ``json.loads`` of the first ``{`` .. last ``}`` slice
4. ``sliced_json5``    - lenient parse of that slice
5. ``full_json5``      - lenient parse of the whole cleaned text

Truncated output (e.g. an unterminated array) is not repaired.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import json5

from app.core.exceptions import ExtractionFormatError
from app.services.extraction.models import RawModelOutput
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

PREVIEW_LIMIT = 600

# Straight-quoted string literals are matched first and emitted unchanged,
# so the fixes below only apply between tokens. JSON strings never contain
# a raw newline, which keeps a stray quote in commentary from running on.
_CLEANUP_RE = re.compile(
    r'(?P<string>"(?:\\.|[^"\\\n])*")'
    r"|(?P<fence>```(?:json\s*)?)"
    r"|(?P<trailing_comma>,\s*(?=[}\]]))"
    r"|(?P<invisible>[\ufeff\u200b])"
    r"|(?P<curly_quote>[\u201c\u201d\u2018\u2019])",
    re.IGNORECASE,
)
_STRAIGHT_QUOTES = {"\u201c": '"', "\u201d": '"', "\u2018": "'", "\u2019": "'"}


@dataclass
class ParseAttempt:
    """Tagged outcome of a single parsing strategy."""
    strategy: str
    ok: bool
    value: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, strategy: str, value: Dict[str, Any]) -> "ParseAttempt":
        return cls(strategy=strategy, ok=True, value=value)

    @classmethod
    def failure(cls, strategy: str, reason: str) -> "ParseAttempt":
        return cls(strategy=strategy, ok=False, reason=reason)


@dataclass
class NormalizationResult:
    """Winning object plus every attempt made to get it."""
    value: Dict[str, Any]
    strategy: str
    attempts: List[ParseAttempt] = field(default_factory=list)


def clean_json_text(text: str) -> str:
    """Textual cleanup applied before any text strategy runs.

    Outside string literals: strips BOM and zero-width spaces, removes
    Markdown code fences, straightens curly quotes and drops trailing
    commas before ``}``/``]``. String contents are left as the model sent
    them.
    """
    return _CLEANUP_RE.sub(_clean_token, text or "").strip()


def _clean_token(match: "re.Match[str]") -> str:
    kind = match.lastgroup
    if kind == "string":
        return match.group(0)
    if kind == "curly_quote":
        return _STRAIGHT_QUOTES[match.group(0)]
    return ""


def outermost_object_slice(text: str) -> Optional[str]:
    """Substring from the first ``{`` to the last ``}``, if there is one."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]


def _as_object(strategy: str, parsed: Any) -> ParseAttempt:
    if isinstance(parsed, dict):
        return ParseAttempt.success(strategy, parsed)
    return ParseAttempt.failure(strategy, f"parsed to {type(parsed).__name__}, not an object")


def parse_function_call(raw: RawModelOutput) -> ParseAttempt:
    """Accept structured function-call arguments as-is."""
    strategy = "function_call"
    if not raw.has_function_call:
        return ParseAttempt.failure(strategy, "no function call in response")

    args = raw.function_args
    if isinstance(args, str):
        try:
            args = json.loads(args)
        except json.JSONDecodeError as e:
            return ParseAttempt.failure(strategy, f"function call arguments are not JSON: {e}")
    return _as_object(strategy, args)


def parse_strict(text: str) -> ParseAttempt:
    """Strict JSON parse of the cleaned text."""
    strategy = "strict_json"
    try:
        return _as_object(strategy, json.loads(text))
    except json.JSONDecodeError as e:
        return ParseAttempt.failure(strategy, str(e))


def parse_sliced_strict(text: str) -> ParseAttempt:
    """Strict JSON parse of the outermost ``{...}`` span."""
    strategy = "sliced_json"
    sliced = outermost_object_slice(text)
    if sliced is None:
        return ParseAttempt.failure(strategy, "no {...} span found")
    try:
        return _as_object(strategy, json.loads(sliced))
    except json.JSONDecodeError as e:
        return ParseAttempt.failure(strategy, str(e))


def parse_sliced_lenient(text: str) -> ParseAttempt:
    """JSON5 parse of the outermost ``{...}`` span."""
    strategy = "sliced_json5"
    sliced = outermost_object_slice(text)
    if sliced is None:
        return ParseAttempt.failure(strategy, "no {...} span found")
    try:
        return _as_object(strategy, json5.loads(sliced))
    except ValueError as e:
        return ParseAttempt.failure(strategy, str(e))


def parse_full_lenient(text: str) -> ParseAttempt:
    """JSON5 parse of the whole cleaned text."""
    strategy = "full_json5"
    try:
        return _as_object(strategy, json5.loads(text))
    except ValueError as e:
        return ParseAttempt.failure(strategy, str(e))


TextStrategy = Callable[[str], ParseAttempt]

TEXT_STRATEGIES: Tuple[TextStrategy, ...] = (
    parse_strict,
    parse_sliced_strict,
    parse_sliced_lenient,
    parse_full_lenient,
)


class ResponseNormalizer:
    """Turns a raw model response into a ``dict``.

    Args:
        text_strategies: Text strategies in the order they are tried
    """

    def __init__(self, text_strategies: Sequence[TextStrategy] = TEXT_STRATEGIES):
        self.text_strategies = tuple(text_strategies)

    def run(self, raw: RawModelOutput) -> NormalizationResult:
        """Apply the strategy chain and report how the object was recovered.

        Raises:
            ExtractionFormatError: If every strategy fails
        """
        attempts: List[ParseAttempt] = []

        attempt = parse_function_call(raw)
        attempts.append(attempt)
        if attempt.ok:
            return NormalizationResult(value=attempt.value, strategy=attempt.strategy, attempts=attempts)
        if raw.has_function_call:
            LOGGER.warning(f"Function call arguments unusable, falling back to text: {attempt.reason}")

        raw_text = raw.text
        if not raw_text:
            raise ExtractionFormatError(
                "Failed to parse Gemini response as JSON: response missing text content",
                preview="",
                attempts=attempts,
            )

        cleaned = clean_json_text(raw_text)
        for strategy in self.text_strategies:
            attempt = strategy(cleaned)
            attempts.append(attempt)
            if attempt.ok:
                if len(attempts) > 2:
                    LOGGER.info(f"Recovered JSON via {attempt.strategy} after {len(attempts) - 1} attempts")
                return NormalizationResult(value=attempt.value, strategy=attempt.strategy, attempts=attempts)
            LOGGER.debug(f"{attempt.strategy} failed: {attempt.reason}")

        preview = cleaned[:PREVIEW_LIMIT]
        LOGGER.error(f"[parse-pdf] Response preview: {preview}")
        raise ExtractionFormatError(
            f"Failed to parse Gemini response as JSON: {attempts[-1].reason}",
            preview=preview,
            attempts=attempts,
        )

    def normalize(self, raw: RawModelOutput) -> Dict[str, Any]:
        """Recover the JSON object from a raw model response.

        Raises:
            ExtractionFormatError: If no JSON object can be recovered
        """
        return self.run(raw).value
