"""Content moderation with an injectable AI checker.

``ContentModerator`` is the capability the rest of the app depends on.
``AnthropicModerator`` asks a Claude model for a JSON verdict and fails
open: when the API errors, times out or answers garbage, the text is
allowed and the result is flagged ``degraded`` so callers can log it.
``NullModerator`` is used when no API key is configured.
"""

import hashlib
import json
import logging
import re
from dataclasses import dataclass
from typing import Protocol

import anthropic

from ..config import settings
from ..errors import ContentViolation, UpstreamFailure
from ..integrations.cache import CacheService
from .profanity import contains_profanity

logger = logging.getLogger(__name__)

MODERATION_SYSTEM_PROMPT = """\
You are a content safety reviewer for a neighbourhood marketplace.
Flag text containing explicit sexual content, hate speech or discrimination,
violence or threats, illegal activities, spam or scams.
Respond ONLY with a JSON object, no markdown:
{"safe": true|false, "reason": "brief explanation if unsafe, null if safe"}"""


@dataclass(frozen=True)
class ModerationResult:
    safe: bool
    reason: str | None = None
    degraded: bool = False


class ContentModerator(Protocol):
    """Moderation capability interface."""

    def check(self, text: str) -> ModerationResult: ...


class NullModerator:
    """Allows everything; used when AI moderation is not configured."""

    def check(self, text: str) -> ModerationResult:
        return ModerationResult(safe=True)


def _strip_markdown_wrapper(text: str) -> str:
    """Remove markdown code block wrappers (```json ... ``` or ``` ... ```)."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else text[3:]
        if "```" in text:
            text = text.rsplit("```", 1)[0]
        text = text.strip()
    return text


def extract_verdict(raw_text: str) -> dict:
    """Parse the JSON verdict, tolerating markdown fences and surrounding prose."""
    text = _strip_markdown_wrapper(raw_text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}", text)
        if not match:
            raise json.JSONDecodeError("No JSON object in moderation verdict", text[:200], 0)
        data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise json.JSONDecodeError("Moderation verdict is not an object", text[:200], 0)
    return data


def text_hash(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


class AnthropicModerator:
    """Claude-backed moderator with verdict caching and fail-open policy."""

    def __init__(
        self,
        client: anthropic.Anthropic,
        model: str,
        cache: CacheService | None = None,
        cache_ttl: int = 86400,
    ) -> None:
        self._client = client
        self._model = model
        self._cache = cache
        self._cache_ttl = cache_ttl

    def check(self, text: str) -> ModerationResult:
        if not text or not text.strip():
            return ModerationResult(safe=True)

        cache_key = f"moderation:{text_hash(text)[:16]}"
        if self._cache:
            cached = self._cache.get_json(cache_key)
            if cached:
                return ModerationResult(safe=bool(cached.get("safe", True)), reason=cached.get("reason"))

        try:
            result = self._ask(text)
        except UpstreamFailure as exc:
            logger.warning("Moderation unavailable, allowing content: %s", exc.msg)
            return ModerationResult(safe=True, degraded=True)

        if self._cache:
            self._cache.set_json(cache_key, {"safe": result.safe, "reason": result.reason}, self._cache_ttl)
        return result

    def _ask(self, text: str) -> ModerationResult:
        try:
            message = self._client.messages.create(
                model=self._model,
                max_tokens=200,
                system=MODERATION_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": f'Text to analyze: "{text}"'}],
            )
            raw_text = message.content[0].text
        except anthropic.APIError as exc:
            raise UpstreamFailure(f"moderation API error: {exc}") from exc
        except (IndexError, AttributeError) as exc:
            raise UpstreamFailure("moderation API returned no text") from exc

        try:
            verdict = extract_verdict(raw_text)
        except json.JSONDecodeError as exc:
            raise UpstreamFailure(f"unparseable moderation verdict: {raw_text[:100]!r}") from exc

        safe = verdict.get("safe", True)
        if not isinstance(safe, bool):
            safe = str(safe).strip().lower() != "false"
        reason = verdict.get("reason") or None
        return ModerationResult(safe=safe, reason=str(reason) if reason else None)


def create_moderator(cache: CacheService | None = None) -> ContentModerator:
    """Factory: AI moderation when an API key is configured, otherwise allow-all."""
    if not settings.anthropic_api_key:
        logger.info("ANTHROPIC_API_KEY not set, AI moderation disabled")
        return NullModerator()
    client = anthropic.Anthropic(
        api_key=settings.anthropic_api_key,
        timeout=settings.moderation_timeout_seconds,
        max_retries=0,
    )
    return AnthropicModerator(client, settings.moderation_model, cache, settings.moderation_cache_ttl)


def moderate_fields(moderator: ContentModerator, fields: dict[str, str | None]) -> None:
    """Raise ContentViolation for the first field that fails moderation.

    ``fields`` maps a user-facing label (e.g. "Post title") to its text.
    The profanity filter runs over every field before any AI call.
    """
    present = {label: text for label, text in fields.items() if text}

    for label, text in present.items():
        if contains_profanity(text):
            logger.info("Profanity rejected in %s", label)
            raise ContentViolation(f"{label} contains inappropriate language. Please be respectful.")

    for label, text in present.items():
        result = moderator.check(text)
        if result.degraded:
            logger.warning("%s accepted without AI moderation", label)
        if not result.safe:
            logger.info("AI moderation rejected %s: %s", label, result.reason)
            raise ContentViolation(f"{label} contains inappropriate content: {result.reason or 'policy violation'}")
