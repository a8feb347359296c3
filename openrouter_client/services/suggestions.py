"""AI editing suggestions for a video, built on chat completions.

Media metadata (duration, resolution, codec, fps) comes from the caller; it
is produced by the media binary's probe and is not read here. Results are
cached on disk per (metadata, prompt, template) when ``AI_CACHE_DIR`` is set.
"""

import hashlib
import json
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from openrouter_client.client import OpenRouterClient
from openrouter_client.logging.audit import get_audit_logger

DEFAULT_TEMPLATE = "analyze_video"

PROMPT_TEMPLATES = {
    "analyze_video": """You are a professional video editor. Analyze this video and suggest editing improvements.

Video Details:
- Duration: {duration} seconds
- Resolution: {width}x{height}
- Format: {codec}

User Request: {user_prompt}

Provide 3-5 specific, actionable editing suggestions. For each suggestion, specify:
1. The edit type (trim, cut, effects, audio, subtitles)
2. Exact timestamps or ranges
3. Clear reasoning

Format as JSON array with structure:
[
  {{
    "type": "trim|cut|effect|audio|subtitle",
    "action": "Brief description",
    "reason": "Why this improves the video",
    "params": {{"start": 0, "end": 10}}
  }}
]""",
    "suggest_cuts": """Analyze this video and suggest where to make cuts or remove sections.

Duration: {duration}s
User context: {user_prompt}

Return JSON array of cut suggestions with timestamps.""",
    "improve_pacing": """Suggest pacing improvements for this video.

Duration: {duration}s
{user_prompt}

Return JSON with specific trim/speed recommendations.""",
}

_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)
_NUMBERED_LINE = re.compile(r"^(\d+)\.\s*(.+)")


def build_prompt(template: str, metadata: Mapping[str, Any], user_prompt: str) -> str:
    """Fill a template; unknown template names fall back to ``analyze_video``."""
    text = PROMPT_TEMPLATES.get(template, PROMPT_TEMPLATES[DEFAULT_TEMPLATE])
    return text.format(
        duration=metadata.get("duration", 0),
        width=metadata.get("width", 0),
        height=metadata.get("height", 0),
        codec=metadata.get("codec", "unknown"),
        fps=metadata.get("fps", 0),
        user_prompt=user_prompt,
    )


def extract_suggestions_from_text(content: str) -> list[dict[str, Any]]:
    """Turn a numbered list into suggestions; following lines become the reason."""
    suggestions: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    for line in content.splitlines():
        line = line.strip()
        match = _NUMBERED_LINE.match(line)
        if match:
            if current:
                suggestions.append(current)
            current = {"type": "general", "action": match.group(2), "reason": "", "params": {}}
        elif current and line:
            current["reason"] = f"{current['reason']} {line}".strip()

    if current:
        suggestions.append(current)
    return suggestions


def parse_response(response: Mapping[str, Any]) -> dict[str, Any]:
    choices = response.get("choices") or [{}]
    content = (choices[0].get("message") or {}).get("content") or ""

    match = _JSON_ARRAY.search(content)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except ValueError:
            parsed = None
        if parsed:
            return {"success": True, "suggestions": parsed, "raw": content}

    return {"success": True, "suggestions": extract_suggestions_from_text(content), "raw": content}


def cache_key(metadata: Mapping[str, Any], user_prompt: str, template: str) -> str:
    return f"{json.dumps(metadata, sort_keys=True, default=str)}:{user_prompt}:{template}"


class SuggestionCache:
    """JSON file per analysis result, named by the MD5 of its cache key."""

    def __init__(self, cache_dir: str | os.PathLike):
        self.cache_dir = Path(cache_dir)

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{hashlib.md5(key.encode('utf-8')).hexdigest()}.json"

    def get(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        return data if isinstance(data, dict) and data else None

    def put(self, key: str, data: Mapping[str, Any]) -> bool:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._path(key).write_text(json.dumps(data, default=str), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            get_audit_logger().warning(
                "Suggestion cache write failed",
                extra={"audit_data": {"cache_dir": str(self.cache_dir), "error": str(e)}},
            )
            return False
        return True


class EditSuggestionService:
    """Asks the chat model for editing suggestions. Typed client errors propagate."""

    def __init__(
        self,
        client: OpenRouterClient,
        model: str | None = None,
        cache: SuggestionCache | None = None,
    ):
        self._client = client
        self.model = model or client.settings.suggestion_model
        if cache is None and client.settings.ai_cache_dir:
            cache = SuggestionCache(client.settings.ai_cache_dir)
        self.cache = cache

    async def suggest(
        self,
        metadata: Mapping[str, Any],
        user_prompt: str,
        template: str = DEFAULT_TEMPLATE,
    ) -> dict[str, Any]:
        """Like ``analyze_video``, but served from the cache when possible; adds ``cached``."""
        key = cache_key(metadata, user_prompt, template)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return {**cached, "cached": True}

        result = await self.analyze_video(metadata, user_prompt, template)
        if self.cache is not None and result.get("success"):
            self.cache.put(key, result)
        return {**result, "cached": False}

    async def analyze_video(
        self,
        metadata: Mapping[str, Any],
        user_prompt: str,
        template: str = DEFAULT_TEMPLATE,
    ) -> dict[str, Any]:
        prompt = build_prompt(template, metadata, user_prompt)
        response = await self._client.completions().chat(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.7,
            max_tokens=2000,
        )
        return parse_response(response)
