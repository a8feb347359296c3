"""Chat, text and beta-responses completions."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from openrouter_client.features.base import API_PREFIX, Feature, Options, merge_options
from openrouter_client.security.validation import (
    check_enum,
    check_messages,
    check_model,
    check_positive_integer,
    check_prompt,
    check_range,
    check_tools,
)

REASONING_EFFORTS = ("low", "medium", "high")


@dataclass(frozen=True)
class ChatOptions(Options):
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stream: bool | None = None
    stop: list[str] | None = None
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None
    response_format: dict[str, Any] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None
    top_k: int | None = None
    top_a: float | None = None
    min_p: float | None = None
    logit_bias: dict[str, float] | None = None
    logprobs: bool | None = None
    top_logprobs: int | None = None
    repetition_penalty: float | None = None
    transforms: list[str] | None = None
    models: list[str] | None = None            # fallback models
    route: str | None = None
    provider: dict[str, Any] | None = None     # provider routing preferences


@dataclass(frozen=True)
class TextOptions(Options):
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stream: bool | None = None
    stop: list[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    best_of: int | None = None
    n: int | None = None
    suffix: str | None = None
    echo: bool | None = None


@dataclass(frozen=True)
class ResponsesOptions(Options):
    model: str | None = None
    reasoning_effort: str | None = None
    tools: list[dict[str, Any]] | None = None
    web_search: bool | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    stream: bool | None = None
    stop: list[str] | None = None
    tool_choice: str | dict[str, Any] | None = None
    response_format: dict[str, Any] | None = None


def _check_sampling(options: ChatOptions | TextOptions | ResponsesOptions) -> None:
    if options.temperature is not None:
        check_range(options.temperature, 0, 2, "temperature")
    if options.max_tokens is not None:
        check_positive_integer(options.max_tokens, "max_tokens")
    if options.top_p is not None:
        check_range(options.top_p, 0, 1, "top_p")


class Completions(Feature):

    async def chat(
        self,
        model: str,
        messages: Sequence[dict[str, Any]],
        options: ChatOptions | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        """Create a chat completion.

        Optional parameters come from ``options`` and/or keyword arguments
        (keywords win), e.g. ``chat(model, messages, temperature=0.2)``.
        """
        options = merge_options(ChatOptions, options, params)

        self._check_auth()
        check_model(model)
        check_messages(messages)
        _check_sampling(options)
        if options.tools is not None:
            check_tools(options.tools)

        body = {"model": model, "messages": list(messages), **options.to_payload()}
        return await self._transport.post(f"{API_PREFIX}/chat/completions", body, self._credential)

    async def text(
        self,
        model: str,
        prompt: str | Sequence[str],
        options: TextOptions | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        """Create a legacy text completion from one prompt or a list of prompts."""
        options = merge_options(TextOptions, options, params)

        self._check_auth()
        check_model(model)
        check_prompt(prompt)
        _check_sampling(options)

        wire_prompt = prompt if isinstance(prompt, str) else list(prompt)
        body = {"model": model, "prompt": wire_prompt, **options.to_payload()}
        return await self._transport.post(f"{API_PREFIX}/completions", body, self._credential)

    async def beta_responses(
        self,
        messages: Sequence[dict[str, Any]],
        options: ResponsesOptions | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        """Create a beta response (reasoning, tools, web search)."""
        options = merge_options(ResponsesOptions, options, params)

        self._check_auth()
        check_messages(messages)
        if options.reasoning_effort is not None:
            check_enum(options.reasoning_effort, REASONING_EFFORTS, "reasoning_effort")
        if options.tools is not None:
            check_tools(options.tools)
        if options.model is not None:
            check_model(options.model)
        _check_sampling(options)

        body = {"messages": list(messages), **options.to_payload()}
        return await self._transport.post(f"{API_PREFIX}/beta/responses", body, self._credential)
