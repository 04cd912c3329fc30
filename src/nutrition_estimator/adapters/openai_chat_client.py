"""OpenAI-compatible chat completions client for the model fallback."""

import json
import re
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from nutrition_estimator.services.fallback import ChatClient, FallbackEstimateError

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```\s*$")


@dataclass
class OpenAIChatClient(ChatClient):
    """Chat client backed by the OpenAI chat completions API.

    Works with any OpenAI-compatible endpoint (Groq, OpenAI) via ``base_url``.
    """

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, base_url: str | None = None) -> "OpenAIChatClient":
        """Create a chat client."""
        return cls(client=AsyncOpenAI(api_key=api_key, base_url=base_url))

    async def complete_json(
        self,
        *,
        model: str,
        system_prompt: str,
        user_input: str,
        temperature: float,
    ) -> dict[str, object]:
        """Call the chat completions API and parse the reply as JSON."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_input},
                ],
                temperature=temperature,
            )
        except OpenAIError as exc:
            raise FallbackEstimateError(f"Chat completion failed: {exc}") from exc

        content = None
        if response.choices:
            content = response.choices[0].message.content
        if not content or not content.strip():
            raise FallbackEstimateError("Model returned an empty response")
        return parse_json_reply(content)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def parse_json_reply(content: str) -> dict[str, object]:
    """Strip an optional markdown code fence and parse a JSON object."""
    raw = _FENCE_END.sub("", _FENCE_START.sub("", content.strip()))
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise FallbackEstimateError("Model returned invalid JSON") from exc
    if not isinstance(parsed, dict):
        raise FallbackEstimateError("Model returned JSON that is not an object")
    return parsed
