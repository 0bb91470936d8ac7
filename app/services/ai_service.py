import logging
from typing import Optional

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from app.config import get_settings
from app.exceptions import AIServiceError

logger = logging.getLogger(__name__)

openai_client: Optional[AsyncOpenAI] = None
anthropic_client: Optional[AsyncAnthropic] = None


def _get_openai_client() -> Optional[AsyncOpenAI]:
    global openai_client
    settings = get_settings()
    if not settings.openai_api_key:
        return None
    if openai_client is None:
        openai_client = AsyncOpenAI(api_key=settings.openai_api_key)
    return openai_client


def _get_anthropic_client() -> Optional[AsyncAnthropic]:
    global anthropic_client
    settings = get_settings()
    if not settings.anthropic_api_key:
        return None
    if anthropic_client is None:
        anthropic_client = AsyncAnthropic(api_key=settings.anthropic_api_key)
    return anthropic_client


async def _call_openai(client: AsyncOpenAI, system: str, user: str) -> str:
    settings = get_settings()
    try:
        response = await client.chat.completions.create(
            model=settings.openai_model,
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
    except openai.APIConnectionError:
        raise
    except openai.APIError as e:
        logger.error("OpenAI API error: %s", e)
        raise AIServiceError(f"OpenAI API error: {e}", cause=e) from e

    if not response.choices or not response.choices[0].message.content:
        raise AIServiceError("OpenAI returned empty response")
    return response.choices[0].message.content


async def _call_anthropic(client: AsyncAnthropic, system: str, user: str) -> str:
    settings = get_settings()
    try:
        message = await client.messages.create(
            model=settings.anthropic_model,
            max_tokens=settings.ai_max_tokens,
            temperature=settings.ai_temperature,
            system=system,
            messages=[{"role": "user", "content": user}],
        )
    except anthropic.APIConnectionError:
        raise
    except anthropic.APIError as e:
        logger.error("Claude API error: %s", e)
        raise AIServiceError(f"Claude API error: {e}", cause=e) from e

    if not message.content or len(message.content) == 0:
        raise AIServiceError("Claude returned empty response")
    if not hasattr(message.content[0], "text"):
        raise AIServiceError("Claude response missing text field")
    return message.content[0].text


async def complete_story(system: str, user: str) -> Optional[str]:
    """Run one completion against the configured provider.

    Returns None when the provider is not configured or cannot be reached, so
    the caller can fall back to a placeholder. Provider-side failures raise
    AIServiceError and are not retried.
    """
    provider = get_settings().ai_provider.lower()
    try:
        if provider == "anthropic":
            client = _get_anthropic_client()
            if client is None:
                logger.warning("ANTHROPIC_API_KEY not set, using placeholder story")
                return None
            text = await _call_anthropic(client, system, user)
        else:
            client = _get_openai_client()
            if client is None:
                logger.warning("OPENAI_API_KEY not set, using placeholder story")
                return None
            text = await _call_openai(client, system, user)
    except (openai.APIConnectionError, anthropic.APIConnectionError) as e:
        logger.warning("%s unreachable, using placeholder story: %s", provider, e)
        return None

    return text.strip()
