"""LLM client wrapper for the OpenAI / Azure OpenAI chat completions API."""
import logging
import openai
from openai import AzureOpenAI, OpenAI
from config import settings
from errors import (
    ResponseParseError,
    UpstreamBadRequest,
    UpstreamRateLimited,
    UpstreamServerError,
    UpstreamUnauthorized,
)

logger = logging.getLogger("Cashflow.LLM")

_client = None


def get_client():
    """Get or create the OpenAI client singleton.

    Azure OpenAI is used when an Azure endpoint is configured. SDK retries are
    disabled: failures surface to the caller instead of being replayed.
    """
    global _client
    if _client is None:
        if settings.AZURE_OPENAI_ENDPOINT:
            _client = AzureOpenAI(
                api_key=settings.AZURE_OPENAI_API_KEY,
                azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
                api_version=settings.AZURE_OPENAI_API_VERSION,
                timeout=settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
            logger.info("Azure OpenAI client initialized (endpoint=%s)", settings.AZURE_OPENAI_ENDPOINT)
        else:
            _client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
            logger.info("OpenAI client initialized (model=%s)", settings.OPENAI_MODEL)
    return _client


def default_model() -> str:
    if settings.AZURE_OPENAI_ENDPOINT:
        return settings.AZURE_OPENAI_DEPLOYMENT
    return settings.OPENAI_MODEL


def chat_completion(
    messages: list[dict],
    deployment: str = None,
    temperature: float = 0.2,
    max_tokens: int = 700,
    response_format: dict = None,
) -> str:
    """Send a chat completion request and return the first choice's text.

    SDK errors are translated into the typed upstream errors of ``errors``.
    """
    client = get_client()
    kwargs = {
        "model": deployment or default_model(),
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if response_format:
        kwargs["response_format"] = response_format

    try:
        response = client.chat.completions.create(**kwargs)
    except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
        raise UpstreamUnauthorized(f"Reasoning service rejected credentials: {e}") from e
    except openai.RateLimitError as e:
        raise UpstreamRateLimited("Reasoning service rate limit reached, please wait a moment and try again") from e
    except (openai.BadRequestError, openai.NotFoundError, openai.UnprocessableEntityError) as e:
        raise UpstreamBadRequest(f"Reasoning service rejected the request: {e}") from e
    except openai.APIConnectionError as e:  # includes APITimeoutError
        raise UpstreamServerError(f"Reasoning service unreachable: {e}") from e
    except openai.APIStatusError as e:
        if e.status_code < 500:
            raise UpstreamBadRequest(f"Reasoning service rejected the request (status {e.status_code})") from e
        raise UpstreamServerError(f"Reasoning service error (status {e.status_code})") from e

    if not response.choices:
        raise ResponseParseError("Reasoning service returned no choices")
    return (response.choices[0].message.content or "").strip()
