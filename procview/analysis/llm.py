"""LLM factory: creates the chat model for the configured provider."""

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from procview.config import Settings
from procview.errors import MissingCredentialError


def active_api_key(settings: Settings) -> str:
    return settings.anthropic_api_key if settings.llm_provider == "anthropic" else settings.openai_api_key


def create_llm(settings: Settings, temperature: float = 0.2) -> BaseChatModel:
    """Create a chat model instance based on the configured provider.

    Args:
        settings: Application settings (provider, keys, model names).
        temperature: LLM temperature.

    Returns:
        A ChatAnthropic or ChatOpenAI instance.

    Raises:
        MissingCredentialError: If the active provider has no API key. Raised
            before any client is built, so no network attempt is made.
    """
    api_key = active_api_key(settings)
    if not api_key:
        env_var = "ANTHROPIC_API_KEY" if settings.llm_provider == "anthropic" else "OPENAI_API_KEY"
        msg = f"API key not found. Please ensure {env_var} is set."
        raise MissingCredentialError(msg)

    if settings.llm_provider == "anthropic":
        return ChatAnthropic(  # pyright: ignore[reportCallIssue]
            model=settings.anthropic_model,  # pyright: ignore[reportCallIssue]
            temperature=temperature,
            max_tokens=2048,  # pyright: ignore[reportCallIssue]
            api_key=SecretStr(api_key),
        )

    return ChatOpenAI(
        model=settings.openai_model,
        temperature=temperature,
        api_key=SecretStr(api_key),
        base_url=settings.openai_base_url or None,
    )
