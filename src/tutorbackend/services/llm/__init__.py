from .base import BaseLLM


def create_llm(settings) -> BaseLLM:
    """Build the completion backend named by `settings.llm_provider`"""
    if settings.llm_provider == "openai":
        from .openai import OpenAILLM

        return OpenAILLM(
            model=settings.llm_model,
            api_key=settings.openai_api_key or None,
            max_tokens=settings.max_tokens,
        )

    from .anthropic import AnthropicLLM

    return AnthropicLLM(
        model=settings.llm_model,
        api_key=settings.anthropic_api_key or None,
        max_tokens=settings.max_tokens,
    )


__all__ = ["BaseLLM", "create_llm"]
