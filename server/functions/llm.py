"""LangChain chat model construction and the client handed to the routes."""
import logging
from typing import List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI

from config import Settings

logger = logging.getLogger(__name__)

FALLBACK_MODELS = ["gpt-4o", "gpt-4", "gpt-4-turbo", "gpt-3.5-turbo"]
_EXCLUDED_MODEL_MARKERS = ("instruct", "babbage", "ada", "davinci")


class ChatClient:
    """Wraps a chat model and applies per-request model/temperature/length settings."""

    def __init__(self, llm: Optional[BaseChatModel], provider: str = "openai", default_model: Optional[str] = None):
        self.llm = llm
        self.provider = provider
        self.default_model = default_model

    def _bind(self, model: str, temperature: float, max_tokens: int):
        if self.provider == "ollama":
            return self.llm.bind(model=model, options={"temperature": temperature, "num_predict": max_tokens})
        return self.llm.bind(model=model, temperature=temperature, max_tokens=max_tokens)

    async def complete(
        self,
        messages: Sequence[BaseMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Optional[str]:
        if self.llm is None:
            raise RuntimeError(f"LLM provider '{self.provider}' is not configured")
        response = await self._bind(model, temperature, max_tokens).ainvoke(list(messages))
        return getattr(response, "content", None)

    async def list_models(self) -> List[str]:
        """Chat-capable model ids, newest first."""
        if self.provider != "openai":
            return [self.default_model] if self.default_model else []
        if self.llm is None:
            return list(FALLBACK_MODELS)
        try:
            models = []
            async for model in self.llm.root_async_client.models.list():
                if "gpt" in model.id and not any(m in model.id for m in _EXCLUDED_MODEL_MARKERS):
                    models.append(model.id)
            return sorted(models, reverse=True)
        except Exception as e:
            logger.error("Failed to list provider models: %s", e)
            return list(FALLBACK_MODELS)


def build_chat_client(settings: Settings) -> ChatClient:
    """Build the configured chat model; a misconfigured provider fails on first use, not at startup."""
    try:
        if settings.llm_provider == "ollama":
            llm = ChatOllama(model=settings.default_model, base_url=settings.ollama_base_url)
        else:
            llm = ChatOpenAI(model=settings.default_model, api_key=settings.openai_api_key or None)
    except Exception as e:
        logger.warning("Could not create the %s chat model, chat requests will fail: %s", settings.llm_provider, e)
        llm = None
    else:
        logger.info("Chat client ready (provider=%s, model=%s)", settings.llm_provider, settings.default_model)
    return ChatClient(llm, provider=settings.llm_provider, default_model=settings.default_model)
