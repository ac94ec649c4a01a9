# --- Prompt composition ---
import logging
from typing import List, Optional, Sequence

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from config import settings
from functions.context import build_document_context
from functions.llm import ChatClient
from functions.readers import FileReference

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\nContexto adicional dos documentos:\n"
FALLBACK_RESPONSE = "Desculpe, não consegui gerar uma resposta."
PROCESSING_ERROR_MESSAGE = "Erro ao processar sua mensagem. Tente novamente."


class ChatProcessingError(Exception):
    """The LLM provider call failed; carries a message safe to show users."""

    def __init__(self, message: str = PROCESSING_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


def to_provider_temperature(temperature: int) -> float:
    """Map the stored 0-100 temperature to the provider's 0.0-1.0 range."""
    return temperature / 100


def compose_system_message(system_instructions: str, context: str = "") -> str:
    if not context:
        return system_instructions
    return system_instructions + CONTEXT_SEPARATOR + context


def build_messages(system_message: str, user_message: str) -> List[BaseMessage]:
    # No conversation history, only the current turn.
    return [SystemMessage(content=system_message), HumanMessage(content=user_message)]


async def get_llm_response(
    client: ChatClient,
    message: str,
    system_instructions: str,
    model: Optional[str] = None,
    temperature: int = 70,
    context: str = "",
) -> str:
    """Send one system+user exchange to the provider and return the answer text."""
    messages = build_messages(compose_system_message(system_instructions, context), message)
    try:
        content = await client.complete(
            messages,
            model=model or settings.default_model,
            temperature=to_provider_temperature(temperature),
            max_tokens=settings.max_response_tokens,
        )
    except Exception as e:
        logger.error("Error generating GPT response: %s", e)
        raise ChatProcessingError() from e
    return content or FALLBACK_RESPONSE


async def generate_gpt_response(
    client: ChatClient,
    message: str,
    system_instructions: str,
    model: Optional[str] = None,
    temperature: int = 70,
    files: Optional[Sequence[FileReference]] = None,
) -> str:
    context = await build_document_context(list(files or []))
    return await get_llm_response(client, message, system_instructions, model, temperature, context)
