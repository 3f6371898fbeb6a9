"""
Language model client built on LangChain chat models.

Ollama endpoints use ChatOllama; OpenAI-compatible endpoints (vLLM, OpenAI)
use ChatOpenAI.
"""
from typing import Dict, List, Optional
from urllib.parse import urlparse

import httpx
import structlog
from langchain_community.chat_models import ChatOllama
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from codesuggest.config import Settings
from codesuggest.exceptions import LlmError

logger = structlog.get_logger(__name__)

HEALTH_CHECK_TIMEOUT_SECONDS = 10.0

PROVIDER_OLLAMA = "ollama"
PROVIDER_OPENAI = "openai"

# Sent when no key is configured; the OpenAI client rejects an empty key
PLACEHOLDER_API_KEY = "EMPTY"

_MESSAGE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


def resolve_provider(provider: str, base_url: str) -> str:
    """
    Decide which API flavour an endpoint speaks.

    "ollama" and "openai" are taken as given; anything else ("auto") picks
    OpenAI-compatible for base URLs with a /v1 path and Ollama otherwise.
    """
    provider = (provider or "").strip().lower()
    if provider in (PROVIDER_OLLAMA, PROVIDER_OPENAI):
        return provider
    if "/v1" in urlparse(base_url).path:
        return PROVIDER_OPENAI
    return PROVIDER_OLLAMA


def health_url(provider: str, base_url: str) -> str:
    """Model listing URL: /api/tags for Ollama, /v1/models for OpenAI-compatible."""
    base = base_url.rstrip("/")
    if provider == PROVIDER_OPENAI:
        if base.endswith("/v1"):
            return f"{base}/models"
        return f"{base}/v1/models"
    return f"{base}/api/tags"


def to_langchain_messages(messages: List[Dict[str, str]]) -> List[BaseMessage]:
    """Convert role/content dictionaries into LangChain message objects."""
    converted = []
    for message in messages:
        message_type = _MESSAGE_TYPES.get(message.get("role", "user"), HumanMessage)
        converted.append(message_type(content=message.get("content", "")))
    return converted


class LlmClient:
    """Client for the chat endpoint that produces code suggestions."""

    def __init__(self, settings: Settings, chat_model: Optional[BaseChatModel] = None):
        """
        Initialize the client.

        Args:
            settings: Endpoint, provider, model and generation defaults.
            chat_model: Pre-built chat model; when omitted a ChatOllama or
                ChatOpenAI is created per call from the settings.
        """
        self.settings = settings
        self.provider = resolve_provider(settings.llm_provider, settings.llm_base_url)
        self._chat_model = chat_model

    def _build_chat_model(self, model: str, temperature: float, max_tokens: int) -> BaseChatModel:
        if self._chat_model is not None:
            return self._chat_model

        if self.provider == PROVIDER_OPENAI:
            return ChatOpenAI(
                base_url=self.settings.llm_base_url,
                api_key=self.settings.llm_api_key or PLACEHOLDER_API_KEY,
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,
            )

        headers = None
        if self.settings.llm_api_key:
            headers = {"Authorization": f"Bearer {self.settings.llm_api_key}"}

        return ChatOllama(
            base_url=self.settings.llm_base_url,
            model=model,
            temperature=temperature,
            num_predict=max_tokens,
            timeout=int(self.settings.llm_timeout_seconds),
            headers=headers,
        )

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Send chat messages and return the text of the reply.

        Unset arguments fall back to the configured model, temperature and
        max tokens.

        Raises:
            LlmError: On any transport or endpoint failure.
        """
        chat_model = self._build_chat_model(
            model or self.settings.llm_model,
            self.settings.llm_temperature if temperature is None else temperature,
            max_tokens or self.settings.llm_max_tokens,
        )

        try:
            reply = chat_model.invoke(to_langchain_messages(messages))
        except Exception as e:
            logger.error("LLM call failed", endpoint=self.settings.llm_base_url, error=str(e))
            status_code = getattr(getattr(e, "response", None), "status_code", 0) or 0
            raise LlmError(f"LLM call failed: {e}", status_code=status_code) from e

        content = reply.content if isinstance(reply, BaseMessage) else reply
        if isinstance(content, list):
            # Multi-part content: keep the text parts
            content = "".join(
                part if isinstance(part, str) else part.get("text", "")
                for part in content
            )
        return content or ""

    def health_check(self) -> bool:
        """Probe the endpoint's model listing without issuing a chat call."""
        url = health_url(self.provider, self.settings.llm_base_url)
        headers = {}
        if self.settings.llm_api_key:
            headers["Authorization"] = f"Bearer {self.settings.llm_api_key}"

        try:
            response = httpx.get(url, headers=headers, timeout=HEALTH_CHECK_TIMEOUT_SECONDS)
        except httpx.HTTPError as e:
            logger.warning("LLM health check failed", url=url, error=str(e))
            return False
        return response.is_success
