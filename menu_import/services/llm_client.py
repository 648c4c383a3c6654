# menu_import/services/llm_client.py
"""LLM client wrapper for OpenRouter/OpenAI."""

import asyncio
import logging
from contextvars import ContextVar
from typing import Any, Dict, List, Optional, Type, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

# Context variable for store name (works across async operations)
_store_name: ContextVar[Optional[str]] = ContextVar("store_name", default=None)

ModelT = TypeVar("ModelT", bound=BaseModel)


# Keywords strict structured output rejects
UNSUPPORTED_SCHEMA_KEYWORDS = frozenset(
    {
        "default",
        "title",
        "minimum",
        "maximum",
        "exclusiveMinimum",
        "exclusiveMaximum",
        "minLength",
        "maxLength",
        "pattern",
        "format",
    }
)


def _make_strict(node: Any) -> Any:
    if isinstance(node, list):
        return [_make_strict(n) for n in node]
    if not isinstance(node, dict):
        return node

    strict: Dict[str, Any] = {}
    for key, value in node.items():
        if key in ("properties", "$defs"):
            # Keys here are field and model names, not keywords
            strict[key] = {name: _make_strict(sub) for name, sub in value.items()}
        elif key not in UNSUPPORTED_SCHEMA_KEYWORDS:
            strict[key] = _make_strict(value)

    if strict.get("type") == "object" and "properties" in strict:
        strict["required"] = list(strict["properties"])
        strict["additionalProperties"] = False
    return strict


def strict_json_schema(model_cls: Type[BaseModel]) -> Dict[str, Any]:
    """
    JSON schema of ``model_cls`` in the form strict structured output accepts.

    Every object lists all of its properties as required and forbids extra
    ones; defaults and value constraints are dropped.
    """
    return _make_strict(model_cls.model_json_schema(by_alias=True))


class LLMClientError(RuntimeError):
    """LLM client error."""

    pass


class LLMClient:
    """Wrapper around OpenRouter chat completions.

    Every call runs under an explicit policy: ``timeout`` seconds per attempt,
    and up to ``max_retries`` further attempts with a linear backoff of
    ``retry_delay`` seconds. The SDK's own retries are disabled.
    """

    def __init__(
        self,
        api_key: str,
        provider: str = "OpenRouter",
        model: Optional[str] = None,
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: float = 120.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
    ):
        self.api_key = api_key
        self.model = model
        self.provider = provider
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        if not self.model:
            raise LLMClientError("Model must be specified")

    def _get_client(self) -> AsyncOpenAI:
        """Create client with dynamic headers based on context."""
        store_name = _store_name.get()
        x_title = f"Menu Import / {store_name}" if store_name else "Menu Import"

        return AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            default_headers={"X-Title": x_title},
        )

    def json_schema_format(self, model_cls: Type[BaseModel]) -> Dict[str, Any]:
        """Generate JSON schema response format."""
        return {
            "type": "json_schema",
            "json_schema": {
                "name": model_cls.__name__,
                "schema": strict_json_schema(model_cls),
                "strict": True,
            },
        }

    async def generate(
        self,
        messages: List[Dict[str, Any]],
        response_format: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
    ):
        """Call LLM with messages, applying the timeout/retry policy."""
        kwargs: Dict[str, Any] = {"model": model or self.model, "messages": messages}
        if response_format is not None:
            kwargs["response_format"] = response_format

        attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                # Create client with current context headers
                client = self._get_client()
                return await client.chat.completions.create(**kwargs)
            except Exception as e:
                last_error = e
                if attempt < attempts - 1:
                    delay = self.retry_delay * (attempt + 1)
                    logger.warning(
                        "LLM call attempt %d/%d failed: %s; retrying in %.1fs",
                        attempt + 1,
                        attempts,
                        e,
                        delay,
                    )
                    await asyncio.sleep(delay)

        raise LLMClientError(
            f"LLM call failed after {attempts} attempt(s): {last_error}"
        ) from last_error

    async def chat(
        self, messages: List[Dict[str, Any]], model: Optional[str] = None
    ) -> str:
        """Free-form chat call; returns the raw message text."""
        response = await self.generate(messages, model=model)
        return response.choices[0].message.content or ""

    async def generate_structured(
        self,
        messages: List[Dict[str, Any]],
        model_cls: Type[ModelT],
        model: Optional[str] = None,
    ) -> ModelT:
        """Schema-constrained call; returns a validated ``model_cls`` instance."""
        response = await self.generate(
            messages, response_format=self.json_schema_format(model_cls), model=model
        )
        raw = response.choices[0].message.content
        if not raw:
            raise LLMClientError("LLM returned an empty structured response")
        try:
            return model_cls.model_validate_json(raw)
        except ValidationError as e:
            raise LLMClientError(
                f"Structured response failed {model_cls.__name__} validation: {e}"
            ) from e


# Singleton
_llm_client: Optional[LLMClient] = None


def set_store_context(store_name: Optional[str]):
    """Set store name in context for dynamic headers."""
    _store_name.set(store_name)


def get_llm_client() -> LLMClient:
    """Get cached LLM client instance."""
    global _llm_client
    if _llm_client is None:
        from menu_import.config import get_settings

        settings = get_settings()
        api_key = settings.OPENROUTER_API_KEY
        if not api_key:
            raise RuntimeError(
                "API key for OpenRouter not found in environment variables."
            )
        _llm_client = LLMClient(
            api_key=api_key,
            provider="OpenRouter",
            model=settings.DEFAULT_MODEL_NAME,
            base_url=settings.OPENROUTER_BASE_URL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            max_retries=settings.LLM_MAX_RETRIES,
            retry_delay=settings.LLM_RETRY_DELAY_SECONDS,
        )
    return _llm_client
