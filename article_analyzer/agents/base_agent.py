import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Optional

from ..config import settings
from ..errors import AnalysisFailed

logger = logging.getLogger(__name__)


def timeout_guard(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Decorator to enforce the provider round-trip timeout"""

    @wraps(func)
    async def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        timeout_seconds = getattr(self, "timeout_seconds", settings.analysis_timeout_seconds)
        try:
            return await asyncio.wait_for(func(self, *args, **kwargs), timeout=timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.error("Agent %s timed out after %s seconds", getattr(self, "agent_name", "unknown"), timeout_seconds)
            raise TimeoutError(f"Operation exceeded timeout of {timeout_seconds} seconds") from exc

    return wrapper


@dataclass
class LLMConfig:
    model: str
    api_key: str
    temperature: float
    max_tokens: int
    timeout: float


class BaseDocumentAgent(ABC):
    """Abstract base class for agents that send article text to the language model."""

    def __init__(self) -> None:
        self.timeout_seconds = settings.analysis_timeout_seconds
        self.llm: Optional[LLMConfig] = None
        try:
            self.llm = create_llm_config()
        except RuntimeError as exc:
            logger.warning("LLM config not initialized for %s: %s", self.agent_name, exc)

    @property
    @abstractmethod
    def agent_name(self) -> str:
        """Name used for logging."""

    @abstractmethod
    async def process(self, document_text: str) -> Any:
        """Implement agent-specific processing logic."""

    @timeout_guard
    async def _process_with_timeout(self, document_text: str) -> Any:
        return await self.process(document_text)

    async def execute(self, document_text: str) -> Any:
        """Run one provider round trip. Any failure surfaces as AnalysisFailed; nothing is retried here."""
        try:
            return await self._process_with_timeout(document_text)
        except AnalysisFailed:
            raise
        except TimeoutError as exc:
            raise AnalysisFailed(str(exc)) from exc
        except Exception as exc:
            logger.exception("Unhandled agent error in %s", self.agent_name)
            raise AnalysisFailed(f"{self.agent_name} failed: {exc}") from exc


def create_llm_config(
    temperature: float = 0.0,
    max_tokens: int = 4096,
    timeout: Optional[float] = None,
) -> LLMConfig:
    """Create an LLM config from the configured provider credentials."""
    timeout = timeout or settings.analysis_timeout_seconds

    if settings.openai_api_key:
        return LLMConfig(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

    raise RuntimeError(f"OPENAI_API_KEY is required to use the {settings.openai_model} model.")
