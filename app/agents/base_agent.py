"""Base class for Pydantic AI agents."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Generic, TypeVar, cast

from pydantic import BaseModel
from pydantic_ai import Agent

from app.config import settings

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract base class for Pydantic AI agents.

    Each agent should:
    1. Define the system_prompt property
    2. Define the output_type property
    3. Implement _build_prompt to construct the user prompt
    """

    # Model tier for environment-aware resolution (standard / fast)
    model_tier: str = "standard"
    # Explicit model override at the class level (bypasses tier resolution)
    model: str | None = None
    temperature: float = 0.7
    max_retries: int = settings.llm_max_retries

    def __init__(self, model_override: str | None = None) -> None:
        """Initialize the agent.

        Model resolution priority:
        1. model_override parameter (explicit runtime override)
        2. model class attribute (if set by subclass)
        3. settings.get_model(self.model_tier) (environment-aware tier fallback)
        """
        model_source = "tier_default"
        if model_override:
            self._model = model_override
            model_source = "runtime_override"
        elif self.model:
            self._model = self.model
            model_source = "class_override"
        else:
            self._model = settings.get_model(self.model_tier)
        self._agent: Agent[None, OutputT] | None = None

        logger.info(
            "Agent initialized",
            extra={
                "agent": self.__class__.__name__,
                "model": self._model,
                "model_tier": self.model_tier,
                "model_source": model_source,
                "temperature": self.temperature,
            },
        )

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def agent(self) -> Agent[None, OutputT]:
        """Lazily initialize and return the Pydantic AI agent."""
        if self._agent is None:
            self._agent = cast(
                Agent[None, OutputT],
                Agent(
                    model=self._model,
                    output_type=self.output_type,
                    system_prompt=self.system_prompt,
                    retries=self.max_retries,
                ),
            )
        return self._agent

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """System prompt for the agent."""
        pass

    @property
    @abstractmethod
    def output_type(self) -> type[OutputT]:
        """Pydantic model type for structured output."""
        pass

    async def run(self, input_data: InputT) -> OutputT:
        """Run the agent with input data.

        Args:
            input_data: Pydantic model with input parameters.

        Returns:
            Structured output as defined by output_type.
        """
        agent_name = self.__class__.__name__
        prompt = self._build_prompt(input_data)
        logger.info(
            "Agent run started",
            extra={
                "agent": agent_name,
                "input_type": type(input_data).__name__,
                "prompt_length": len(prompt),
                "model": self._model,
            },
        )

        t0 = time.perf_counter()
        result = await self.agent.run(prompt, model_settings={"temperature": self.temperature})
        elapsed = time.perf_counter() - t0

        usage = result.usage()
        logger.info(
            "Agent run completed",
            extra={
                "agent": agent_name,
                "duration_s": round(elapsed, 2),
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                "total_tokens": usage.total_tokens,
                "output_type": type(result.output).__name__,
            },
        )

        return result.output

    @abstractmethod
    def _build_prompt(self, input_data: InputT) -> str:
        """Build the user prompt from input data.

        Args:
            input_data: Input data for the agent.

        Returns:
            User prompt string.
        """
        pass
