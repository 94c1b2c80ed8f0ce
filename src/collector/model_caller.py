"""
Model Caller Contract

What the run executor sends to an AI model and what it expects back.
Live vendor integrations implement ``ModelCaller``; the simulated
caller renders deterministic simulator outcomes as answer text so the
rest of the pipeline runs unchanged.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.collector.simulator import simulate_response

logger = logging.getLogger(__name__)

# Model id -> display name used when seeding the simulator
MODEL_DISPLAY_NAMES: Dict[str, str] = {
    "openai": "ChatGPT",
    "gemini": "Gemini",
    "perplexity": "Perplexity",
    "anthropic": "Claude",
}


class ModelCallError(Exception):
    """A single prompt x model call failed."""

    def __init__(self, message: str, model: Optional[str] = None):
        self.model = model
        super().__init__(message)


@dataclass
class ModelAnswer:
    """Raw answer from a model."""
    text: str
    citations: List[Dict[str, Any]] = field(default_factory=list)


class ModelCaller(ABC):
    """Answers a prompt with a given model."""

    @abstractmethod
    async def answer(self, prompt: str, model: str) -> ModelAnswer:
        """
        Ask ``model`` to answer ``prompt``.

        Raises:
            ModelCallError: If the call fails
        """


class SimulatedModelCaller(ModelCaller):
    """
    Renders simulator outcomes as numbered-list answers.

    The brand is listed at its simulated position when recommended,
    mentioned in prose when only mentioned, and absent otherwise.
    """

    def __init__(
        self,
        business_name: str,
        category: Optional[str],
        city: str,
        state: str = "",
        domain: Optional[str] = None,
        include_citations: bool = False,
    ):
        self.business_name = business_name
        self.category = category
        self.city = city
        self.state = state
        self.domain = domain
        self.include_citations = include_citations

    async def answer(self, prompt: str, model: str) -> ModelAnswer:
        display = MODEL_DISPLAY_NAMES.get(model, model)
        outcome = simulate_response(
            self.business_name, prompt, display,
            category=self.category, city=self.city,
        )

        names = list(outcome.competitors)
        if outcome.recommended:
            slot = (outcome.position or len(names) + 1) - 1
            names.insert(min(slot, len(names)), self.business_name)

        place = f"{self.city}, {self.state}" if self.state else self.city
        lines = [f"Here are some options worth considering in {place}:", ""]
        for i, name in enumerate(names, start=1):
            lines.append(f"{i}. {name} - Well reviewed for quality and responsiveness.")
        lines.append("")

        if outcome.mentioned and not outcome.recommended:
            lines.append(f"{self.business_name} is also worth a look, serving {place}.")
        lines.append("Always compare reviews and ask for a written estimate before booking.")

        citations = []
        if self.include_citations and self.domain and outcome.mentioned:
            citations.append({
                "url": f"https://{self.domain}",
                "domain": self.domain,
                "title": self.business_name,
            })

        return ModelAnswer(text="\n".join(lines), citations=citations)
