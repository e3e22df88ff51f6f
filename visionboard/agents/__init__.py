"""AI Agents package."""

from visionboard.agents.ai_agents import (
    GENERIC_ACTION_PLAN,
    ActionPlanGenerator,
    ImageGenerationError,
    ImageGenerationOrchestrator,
    NoImageDataError,
    PromptEnhancer,
    SafetyBlockedError,
)

__all__ = [
    "GENERIC_ACTION_PLAN",
    "ActionPlanGenerator",
    "ImageGenerationError",
    "ImageGenerationOrchestrator",
    "NoImageDataError",
    "PromptEnhancer",
    "SafetyBlockedError",
]
