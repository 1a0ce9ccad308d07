"""Prompt Refiner: rewrites a rough prompt in one of four canned styles via the chat API."""

from __future__ import annotations

from functools import lru_cache

import structlog

from promptea.config import get_settings
from promptea.gateways.openai import ChatGateway, get_chat_gateway

logger = structlog.get_logger()

DEFAULT_MODE = "primer"

REFINE_MODES: dict[str, str] = {
    "primer": (
        "You are Promptea - Primer Mode. Transform the user's prompt into a clear, concise, "
        "effective prompt (50-150 words). Focus on clarity and directness. Add essential "
        "context, specify output format, remove ambiguity. Return ONLY the optimized prompt, "
        "no explanations."
    ),
    "mastermind": (
        "You are Promptea - Mastermind Mode. Transform the user's prompt into a comprehensive, "
        "professional-grade prompt (200-400 words) with: [ROLE] expert persona, [CONTEXT] "
        "background, [TASK] clear objectives with steps, [CONSTRAINTS] requirements, "
        "[OUTPUT FORMAT] structure, [EXAMPLES] samples, [QUALITY CRITERIA] success metrics. "
        "Use sections, numbered lists, specific details. Return ONLY the optimized prompt."
    ),
    "amplifier": (
        "You are Promptea - AI Amplifier Mode. Transform the user's prompt into an extremely "
        "detailed, step-by-step prompt (400-600 words) with: [EXPERT ROLE] detailed "
        "credentials, [BACKGROUND] comprehensive context, [METHODOLOGY] 5-10+ detailed steps "
        "with sub-tasks, [EXAMPLES] 2-3 detailed examples, [EDGE CASES] unusual situations, "
        "[OUTPUT SPECS] detailed format, [QUALITY ASSURANCE] verification steps, "
        "[TROUBLESHOOTING] common issues. Use extensive numbered lists, include examples for "
        "every major point. Return ONLY the optimized prompt."
    ),
    "json": (
        "You are Promptea - JSON Mode. Transform the user's prompt into a structured prompt "
        "that instructs AI to return valid JSON (300-500 words). Include: complete JSON schema "
        "with all fields, data types (string, number, boolean, array, object), nested "
        "structures, enum values, validation rules, 1-2 full example JSON outputs in code "
        "blocks. Specify: field names in camelCase, required vs optional fields, array item "
        'structures. Add instruction: "Return ONLY valid JSON, no additional text. Ensure all '
        'brackets/quotes are closed. Use double quotes. No comments." Return ONLY the '
        "optimized prompt."
    ),
}


class PromptRefiner:
    """Sends the prompt with a mode's system prompt and returns the model's rewrite."""

    def __init__(self, chat: ChatGateway, model: str = "gpt-4o") -> None:
        self.chat = chat
        self.model = model

    async def refine(self, prompt: str, mode: str = DEFAULT_MODE) -> str:
        """Raises ValueError for an unknown mode or a blank prompt."""
        system_prompt = REFINE_MODES.get(mode)
        if system_prompt is None:
            raise ValueError(
                f"Unknown refine mode: {mode} (expected one of {', '.join(REFINE_MODES)})"
            )
        if not prompt.strip():
            raise ValueError("Prompt must not be blank")

        refined = await self.chat.complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": f"User Prompt:\n{prompt}"},
            ],
            temperature=0.7,
            max_tokens=3000,
            model=self.model,
        )
        logger.info("prompt.refined", mode=mode, chars_in=len(prompt), chars_out=len(refined))
        return refined


@lru_cache
def get_refiner() -> PromptRefiner:
    """Get cached refiner instance."""
    return PromptRefiner(get_chat_gateway(), model=get_settings().refine_model)
