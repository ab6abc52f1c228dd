"""Evidence-based science brief for the ``!science`` command."""
from __future__ import annotations

import logging

from fitbot.services.llm import LLMNotConfiguredError, LLMProvider

logger = logging.getLogger(__name__)

SCIENCE_SYSTEM_PROMPT = (
    "Summarize consensus of high-quality evidence (RCTs, meta-analyses). "
    "Avoid absolute claims. No magic hacks."
)

SCIENCE_PROMPT_TEMPLATE = """
You are preparing a short science brief about **{topic}**.

Requirements:
- Cite only high-quality evidence (RCTs, meta-analyses, umbrella reviews).
- Use neutral language, highlight consensus first, then unknowns.
- Output must use markdown with EXACTLY these sections and bullet counts.

Format:
## Evidence
- 2-3 concise bullets that summarize what studies show.

## Uncertainties
- 1-2 bullets on what remains unclear, conflicting, or under-studied.

## Practical Takeaways
- 3 numbered bullets with pragmatic guidance grounded in the evidence.
"""


def build_science_brief_prompt(topic: str) -> str:
    trimmed = topic.strip()
    if not trimmed:
        raise ValueError("Topic is required to build a science brief prompt.")
    return SCIENCE_PROMPT_TEMPLATE.format(topic=trimmed)


async def generate_science_brief(topic: str, provider: LLMProvider) -> str:
    if not topic.strip():
        raise ValueError("Topic is required for science brief generation.")
    if not provider.is_enabled():
        raise LLMNotConfiguredError("LLM provider is disabled.")

    prompt = build_science_brief_prompt(topic)
    logger.debug("Generating science brief for topic=%r", topic.strip())
    return await provider.generate_text(prompt, SCIENCE_SYSTEM_PROMPT)
