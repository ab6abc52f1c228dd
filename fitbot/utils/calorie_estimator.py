"""Plate calorie estimator.

Builds the instruction prompt for a meal photo + caption, asks the
configured provider for a strict JSON answer and parses it into a
``CalorieEstimate``.  A reply that cannot be parsed, or that parses to all
zeros, is a miss (``None``), not an error.
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from fitbot.models import CalorieEstimate, ImageSource, resolve_image_url
from fitbot.services.llm import LLMProvider

logger = logging.getLogger(__name__)

CALORIE_SYSTEM_PROMPT = "You are a nutrition assistant. Output only JSON."
CALORIE_TEMPERATURE = 0.1
CALORIE_MAX_TOKENS = 600

NUMERIC_FIELDS = ("kcal_low", "kcal_high", "protein_g", "carbs_g", "fat_g")

_JSON_SPAN = re.compile(r"\{.*\}", re.DOTALL)
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_FLOAT_PREFIX = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


def build_calorie_prompt(caption: str) -> str:
    c = caption.strip()
    lines = [
        "Analyze the food on the plate and estimate realistic calories and macros.",
        "Infer portion sizes from the image and the caption context.",
        "Use ranges, not single numbers.",
        "Explicitly label uncertainty in notes.",
        "Output only JSON with keys { kcal_low, kcal_high, protein_g, carbs_g, fat_g, notes }.",
        "Do not include any text outside the JSON object.",
        f"Caption: {c}" if c else "",
    ]
    return "\n".join(line for line in lines if line)


def _coerce_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            n = float(value)
        except OverflowError:
            return 0.0
        return n if math.isfinite(n) else 0.0
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(_NON_NUMERIC.sub("", value))
        if match:
            n = float(match.group(0))
            if math.isfinite(n):
                return n
    return 0.0


def try_parse_estimate(text: str) -> CalorieEstimate | None:
    """Extract the JSON object in *text* and coerce it, or return None."""

    trimmed = text.strip()
    match = _JSON_SPAN.search(trimmed)
    candidate = match.group(0) if match else trimmed

    try:
        raw = json.loads(candidate)
    except (ValueError, RecursionError):
        logger.debug("Calorie reply is not JSON: %.200s", candidate)
        return None

    if not isinstance(raw, dict):
        return None

    numbers = {name: _coerce_number(raw.get(name)) for name in NUMERIC_FIELDS}
    if all(v == 0 for v in numbers.values()):
        logger.debug("Calorie reply parsed to all zeros; treating as a miss")
        return None

    notes = raw.get("notes")
    return CalorieEstimate(**numbers, notes=notes.strip() if isinstance(notes, str) else "")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def render_calorie_estimate(est: CalorieEstimate) -> str:
    lines = [
        f"Calories: {_round_half_up(est.kcal_low)}–{_round_half_up(est.kcal_high)} kcal",
        f"Macros: {_round_half_up(est.protein_g)} g protein, {_round_half_up(est.carbs_g)} g carbs, "
        f"{_round_half_up(est.fat_g)} g fat",
        f"Notes: {est.notes}" if est.notes else "",
    ]
    return "\n".join(line for line in lines if line)


async def estimate_plate_calories(
    image: ImageSource | None,
    caption: str,
    provider: LLMProvider,
) -> CalorieEstimate | None:
    """Estimate calories for one plate.

    Parameters
    ----------
    image : ImageSource | None
        Photo of the plate.  When empty the request is text only.
    caption : str
        Free-text caption, may be empty.
    provider : LLMProvider
        Completion client; transport and configuration errors propagate.
    """

    image_url = resolve_image_url(image)
    instruction = build_calorie_prompt(caption)
    raw = await provider.complete(
        CALORIE_SYSTEM_PROMPT,
        instruction,
        image_url=image_url,
        temperature=CALORIE_TEMPERATURE,
        max_tokens=CALORIE_MAX_TOKENS,
    )
    estimate = try_parse_estimate(raw)
    if estimate is None:
        logger.info("Could not parse calorie estimate from provider reply")
    return estimate
