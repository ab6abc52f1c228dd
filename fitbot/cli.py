"""Command-line entry point for running the plate estimator once."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from fitbot.config import get_settings
from fitbot.models import ImageSource
from fitbot.services.llm import LLMError, LLMProvider, build_provider
from fitbot.utils.calorie_estimator import estimate_plate_calories, render_calorie_estimate


async def run_estimate(image_path: Path, caption: str, provider: LLMProvider) -> int:
    try:
        return await _estimate(image_path, caption, provider)
    finally:
        await provider.close()


async def _estimate(image_path: Path, caption: str, provider: LLMProvider) -> int:
    if not provider.is_enabled():
        print("Error: LLM API key missing. Set OPENROUTER_API_KEY (or OPENAI_API_KEY).")
        return 1

    try:
        estimate = await estimate_plate_calories(ImageSource(image_path=image_path), caption, provider)
    except LLMError as exc:
        print(f"Error: {exc}")
        return 1

    if estimate is None:
        print("Could not estimate calories reliably from this photo.")
        return 1

    print(render_calorie_estimate(estimate))
    return 0


def main(argv: list[str] | None = None, provider: LLMProvider | None = None) -> int:
    parser = argparse.ArgumentParser(description="Estimate calories for a plate photo")
    parser.add_argument("image", type=Path, help="Path to the plate photo")
    parser.add_argument("--caption", default="", help="Optional caption describing the meal")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.image.is_file():
        print(f"Error: image not found: {args.image}")
        return 1

    provider = provider or build_provider(get_settings())
    return asyncio.run(run_estimate(args.image, args.caption, provider))


if __name__ == "__main__":
    sys.exit(main())
