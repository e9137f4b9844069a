"""Entry point for textgen: send one prompt and print the reply, streamed by default."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING, TextIO

from textgen.config import get_config
from textgen.core.logging_config import setup_logging
from textgen.models.errors import LanguageModelError
from textgen.models.openai_client import CompletionClient, OpenAIModel

if TYPE_CHECKING:
    from textgen.config.loader import Config
    from textgen.models.base import LanguageModel

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="textgen", description=__doc__)
    parser.add_argument("prompt", help="Prompt text sent as a single user message")
    parser.add_argument(
        "--model",
        choices=[m.value for m in OpenAIModel],
        default=None,
        help="Model to target (default: from config)",
    )
    parser.add_argument("--no-stream", action="store_true", help="Wait for the full reply")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--log-level", default=None, help="Override logging level")
    return parser


async def run(model: LanguageModel, prompt: str, *, stream: bool, out: TextIO) -> None:
    if not stream:
        out.write(await model.generate_text(prompt))
        out.write("\n")
        return
    fragments = await model.stream_text(prompt)
    async for fragment in fragments:
        out.write(fragment.text)
        out.flush()
    out.write("\n")


async def _main(args: argparse.Namespace, config: Config) -> int:
    settings = config.model
    if args.model:
        settings = settings.model_copy(update={"name": OpenAIModel(args.model)})
    try:
        async with CompletionClient.from_settings(settings) as client:
            await run(client, args.prompt, stream=not args.no_stream, out=sys.stdout)
    except LanguageModelError as e:
        logger.error("generation failed: %s", e)
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    config = get_config(args.config)
    setup_logging(level=args.log_level or config.logging.level, use_json=config.logging.use_json)
    sys.exit(asyncio.run(_main(args, config)))


if __name__ == "__main__":
    main()
