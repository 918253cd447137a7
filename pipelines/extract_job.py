"""Command-line extraction: one URL, one pasted file, or one re-process."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import structlog

from core import verbose
from core.config import (
    CleaningMethod,
    FetchMethod,
    PipelineSettings,
    ProviderConfig,
    Settings,
    load_config,
)
from core.errors import PipelineError
from evidence.runs import FileRunStore
from orchestration.runner import PipelineOrchestrator
from parsing.models import ExtractedJob

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="job-extract",
        description="Extract a structured job record from a posting.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="Job posting URL to fetch")
    source.add_argument("--text-file", type=Path, help="File with pasted posting text or HTML")
    source.add_argument("--reprocess", metavar="JOB_ID", help="Re-run extraction for a stored job")

    parser.add_argument("--job-id", help="Attach the new run to this job")
    parser.add_argument("--provider", help="Model provider (ollama, openai, deepseek)")
    parser.add_argument("--model", help="Model name")
    parser.add_argument("--num-ctx", type=int, help="Context window for local models")
    parser.add_argument(
        "--cleaning",
        choices=[m.value for m in CleaningMethod],
        help="Cleaning method for fetched pages",
    )
    parser.add_argument(
        "--fetch",
        choices=[m.value for m in FetchMethod],
        help="Fetch policy for URLs",
    )
    parser.add_argument("--config", type=Path, help="Pipeline defaults YAML")
    parser.add_argument("-v", "--verbose", action="count", default=None)
    return parser


async def run(
    args: argparse.Namespace,
    orchestrator: PipelineOrchestrator,
    provider: ProviderConfig,
    pipeline_settings: PipelineSettings,
) -> ExtractedJob:
    """Dispatch to the requested mode and wait for run tracking to settle."""
    try:
        if args.url:
            return await orchestrator.extract_from_url(
                args.url, provider, pipeline_settings, job_id=args.job_id
            )
        if args.text_file:
            text = args.text_file.read_text(encoding="utf-8")
            return await orchestrator.extract_from_pasted_text(
                text, provider, job_id=args.job_id
            )
        return await orchestrator.reprocess_job(args.reprocess, provider, pipeline_settings)
    finally:
        await orchestrator.tracker.drain()


def main(argv: list[str] | None = None) -> None:
    """Entry point for job-extract."""
    args = build_parser().parse_args(argv)

    settings, defaults = load_config(args.config, Settings())
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    verbose.configure(args.verbose if args.verbose is not None else settings.verbose)

    provider = defaults.provider.model_copy(
        update={
            k: v
            for k, v in {
                "provider": args.provider,
                "model": args.model,
                "context_window": args.num_ctx,
            }.items()
            if v is not None
        }
    )
    pipeline_settings = defaults.pipeline.model_copy(
        update={
            k: v
            for k, v in {
                "cleaning_method": args.cleaning and CleaningMethod(args.cleaning),
                "fetch_method": args.fetch and FetchMethod(args.fetch),
            }.items()
            if v
        }
    )

    orchestrator = PipelineOrchestrator(
        store=FileRunStore(settings.runs_dir), settings=settings, defaults=defaults
    )

    try:
        job = asyncio.run(run(args, orchestrator, provider, pipeline_settings))
    except PipelineError as e:
        logger.error("extraction_failed", kind=e.kind, status=e.status_code)
        print(f"Error ({e.status_code}): {e.message}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(job.to_output(), indent=2))


if __name__ == "__main__":
    main()
