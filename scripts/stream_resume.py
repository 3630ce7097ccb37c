"""Stream a local PDF resume through the parsing pipeline.

Prints every progress/complete/error event as one JSON line, the same
payloads the /api/parse-resume endpoint sends as SSE frames.

Usage:
  .venv/bin/python -m scripts.stream_resume path/to/resume.pdf
  .venv/bin/python -m scripts.stream_resume resume.pdf --save-profile
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
from pathlib import Path
import sys

from agents.resume_parser import ResumeParserAgent
from core.config import get_default_model
from core.events import Completion, EventChannel, Failure, event_to_json
from core.llm_factory import get_async_llm_client
from core.obs import JsonStdoutLogger
from core.pdf_text import PypdfTextExtractor
from core.profile_store import JsonFileProfileStore, merge_parsed_resume
from core.settings import get_pipeline_settings
from core.stream_pipeline import ResumeParsePipeline, ResumeUpload


async def _run(path: Path, save_to: Path | None) -> int:
    settings = get_pipeline_settings()
    obs = JsonStdoutLogger(service="stream-resume")
    pipeline = ResumeParsePipeline(
        parser=ResumeParserAgent(llm=get_async_llm_client(logger=obs), model=get_default_model()),
        extractor=PypdfTextExtractor(),
        settings=settings,
        logger=obs,
    )
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    upload = ResumeUpload(filename=path.name, content_type=content_type, data=path.read_bytes())

    channel, receive = EventChannel.open()
    runner = asyncio.create_task(pipeline.run(upload, channel))
    terminal = None
    async with receive:
        async for event in receive:
            print(event_to_json(event), flush=True)
            terminal = event
    await runner

    if isinstance(terminal, Completion) and save_to is not None:
        store = JsonFileProfileStore(path=save_to)
        store.save(merge_parsed_resume(store.load(), terminal.data, terminal.raw_text or ""))
        print(f"Profile saved to {save_to}", file=sys.stderr)
    return 1 if isinstance(terminal, Failure) else 0


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("pdf", type=Path, help="Path to a PDF resume.")
    parser.add_argument(
        "--save-profile",
        nargs="?",
        const=Path("profile.json"),
        type=Path,
        default=None,
        help="Merge the parsed resume into a JSON profile file (default: profile.json).",
    )
    args = parser.parse_args()
    if not args.pdf.exists():
        print(f"File not found: {args.pdf}", file=sys.stderr)
        return 2
    return asyncio.run(_run(args.pdf, args.save_profile))


if __name__ == "__main__":
    raise SystemExit(main())
