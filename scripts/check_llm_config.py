"""Sanity-check the configured LLM provider/model without leaking secrets.

Usage:
  .venv/bin/python -m scripts.check_llm_config
  .venv/bin/python -m scripts.check_llm_config --ping
"""

from __future__ import annotations

import argparse
import asyncio
import os

from core.config import get_config_value, get_default_model, get_timeout_seconds
from core.llm_factory import get_async_llm_client
from core.obs import NullLogger
from core.settings import get_pipeline_settings

_KEY_NAMES = {
    "openai": "OPENAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}


async def _ping(provider: str, model: str) -> str:
    llm = get_async_llm_client(logger=NullLogger(), provider=provider)
    chunks: list[str] = []
    resp = await llm.stream_chat(
        messages=[
            {"role": "system", "content": "Reply with a single word."},
            {"role": "user", "content": "ping"},
        ],
        model=model,
        temperature=1.0,
        on_chunk=chunks.append,
    )
    print(f"stream_chunks={len(chunks)}")
    return resp


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--ping",
        action="store_true",
        help="Make a live streaming LLM call (requires network + valid API key).",
    )
    args = parser.parse_args()

    provider = (get_config_value("LLM_PROVIDER", "openai") or "openai").lower()
    model = get_default_model()
    timeout = get_timeout_seconds()
    pipeline = get_pipeline_settings()

    print(f"LLM_PROVIDER={provider}")
    print(f"LLM_MODEL={model}")
    print(f"LLM_TIMEOUT_SECONDS={timeout}")
    print(f"PROGRESS_MIN_INTERVAL_MS={pipeline.min_emit_interval_ms}")
    print(f"REQUEST_TIMEOUT_SECONDS={pipeline.request_timeout_seconds}")
    print(f"QUALITY_POLICY={pipeline.quality_policy.value}")

    key_name = _KEY_NAMES.get(provider)
    if key_name:
        key_in_config = bool(get_config_value(key_name))
        key_in_env = bool(os.getenv(key_name))
        print(f"{key_name}: configured={key_in_config} env_set={key_in_env}")
    else:
        print("API key: unknown provider mapping")

    if args.ping:
        resp = asyncio.run(_ping(provider, model))
        print("Ping response preview:", (resp or "").strip()[:100])

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
