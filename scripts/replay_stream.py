"""Replay a captured discovery stream through a StreamSession.

Useful for reproducing client-side behaviour from a saved response body
(NDJSON or SSE) without a backend:

    python scripts/replay_stream.py capture.ndjson --profile toxic --chunk-size 7
"""
from __future__ import annotations

import argparse
import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator

from species_stream.profiles import PROFILES
from species_stream.streaming.session import StreamSession
from species_stream.tools.transport import StreamRequest


def _now_tag() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _json_dump(path: Path, payload: Any) -> None:
    path.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )


class FileReplayTransport:
    """Serve a saved response body in fixed-size chunks instead of opening a connection."""

    def __init__(self, body: str, *, chunk_size: int = 64, delay_s: float = 0.0):
        self.body = body
        self.chunk_size = max(int(chunk_size), 1)
        self.delay_s = max(float(delay_s), 0.0)
        self.requests: list[StreamRequest] = []

    @classmethod
    def from_path(cls, path: Path, **kwargs: Any) -> "FileReplayTransport":
        return cls(path.read_text(encoding="utf-8"), **kwargs)

    @asynccontextmanager
    async def open(self, request: StreamRequest) -> AsyncIterator[AsyncIterator[str]]:
        self.requests.append(request)
        yield self._chunks()

    async def _chunks(self) -> AsyncIterator[str]:
        for start in range(0, len(self.body), self.chunk_size):
            await asyncio.sleep(self.delay_s)
            yield self.body[start:start + self.chunk_size]


async def replay(
    capture: Path,
    *,
    profile: str,
    chunk_size: int,
    delay_s: float,
    out_dir: Path | None,
) -> dict[str, Any]:
    transport = FileReplayTransport.from_path(capture, chunk_size=chunk_size, delay_s=delay_s)
    session = StreamSession(profile, transport=transport)
    await session.start()

    payload = session.snapshot().model_dump(mode="json")
    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)
        target = out_dir / f"replay_{profile}_{_now_tag()}.json"
        _json_dump(target, payload)
        print(f"Snapshot written to {target}")
    return payload


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a captured discovery stream")
    parser.add_argument("capture", type=Path, help="Saved NDJSON/SSE response body")
    parser.add_argument("--profile", "-p", choices=sorted(PROFILES), default="fish")
    parser.add_argument("--chunk-size", type=int, default=64)
    parser.add_argument("--delay", type=float, default=0.0, help="Seconds between chunks")
    parser.add_argument("--out-dir", type=Path, default=None)
    args = parser.parse_args()

    payload = asyncio.run(
        replay(
            args.capture,
            profile=args.profile,
            chunk_size=args.chunk_size,
            delay_s=args.delay,
            out_dir=args.out_dir,
        )
    )
    if args.out_dir is None:
        print(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
