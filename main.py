"""species-stream - live species discovery client

Simple CLI for following a discovery stream from the backend.
"""

import argparse
import asyncio

from species_stream.profiles import PROFILES
from species_stream.streaming.session import StreamSession
from species_stream.streaming.state import SessionState


class _ConsolePrinter:
    """Print catalog growth and status changes as they are applied."""

    def __init__(self) -> None:
        self.known = 0
        self.discovered = 0
        self.status = ""
        self.transcript = 0

    def __call__(self, state: SessionState) -> None:
        if state.status_message and state.status_message != self.status:
            self.status = state.status_message
            print(f"\n[~] {self.status}")

        for entry in state.previously_known[self.known:]:
            print(f"  [=] {entry.name or '?'} ({entry.scientific_name})")
        self.known = len(state.previously_known)

        for entry in state.newly_discovered[self.discovered:]:
            marker = "!" if entry.is_toxic else "+"
            print(f"  [{marker}] {entry.name or '?'} ({entry.scientific_name})")
        self.discovered = len(state.newly_discovered)

        if len(state.transcript) > self.transcript:
            print(state.transcript[self.transcript:], end="", flush=True)
            self.transcript = len(state.transcript)


async def run_discovery(profile: str, params: dict, as_json: bool = False):
    """Follow one discovery stream until it completes, fails or ends."""
    session = StreamSession(profile)

    if not as_json:
        print(f"Discovery stream: {profile}")
        print("-" * 50)
        session.subscribe(_ConsolePrinter())

    async with session:
        await session.start(**params)

    if as_json:
        print(session.snapshot().model_dump_json(indent=2))
        return

    state = session.state
    stats = state.stats
    if state.error:
        print(f"\n[!] Error: {state.error}")
    elif state.is_complete:
        print(f"\n[*] Discovery complete!")
    else:
        print(f"\n[*] Stream ended before completion")
    print(f"   Progress: {state.progress:.0f}%")
    print(f"   Checked: {stats.checked} / {stats.total}")
    print(f"   Found: {stats.found} (new: {stats.new_found}, cached: {stats.cached_count})")
    print(f"   Species: {len(state.combined)}")


def main():
    parser = argparse.ArgumentParser(description="species-stream discovery client")
    parser.add_argument("--profile", "-p", choices=sorted(PROFILES), default="fish")
    parser.add_argument("--location", help="User location name (fish profile)")
    parser.add_argument("--lat", type=float, help="Latitude (area profile)")
    parser.add_argument("--lon", type=float, help="Longitude (area profile)")
    parser.add_argument("--message", "-m", help="Question for the search agent")
    parser.add_argument("--session-id", help="Continue an existing search agent session")
    parser.add_argument("--json", action="store_true", help="Print the final state as JSON")

    args = parser.parse_args()

    params = {
        "location": args.location,
        "latitude": args.lat,
        "longitude": args.lon,
        "message": args.message,
        "session_id": args.session_id,
    }
    params = {key: value for key, value in params.items() if value is not None}

    asyncio.run(run_discovery(args.profile, params, args.json))


if __name__ == "__main__":
    main()
