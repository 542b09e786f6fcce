"""CLI: chat with Orbit in the terminal, or run the agent once with --prompt. For the API, use: python run_api.py."""
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env", override=True)

from orbit.core.agent import AgentError, run_agent
from orbit.models.schemas import AgentMessage, Role
from orbit.ui.session import ChatSession
from orbit.ui.terminal import TerminalView, run_chat


async def _chat(base_url: str | None) -> None:
    async with ChatSession(base_url=base_url) as session:
        await run_chat(session, TerminalView(session))


async def _once(prompt: str) -> str:
    return await run_agent([AgentMessage(role=Role.USER, content=prompt)])


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Talk to Orbit")
    ap.add_argument("--url", help="Orbit API base URL (default: ORBIT_API_URL or http://127.0.0.1:8000)")
    ap.add_argument("--prompt", "-p", help="Run the agent in-process on one prompt and print the reply")
    args = ap.parse_args(argv)

    # Client failures are shown in the transcript; keep the log to warnings and up
    logging.basicConfig(level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper(), logging.WARNING))
    for _name in ("httpx", "httpcore"):
        logging.getLogger(_name).setLevel(logging.WARNING)

    if args.prompt:
        try:
            print(asyncio.run(_once(args.prompt)))
        except AgentError as e:
            print(f"Agent failed: {e}", file=sys.stderr)
            return 1
        return 0
    try:
        asyncio.run(_chat(args.url))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
