"""Terminal chat view for a ChatSession: prints new messages as they arrive, newest at the bottom."""
import asyncio
import shutil
import sys
from typing import Callable, TextIO

from orbit.models.schemas import Role
from orbit.ui.session import ChatMessage, ChatSession

TITLE = "Orbit"
TAGLINE = "A focused agent that helps break down ideas into actionable moves."
STATUS_BADGE = "Online"
IDLE_HINT = "Orbit crafts structured plans and clear next steps."
QUIT_COMMAND = "/quit"


def format_message(message: ChatMessage, width: int) -> str:
    """User messages hug the right edge, assistant messages the left; line breaks are kept."""
    label = "You" if message.role == Role.USER else TITLE
    lines = [label, *message.content.split("\n")]
    if message.role == Role.USER:
        return "\n".join(line.rjust(width) for line in lines)
    return "\n".join(lines)


def status_line(session: ChatSession) -> str:
    if session.error:
        return f"{session.error}. Please try again."
    return IDLE_HINT


class TerminalView:
    """Subscribes to a session and prints each message once, in order."""

    def __init__(self, session: ChatSession, out: TextIO | None = None, width: int | None = None) -> None:
        self.session = session
        self.out = out or sys.stdout
        self.width = width or shutil.get_terminal_size((80, 24)).columns
        self._shown: set[str] = set()
        self._last_error: str | None = None
        self._unsubscribe = session.subscribe(self.refresh)

    def header(self) -> None:
        title = f"{TITLE}  [{STATUS_BADGE}]"
        print(title, file=self.out)
        print(TAGLINE, file=self.out)
        print("-" * min(self.width, 72), file=self.out)

    def refresh(self, session: ChatSession) -> None:
        for message in session.messages:
            if message.id in self._shown:
                continue
            self._shown.add(message.id)
            print(format_message(message, self.width), file=self.out)
            print(file=self.out)
        if session.error != self._last_error:
            self._last_error = session.error
            if session.error:
                print(status_line(session), file=self.out)
        self.out.flush()

    def close(self) -> None:
        self._unsubscribe()


async def run_chat(session: ChatSession, view: TerminalView, read_line: Callable[[str], str] = input) -> None:
    """Read prompts until EOF or /quit, submitting each one and letting the view print the result."""
    view.header()
    view.refresh(session)
    print(status_line(session), file=view.out)
    while True:
        try:
            line = await asyncio.to_thread(read_line, f"{session.placeholder}\n> ")
        except EOFError:
            break
        if line.strip() == QUIT_COMMAND:
            break
        session.draft = line
        if not session.can_submit:
            continue
        await session.submit()
    view.close()
