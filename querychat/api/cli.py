"""Minimal interactive CLI entrypoint for querychat.

Architectural role:
    - Terminal-only interface over the same handlers the HTTP API uses.
    - Builds one application context at startup and reuses it for every turn.

Request lifecycle (per line):
    1. Read a single line from stdin.
    2. Handle local control commands (`exit`/`quit`).
    3. Lines starting with `/sql ` go to query generation; anything else to chat.
    4. Print the envelope's payload or its error.

Input validation behavior:
    - Empty input is ignored and does not call the core.

Error handling strategy:
    - Handles EOF and keyboard interrupts without traceback output.
    - Startup failures (store unreachable, bad settings) exit with status 1.
"""

import asyncio
import logging
import sys

from querychat.core.context import AppContext, build_context
from querychat.core.engine import handle_chat, handle_generate_query
from querychat.core.settings import get_settings


SQL_COMMAND_PREFIX = "/sql "

logger = logging.getLogger(__name__)


def render(result: dict) -> str:
    """Return the text a terminal user should see for one envelope."""
    if result.get("success"):
        return result.get("response") or result.get("sqlQuery") or ""
    return f"{result.get('message')}: {result.get('error')}"


async def answer(context: AppContext, line: str) -> dict:
    if line.startswith(SQL_COMMAND_PREFIX):
        return await handle_generate_query(context, line[len(SQL_COMMAND_PREFIX):])
    return await handle_chat(context, line)


async def session(context: AppContext, read=input, write=print) -> None:
    """Run the read-answer loop until EOF, interrupt, or an exit command."""
    try:
        while True:
            try:
                line = read("Question: ").strip()
            except EOFError:
                write("")
                break
            except KeyboardInterrupt:
                write("\nInterrupted.")
                break

            if not line:
                continue

            if line.lower() in ("exit", "quit"):
                write("Shutting down.")
                break

            result = await answer(context, line)
            # lets a scheduled history write start before stdin blocks again
            await asyncio.sleep(0)
            write("\n" + render(result) + "\n")
            write("-" * 60)
    finally:
        await context.aclose()


def main():
    settings = get_settings()
    logging.basicConfig(level=settings.log_level,
                        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")
    try:
        context = build_context(settings)
    except Exception:
        logger.exception("Could not start querychat")
        sys.exit(1)

    print("querychat started. Prefix a line with '/sql ' for query generation. "
          "(Type 'exit' to quit)\n")
    print("-" * 60)
    asyncio.run(session(context))


if __name__ == "__main__":
    main()
