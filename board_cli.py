"""
Debate Board - watch three agents pitch and attack your plan in the terminal
Round 1: every agent proposes; Round 2: each attacks the previous seat.
Afterwards chips buy critiques, deep dives and a two-agent synthesis.
"""

import asyncio
import sys

from dotenv import load_dotenv

from debate_core import (
    BoardService,
    DebateController,
    DebateError,
    DebateSession,
    InMemoryProfileStore,
)
from debate_core.config import PAID_ACTION_COSTS
from llm_client import ConfigError, GroqClient


COLORS = {
    "red": "\033[91m",
    "green": "\033[92m",
    "yellow": "\033[93m",
    "blue": "\033[94m",
    "magenta": "\033[95m",
    "cyan": "\033[96m",
    "reset": "\033[0m",
}
SEAT_COLORS = ["green", "blue", "magenta"]


def print_colored(text: str, color: str, end: str = "\n"):
    """Print text in an ANSI color"""
    print(f"{COLORS.get(color, '')}{text}{COLORS['reset']}", end=end)


def print_header():
    print("\n" + "=" * 60)
    print_colored("   DEBATE BOARD - three agents, one plan", "cyan")
    print("=" * 60 + "\n")


def build_user_context(target: str, assets: str, risks: str) -> str:
    return f"Goal:{target}\nAssets:{assets}\nRisks:{risks}"


def print_rounds(session: DebateSession):
    """Print both audition rounds in seat order"""
    for round_number in (1, 2):
        print_colored(f"\n--- Round {round_number} ---", "yellow")
        for seat, agent in enumerate(session.agents):
            message = session.find_message(agent.id, round_number)
            if message is None:
                continue
            print_colored(f"{agent.name}: ", SEAT_COLORS[seat % len(SEAT_COLORS)], end="")
            print(message.content)
            if message.extra_content:
                print_colored(f"  >> {message.extra_content}", "red")


def print_menu(session: DebateSession):
    print_colored(f"\nChips: {session.chips}", "cyan")
    for seat, agent in enumerate(session.agents, start=1):
        print(f"  {seat}. {agent.name}")
    print(
        f"  c <n> critique (${PAID_ACTION_COSTS['critique']})"
        f" | d <n> deep dive (${PAID_ACTION_COSTS['deep_dive']})"
        f" | s <n> <m> synthesis (${PAID_ACTION_COSTS['synthesis']})"
        " | q quit"
    )


async def handle_command(controller: DebateController, session: DebateSession, command: str) -> bool:
    """Run one betting command; returns False when the user quits"""
    parts = command.split()
    if not parts or parts[0] == "q":
        return False

    try:
        numbers = [int(p) for p in parts[1:]]
        if any(n < 1 for n in numbers):
            raise IndexError(numbers)
        seats = [session.agents[n - 1].id for n in numbers]
    except (ValueError, IndexError):
        print_colored("Unknown seat number", "yellow")
        return True

    try:
        if parts[0] == "c" and len(seats) == 1:
            await controller.critique(session, seats[0])
            print_rounds(session)
        elif parts[0] == "d" and len(seats) == 1:
            text = await controller.deep_dive(session, seats[0])
            print_colored(f"\n{session.agent(seats[0]).name} deep dive:", "cyan")
            print(text)
        elif parts[0] == "s" and len(seats) == 2:
            text = await controller.synthesize(session, seats[0], seats[1])
            print_colored("\nSynthesis:", "cyan")
            print(text)
        else:
            print_colored("Unknown command", "yellow")
    except DebateError as e:
        print_colored(f"⚠️ {e}", "yellow")
    return True


async def run_board(controller: DebateController, user_context: str) -> DebateSession:
    """Match and run both rounds, printing the result"""
    session = controller.new_session(user_context)
    await controller.match(session)
    print_colored(" vs ".join(agent.name for agent in session.agents), "magenta")
    print("-" * 60)

    await controller.run_round_one(session)
    await controller.run_round_two(session)
    print_rounds(session)
    return session


async def main():
    print_header()

    print_colored("What is your goal?", "yellow")
    target = input("> ").strip()
    if not target:
        print_colored("A goal is required.", "red")
        return
    print_colored("What resources do you have?", "yellow")
    assets = input("> ").strip()
    print_colored("What worries you?", "yellow")
    risks = input("> ").strip()

    client = GroqClient()
    board = BoardService(client, store=InMemoryProfileStore())
    controller = DebateController(board)

    try:
        session = await run_board(controller, build_user_context(target, assets, risks))
    except ConfigError as e:
        print_colored(f"\n⚠️ {e}", "red")
        return

    while True:
        print_menu(session)
        command = await asyncio.get_running_loop().run_in_executor(None, input, "> ")
        if not await handle_command(controller, session, command.strip()):
            break

    print("\n" + "=" * 60)
    print_colored("Board closed.", "cyan")
    print(f"Chips left: {session.chips}")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    load_dotenv()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
