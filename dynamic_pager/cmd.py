"""
Command-line interface for dynamic-pager.

Drives a simulated pager widget from the terminal, with the same add and
delete buttons as the sample application.
"""

import asyncio
import logging

import typer

from dynamic_pager.binder import PagerBinder
from dynamic_pager.commands import create_pager_commands
from dynamic_pager.controller import PagerController
from dynamic_pager.simulator import SimulatedPager

logger = logging.getLogger(__name__)

ACTIONS = ("add-prev", "add-next", "del-prev", "del-next")

cli = typer.Typer(
    name="dynamic-pager",
    help="Dynamic pager - insert and delete pages while the pager keeps its place",
    no_args_is_help=True,
)


class PagerSession:
    """A controller bound to a simulated pager, plus its button commands."""

    def __init__(self, item_count: int, timeout: float = 1.0) -> None:
        self.timeout = timeout
        self.controller: PagerController[str] = PagerController(
            name="cli",
            initial_items=[f"Sample Item {i + 1}" for i in range(item_count)],
        )
        self.pager = SimulatedPager(lambda: len(self.controller.get_items()))
        self.binder = PagerBinder(self.controller, self.pager)
        self.commands = create_pager_commands(self.controller, str)

    async def start(self) -> None:
        self.binder.bind()
        await self.settle()

    async def perform(self, action: str) -> None:
        page = self.pager.current_page
        item = self.controller.get_item_or_none(page)
        logger.info("%s on page %d", action, page)

        if action == "add-prev":
            self.commands.add_go_previous(page)
        elif action == "add-next":
            self.commands.add_go_next(page)
        elif action in ("del-prev", "del-next"):
            if item is None:
                typer.echo("Nothing to delete")
                return
            if action == "del-prev":
                self.commands.delete_go_previous(page, item)
            else:
                self.commands.delete_go_next(page, item)
        else:
            raise ValueError(f"Unknown action: {action}")

        await self.settle()

    async def settle(self) -> None:
        if not await self.binder.wait_until_idle(timeout=self.timeout):
            typer.echo("❌ The pager did not settle")
            raise typer.Exit(1)

    def render(self) -> str:
        items = self.controller.get_items()
        if not items:
            return "(no pages)"
        lines = []
        for page, item in enumerate(items):
            marker = ">" if page == self.pager.current_page else " "
            lines.append(f"{marker} {page + 1}. {item}")
        return "\n".join(lines)

    def close(self) -> None:
        self.binder.unbind()
        self.controller.dispose()


def configure_logging(level: str) -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        typer.echo(f"❌ Unknown log level: {level}")
        raise typer.Exit(1)
    logging.basicConfig(
        level=numeric_level, format="%(levelname)s %(name)s: %(message)s"
    )


@cli.callback()
def configure(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="DYNAMIC_PAGER_LOG_LEVEL",
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    ),
):
    configure_logging(log_level)


@cli.command("run")
def run(
    actions: list[str] = typer.Argument(
        ..., help=f"Actions to perform in order: {', '.join(ACTIONS)}"
    ),
    items: int = typer.Option(
        3, "--items", envvar="DYNAMIC_PAGER_ITEMS", min=0, help="Initial number of pages"
    ),
):
    """Perform a scripted list of actions and print the resulting pages."""
    unknown = [action for action in actions if action not in ACTIONS]
    if unknown:
        typer.echo(f"❌ Unknown action(s): {', '.join(unknown)}")
        typer.echo(f"Available actions: {', '.join(ACTIONS)}")
        raise typer.Exit(1)

    async def _run():
        session = PagerSession(items)
        try:
            await session.start()
            for action in actions:
                await session.perform(action)
            return session.render()
        finally:
            session.close()

    typer.echo(asyncio.run(_run()))


@cli.command("demo")
def demo(
    items: int = typer.Option(
        3, "--items", envvar="DYNAMIC_PAGER_ITEMS", min=0, help="Initial number of pages"
    ),
):
    """Interactive pager: type an action after each prompt."""

    async def _demo():
        session = PagerSession(items)
        try:
            await session.start()
            typer.echo(session.render())
            while True:
                action = typer.prompt(
                    f"Action ({', '.join(ACTIONS)}, show, quit)", default="show"
                ).strip()
                if action == "quit":
                    break
                if action == "show":
                    typer.echo(session.render())
                    continue
                if action not in ACTIONS:
                    typer.echo(f"Unknown action: {action}")
                    continue
                await session.perform(action)
                typer.echo(session.render())
        finally:
            session.close()

    asyncio.run(_demo())
    typer.echo("👋 Bye")


def main():
    """Main CLI entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        typer.echo("\n👋 Shutting down...")
        raise typer.Exit(0)


if __name__ == "__main__":
    main()
