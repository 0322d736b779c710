"""Wait-time module application dependencies."""

from typing import NoReturn

from src.modules.waits.application.wait_board import WaitBoard


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_wait_board() -> WaitBoard:
    _missing_dependency("WaitBoard")
