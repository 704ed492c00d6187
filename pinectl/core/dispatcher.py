import argparse
from typing import Any, Protocol

from pineipc.core.client import PineClient


class CommandHandler(Protocol):
    def __call__(
        self,
        client: PineClient,
        namespace: argparse.Namespace,
    ) -> dict[str, Any]:
        ...


class CommandDispatcher:
    """Routes a parsed sub-command to the handler registered for it."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}

    def dispatch(
        self,
        name: str,
        client: PineClient,
        namespace: argparse.Namespace
    ) -> dict[str, Any]:
        handler = self._handlers.get(name)
        if handler is None:
            raise RuntimeError(f"Unknown command '{name}'")
        return handler(client, namespace)

    def command(self, name: str):
        def decorator(func: CommandHandler) -> CommandHandler:
            self._handlers[name] = func
            return func

        return decorator
