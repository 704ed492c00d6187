import argparse
from functools import lru_cache

from pinectl.core.cmd import PineCmd
from pinectl.core.dispatcher import CommandDispatcher
from pinectl.core.ports.render import Renderer
from pinectl.core.utils import resolve_config
from pinectl.infra.format_renderer import JsonRenderer, YamlRenderer
from pineipc.bootstrap.deps import get_settings
from pineipc.core.client import PineClient


@lru_cache
def get_dispatcher() -> CommandDispatcher:
    return CommandDispatcher()


@lru_cache
def get_cli_args() -> argparse.Namespace:
    return PineCmd.argparser().parse_args()


def get_renderer(output: str) -> Renderer:
    if output == "json":
        return JsonRenderer()
    return YamlRenderer()


@lru_cache
def get_cli() -> PineCmd:
    args = get_cli_args()
    try:
        config = resolve_config(get_settings().to_client_config(), args)
    except ValueError as ex:
        raise SystemExit(f"pinectl: {ex}")

    return PineCmd(
        client=PineClient(config),
        dispatcher=get_dispatcher(),
        renderer=get_renderer(args.output),
        args=args,
    )
