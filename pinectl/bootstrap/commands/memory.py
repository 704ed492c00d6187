import argparse
from typing import Any

from pinectl.bootstrap.deps import get_dispatcher
from pinectl.core.parser import format_address, parse_int, parse_width
from pineipc.core.client import PineClient

dispatcher = get_dispatcher()


@dispatcher.command("read")
def read(client: PineClient, namespace: argparse.Namespace) -> dict[str, Any]:
    address = parse_int(namespace.address, "address")
    width = parse_width(namespace.width)

    value = client.read(address, width)
    return {
        "address": format_address(address),
        "width": width,
        "value": value,
    }


@dispatcher.command("write")
def write(client: PineClient, namespace: argparse.Namespace) -> dict[str, Any]:
    address = parse_int(namespace.address, "address")
    value = parse_int(namespace.value)
    width = parse_width(namespace.width)

    client.write(address, value, width)
    return {
        "address": format_address(address),
        "width": width,
        "written": value,
    }


@dispatcher.command("dump")
def dump(client: PineClient, namespace: argparse.Namespace) -> dict[str, Any]:
    address = parse_int(namespace.address, "address")
    count = parse_int(namespace.count, "count")
    width = parse_width(namespace.width)
    if count == 0:
        raise ValueError("count must be at least 1")

    with client.batch() as session:
        for i in range(count):
            session.append_read(address + i * width, width)

    with session.finalized as batch:
        client.send_batch(batch)
        values = [
            {"address": format_address(address + i * width), "value": batch.value(i, width)}
            for i in range(count)
        ]

    return {
        "address": format_address(address),
        "width": width,
        "count": count,
        "values": values,
    }
