import argparse
import cmd
import logging
import shlex

from pinectl.core.dispatcher import CommandDispatcher
from pinectl.core.ports.render import Renderer
from pineipc.core.client import PineClient
from pineipc.core.errors import PineError


class PineCmd(cmd.Cmd):
    intro = "Entering pinectl interactive mode. Type 'exit' or 'quit' to leave."
    prompt = "pinectl> "

    def __init__(
        self,
        client: PineClient,
        dispatcher: CommandDispatcher,
        renderer: Renderer,
        args: argparse.Namespace,
    ) -> None:
        super().__init__()

        self._client = client
        self._dispatcher = dispatcher
        self._renderer = renderer
        self._args = args
        self._argparser = self.argparser()
        self._logger = logging.getLogger("pinectl.cmd")

        address = client.config.address
        target = "%s:%d" % address if isinstance(address, tuple) else address
        self.prompt = f"pinectl({target})> "

    @property
    def args(self) -> argparse.Namespace:
        return self._args

    @property
    def interactive(self) -> bool:
        return self._args.namespace is None

    def close(self) -> None:
        self._client.close()

    def handle(self, namespace: argparse.Namespace) -> bool:
        try:
            data = self._dispatcher.dispatch(
                namespace.namespace,
                client=self._client,
                namespace=namespace,
            )
        except (PineError, ValueError, RuntimeError, TimeoutError) as ex:
            self._logger.debug(f"Command '{namespace.namespace}' failed", exc_info=ex)
            print(f"error: {ex}")
            return False

        print(self._renderer.render(data))
        return True

    def handle_line(self, command: str, line: str) -> bool:
        try:
            argv = shlex.split(line)
        except ValueError as ex:
            print(f"error: {ex}")
            return False

        try:
            namespace = self._argparser.parse_args([command, *argv])
        except SystemExit:
            # argparse already printed the usage
            return False

        return self.handle(namespace)

    def do_read(self, line):
        """read <address> [--width {1,2,4,8}]"""
        self.handle_line("read", line)

    def do_write(self, line):
        """write <address> <value> [--width {1,2,4,8}]"""
        self.handle_line("write", line)

    def do_dump(self, line):
        """dump <address> <count> [--width {1,2,4,8}]"""
        self.handle_line("dump", line)

    def do_exit(self, arg):
        return True

    def do_quit(self, arg):
        return True

    def do_EOF(self, arg):
        print()
        return True

    def emptyline(self):
        return False

    @staticmethod
    def argparser() -> argparse.ArgumentParser:
        global_opts = argparse.ArgumentParser(
            prog="pinectl",
            description="Read and write emulated memory through a PINE relay endpoint.",
        )
        global_opts.add_argument("--socket", help="Unix domain socket of the relay endpoint")
        global_opts.add_argument("--host", help="Host of the relay's TCP endpoint")
        global_opts.add_argument("--port", type=int, help="Port of the relay's TCP endpoint")
        global_opts.add_argument("--timeout", type=float, help="Socket timeout in seconds")
        global_opts.add_argument("--output", choices=["yaml", "json"], default="yaml")
        global_opts.add_argument(
            "-l", "--log-level",
            default="WARNING",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        )

        sub = global_opts.add_subparsers(dest="namespace")

        read = sub.add_parser("read", help="Read one value")
        read.add_argument("address")
        read.add_argument("-w", "--width", default="4")

        write = sub.add_parser("write", help="Write one value")
        write.add_argument("address")
        write.add_argument("value")
        write.add_argument("-w", "--width", default="4")

        dump = sub.add_parser("dump", help="Read consecutive values in one batch")
        dump.add_argument("address")
        dump.add_argument("count")
        dump.add_argument("-w", "--width", default="4")

        return global_opts
