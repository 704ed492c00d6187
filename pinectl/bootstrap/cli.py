import sys

from pinectl.bootstrap.deps import get_cli
from pineipc.core.helpers.utils import scan, setup_logging


@scan("pinectl.bootstrap.commands")
def main():
    cli = get_cli()
    setup_logging(cli.args.log_level)

    ok = True
    try:
        if cli.interactive:
            cli.cmdloop()
        else:
            ok = cli.handle(cli.args)
    finally:
        cli.close()

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
