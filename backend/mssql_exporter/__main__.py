"""``python -m mssql_exporter [serve|docs]``."""

import argparse
import sys

from mssql_exporter import docs, main


def run(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="mssql-exporter", description=__doc__)
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=("serve", "docs"),
        help="serve scrapes (default) or print the query catalog",
    )
    args = parser.parse_args(argv)
    if args.command == "docs":
        return docs.main()
    return main.main()


if __name__ == "__main__":
    sys.exit(run())
