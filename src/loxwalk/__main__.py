import argparse
import logging
import sys

from loxwalk import lox as loxlib


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loxwalk", description="Run Lox scripts")
    parser.add_argument("script", nargs="?", help="script to run (starts a prompt when omitted)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="interpreter log level (logs go to stderr)",
    )
    parser.add_argument(
        "--print-ast",
        action="store_true",
        help="print the parsed syntax tree instead of running the script",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    lox = loxlib.Lox(print_ast=args.print_ast)

    if args.script is not None:
        sys.exit(lox.run_file(args.script))
    else:
        lox.run_prompt()


if __name__ == "__main__":
    main()
