#!/usr/bin/env python3
import argparse
import sys

from interp import BFError, Interpreter, cleanup, parse
from tape import TapeError


def has_input(source):
    return "," in source


def read_input(stream):
    line = stream.readline()
    if line.endswith("\n"):
        line = line[:-1]
    return line


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"{value} is not a positive integer")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bfinterp", description="Run a Brainfuck program"
    )
    parser.add_argument("file", help="input source file")
    parser.add_argument(
        "-b", "--bits", type=int, default=8, help="size of cells in bits (default: 8)"
    )
    parser.add_argument(
        "--ops", action="store_true", help="print the compacted instructions before running"
    )
    parser.add_argument(
        "--dump", action="store_true", help="print the memory tape after running"
    )
    parser.add_argument(
        "--debug", action="store_true", help="trace every instruction to stderr"
    )
    parser.add_argument(
        "--max-steps", type=positive_int, default=None, help="abort after this many instructions"
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        with open(args.file, "r") as f:
            source = f.read()
    except OSError as err:
        print(f"bfinterp: could not read file {args.file}: {err}", file=sys.stderr)
        return 1

    data_input = ""
    if has_input(source):
        data_input = read_input(sys.stdin)

    try:
        bf = Interpreter(args.bits, debug=args.debug)
    except TapeError as err:
        print(f"bfinterp: {err}", file=sys.stderr)
        return 1

    if args.ops:
        for op in parse(cleanup(source)):
            print(op)

    status = 0
    try:
        bf.execute(source, data_input, buffer_output=False, max_steps=args.max_steps)
    except BFError as err:
        sys.stdout.flush()
        print(f"bfinterp: execute brainfuck: {err}", file=sys.stderr)
        status = 1

    if args.dump:
        print(bf.dump())

    return status


if __name__ == "__main__":
    sys.exit(main())
