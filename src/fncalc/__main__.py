#!/usr/bin/env python3
"""
CLI for the fnCalc scripting calculator.

Usage:
    python -m fncalc                 # interactive prompt
    python -m fncalc FILE            # evaluate a script file
    python -m fncalc --config FILE   # use limits from a YAML file
    python -m fncalc --history FILE  # prompt history file

At the prompt, end a line with a backslash to continue the input on the next
line. The commands `q`, `Q` and `exit` leave, `clear` clears the terminal and
`reset` forgets all variables and functions.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import yaml
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory

from .config import EngineConfig, load_config
from .engine import Engine


BANNER = "[fnCalc v1.0]"
PROMPT = ">>> "

QUIT_COMMANDS = ("q", "Q", "exit")

HISTORY_FILE = Path.home() / ".fncalc_history"

LANGUAGE_HELP = """\
fnCalc is a miniature scripting language suitable for calculations. You can
define and call functions, use variables and create branches and loops.

Variables:
    x = 42
    y = x + 1

Functions:
    fn power(base, exponent) {
        if exponent == 0 {
            return 1
        }
        return base * power(base, exponent - 1)
    }
    power(2, 8)

Branches and loops:
    if x > 10 { x = x - 10 } else { x = x + 1 }
    while x < 5 { x = x + 1; print x; if x == 3 { break } }

Operators:
    + - * / % ^ and or not < > == != =

Math functions (radians; the d suffix takes or returns degrees):
    sin cos tan asin acos atan  sind cosd tand asind acosd atand
    ln log abs pi
"""


def read_input(read: Callable[[str], str]) -> str:
    """Read one input, joining lines that end with a backslash."""
    lines = []
    while True:
        line = read(PROMPT).rstrip("\n")
        if line.endswith("\\"):
            lines.append(line[:-1])
            continue
        lines.append(line)
        text = "\n".join(lines)
        if text:
            return text
        lines = []


def run_file(engine: Engine, path: Path) -> int:
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output = engine.process(source)
    if output:
        print(output)
    return 0


def run_repl(engine: Engine, read: Optional[Callable[[str], str]] = None,
             history: Optional[Path] = None) -> int:
    """
    Interactive prompt. Without `read`, lines come from a prompt_toolkit
    session whose history persists in `history`.
    """
    if read is None:
        session = PromptSession(history=FileHistory(str(history or HISTORY_FILE)))
        read = session.prompt

    print(BANNER)
    while True:
        try:
            text = read_input(read)
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        if text in QUIT_COMMANDS:
            return 0
        if text == "clear":
            print("\x1bc", end="", flush=True)
            continue
        if text == "reset":
            engine.reset()
            continue

        output = engine.process(text)
        if output:
            print(output)


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='python -m fncalc',
        description='fnCalc scripting calculator',
        epilog=LANGUAGE_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('file', nargs='?', help='Script file to evaluate')
    parser.add_argument('--config', metavar='FILE',
                        help='YAML file with loop_limit, call_limit, display_places')
    parser.add_argument('--history', metavar='FILE', type=Path, default=HISTORY_FILE,
                        help='Prompt history file (default: ~/.fncalc_history)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    config = EngineConfig()
    if args.config:
        try:
            config = load_config(args.config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    engine = Engine(config)
    if args.file:
        return run_file(engine, Path(args.file))
    return run_repl(engine, history=args.history)


if __name__ == '__main__':
    sys.exit(main())
