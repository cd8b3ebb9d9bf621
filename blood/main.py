"""Runs .bd files with the blood interpreter. Also uses the error handling context manager. Called from the blood
executable script (or python -m blood).

Basic program flow:
    1. Lexer: converts source text into tokens, handed out one at a time
    2. Parser: recursive descent over the tokens, produces a list of statement nodes (see blood/grammar/nodes.py)
    3. Interpreter: walks the statements in order; there is no compilation step
"""

import argparse
import logging
import sys

from blood.lang.error import ErrorHandler
from blood.lang.interpreter import Interpreter
from blood.lang.session import Session


def main(argv=None):
    """Runs the blood interpreter on a single file."""
    with ErrorHandler() as error_handler:
        parser = argparse.ArgumentParser(prog="blood", description="Run a blood script.")
        parser.add_argument("file", help="file to interpret and run")
        parser.add_argument("--ast", action="store_true", help="print the parsed syntax tree instead of running")
        parser.add_argument("--no-color", action="store_true", help="do not colour diagnostics")
        parser.add_argument("-v", "--verbose", action="store_true", help="log interpreter activity to stderr")
        parser.add_argument("--max-call-depth", type=int, default=Interpreter.MAX_CALL_DEPTH, metavar="N",
                            help=f"maximum nesting of function calls (default: {Interpreter.MAX_CALL_DEPTH})")
        args = parser.parse_args(argv)

        error_handler.no_color = args.no_color
        logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr,
                            format="%(levelname)s %(name)s: %(message)s")

        sess = Session(error_handler, args.file, max_call_depth=args.max_call_depth)
        if args.ast:
            print(sess.display())
        else:
            sess.run()


if __name__ == "__main__":
    main()
