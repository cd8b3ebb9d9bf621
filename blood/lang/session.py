"""Session control for the blood language: reads one source file and pushes it through the whole pipeline,
lexer -> parser -> interpreter.
"""

import logging

from blood.lang.error import GenericException
from blood.lang.interpreter import Interpreter
from blood.lang.lexical import Lexer
from blood.lang.parser import Parser

logger = logging.getLogger(__name__)


class Session:
    """Governs a single blood run: one file, one Interpreter, executed once to completion."""
    SRC_NAME = "<string>"  # path reported when source is given directly

    def __init__(self, error_handler, path=None, src=None, out=None, max_call_depth=None):
        """Exactly one of path and src should be given. out is where print writes (sys.stdout by default)."""
        self.error_handler = error_handler
        self.path = path if path is not None else Session.SRC_NAME
        self.error_handler.register_file(self.path)

        if src is None:
            if path is None:
                raise GenericException("no source file given", internal=True)
            try:
                with open(path, "r") as file:
                    src = file.read()
            except (OSError, UnicodeDecodeError):
                raise GenericException("'{}' could not be opened", path)
            logger.debug("read %d characters from %s", len(src), path)

        self.src = src
        self.interpreter = Interpreter(out=out, max_call_depth=max_call_depth)
        self._program = None

    @property
    def program(self):
        """The parsed program. Parsing is lazy and happens at most once."""
        if self._program is None:
            parser = Parser(Lexer(self.src, self.error_handler))
            self._program = parser.parse_program()
            logger.debug("parsed %d top-level statement(s) from %s", len(self._program), self.path)
        return self._program

    def display(self):
        """Returns the parsed program as an indented tree."""
        return "\n".join(stmt.display() for stmt in self.program)

    def run(self):
        """Parses (if not done already) and executes the program. Will raise any errors that are encountered."""
        program = self.program
        self.interpreter.interpret(program)
        logger.debug("finished running %s", self.path)
