"""Error handling for the blood language. Only GenericExceptions should be encountered during running: if another type
of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Every error is fatal to the run (no recovery, no resumption), so exceptions are raised where the problem is detected and
caught exactly once, by the ErrorHandler wrapping the whole session.
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error message so that it can be used to throw a blood error. msg is a str.format template and exprs
    are the offending snippets substituted into it.
    """
    category = "error"

    def __init__(self, msg, exprs=None, internal=False):
        if exprs is None:
            exprs = []
        elif not isinstance(exprs, (list, tuple)):
            exprs = [exprs]

        self.template = msg
        self.exprs = [str(expr) for expr in exprs]
        self.msg = msg.format(*self.exprs)
        self.internal = internal

        super().__init__(self.msg)

    def highlighted(self, no_color=False):
        """Returns self.msg with expr snippets bolded."""
        return self.template.format(*(colored(expr, attrs=["bold"], no_color=no_color) for expr in self.exprs))


class SyntaxException(GenericException):
    """Malformed source: an unrecognized character or a token that does not fit the grammar."""
    category = "syntax error"


class RuntimeException(GenericException):
    """Raised while executing a well-formed program."""
    category = "runtime error"


class ErrorHandler:
    """Context manager that will silently suppress Python errors and raise custom blood errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, fatal=True, no_color=False, stream=None):
        self.fatal = fatal
        self.no_color = no_color
        self.stream = stream  # defaults to sys.stderr at write time
        self.path = None

    def register_file(self, path):
        """Registers path as the file currently being run. Used as the message prefix."""
        self.path = path

    def _prefix(self):
        if self.path is None:
            return ""
        return colored(f"{self.path}: ", attrs=["bold"], no_color=self.no_color)

    def _write(self, line):
        print(line, file=self.stream if self.stream is not None else sys.stderr)

    def warn(self, *args, **kwargs):
        """Generates and prints a warning message based on args. Never stops the run."""
        warning = GenericException(*args, **kwargs)

        msg = self._prefix() + colored("warning: ", ErrorHandler.WARNING, attrs=["bold"], no_color=self.no_color)
        self._write(msg + warning.highlighted(self.no_color))

    def throw(self, error):
        """Prints error, then exits with status 1 if this handler is fatal. error must be a GenericException."""
        sys.stdout.flush()  # keep already printed output ahead of the diagnostic

        msg = self._prefix()
        if error.internal:
            msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"], no_color=self.no_color)

        msg += colored(f"{error.category}: ", ErrorHandler.ERROR, attrs=["bold"], no_color=self.no_color)
        self._write(msg + error.highlighted(self.no_color))

        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is None:
            return False
        elif exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt"))
        elif issubclass(exc_type, SystemExit):
            do_exit = True
        elif issubclass(exc_type, RecursionError):
            self.throw(GenericException("maximum recursion depth exceeded"))
        elif issubclass(exc_type, GenericException):
            self.throw(exc_val)
        else:
            self.throw(GenericException("unknown error: '{}: {}'", (exc_type.__name__, exc_val), internal=True))
            do_exit = True

        return not do_exit
