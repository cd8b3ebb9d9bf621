import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from blood.main import main


class MainTestCase(unittest.TestCase):

    def write_script(self, src):
        fd, path = tempfile.mkstemp(suffix=".bd")
        with os.fdopen(fd, "w") as file:
            file.write(src)
        self.addCleanup(os.remove, path)
        return path

    def run_main(self, *argv):
        """Returns (exit code, stdout, stderr). Exit code is 0 when main returns normally."""
        stdout, stderr = io.StringIO(), io.StringIO()
        code = 0
        with redirect_stdout(stdout), redirect_stderr(stderr):
            try:
                main(["--no-color", *argv])
            except SystemExit as e:
                code = e.code
        return code, stdout.getvalue(), stderr.getvalue()

    def test_success(self):
        path = self.write_script("let x = 5 print(x + 3)")
        self.assertEqual((0, "8\n", ""), self.run_main(path))

    def test_runtime_error(self):
        path = self.write_script("print(1 / 0)")
        code, stdout, stderr = self.run_main(path)
        self.assertEqual(1, code)
        self.assertEqual("", stdout)
        self.assertEqual(f"{path}: runtime error: division by zero\n", stderr)

    def test_output_before_error(self):
        path = self.write_script("print(1)\nprint(nil + 1)\nprint(2)")
        code, stdout, stderr = self.run_main(path)
        self.assertEqual((1, "1\n"), (code, stdout))
        self.assertIn("runtime error: operands of '+' must be integers, got nil and integer", stderr)

    def test_syntax_error(self):
        for src in ["let = 1", "print(1) @", "if true then print(1)"]:
            path = self.write_script(src)
            code, stdout, stderr = self.run_main(path)
            self.assertEqual((1, ""), (code, stdout), src)
            self.assertIn("syntax error: ", stderr, src)

    def test_missing_file(self):
        missing = os.path.join(tempfile.gettempdir(), "does-not-exist-blood.bd")
        code, stdout, stderr = self.run_main(missing)
        self.assertEqual(1, code)
        self.assertIn("could not be opened", stderr)

    def test_missing_argument(self):
        code, stdout, stderr = self.run_main()
        self.assertEqual(2, code)
        self.assertIn("usage: blood", stderr)

    def test_ast(self):
        path = self.write_script("print(1)")
        code, stdout, stderr = self.run_main("--ast", path)
        self.assertEqual((0, "PrintStmt(expr=[\n    Number(value=1)\n])\n", ""), (code, stdout, stderr))

    def test_max_call_depth(self):
        path = self.write_script("fn f(n) do return f(n + 1) end f(0)")
        code, stdout, stderr = self.run_main("--max-call-depth", "20", path)
        self.assertEqual(1, code)
        self.assertIn("maximum call depth exceeded", stderr)

    def test_top_level_return(self):
        path = self.write_script("if true then return 1 end")
        code, __, stderr = self.run_main(path)
        self.assertEqual(1, code)
        self.assertIn("'return' used outside of function", stderr)


if __name__ == '__main__':
    unittest.main()
