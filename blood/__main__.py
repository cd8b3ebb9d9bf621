"""CLI: python -m blood <file.bd>"""

from blood.main import main

main()
