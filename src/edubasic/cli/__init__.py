"""
EduBASIC Command-Line Interface
===============================

The ``edubasic`` command, a Click group with these subcommands:

- **run**: execute a program, optionally saving the graphics canvas
- **check**: report parse and structural errors
- **format**: print the canonical, indented program text
- **tokens**: dump the token stream
"""

__all__ = ["main"]
