"""
edubasic - EduBASIC Command-Line Interface
==========================================

Runs, checks, formats and tokenizes EduBASIC programs from the terminal.

Usage Examples
--------------
Run a program:
    $ edubasic run hello.bas

Feed INPUT statements and save the graphics canvas:
    $ edubasic run guess.bas --input 42 --input 17 --canvas out.png

Report errors without running:
    $ edubasic check game.bas

Rewrite a file in canonical form:
    $ edubasic format --in-place game.bas

Verbose mode (debug logging):
    $ edubasic -v run hello.bas
"""

import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from edubasic import __version__
from edubasic.cli.errors import ExitCode, handle_cli_exception
from edubasic.config import get_default_config
from edubasic.errors import TokenizeError
from edubasic.interpreter import Diagnostic, Interpreter
from edubasic.lexer import TokenType, tokenize

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores options common to every command.
    """

    def __init__(self) -> None:
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(name)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)

SOURCE_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def report_diagnostics(source_file: Path, diagnostics: list[Diagnostic]) -> None:
    """Print diagnostics as file:line: error: message."""
    for diagnostic in diagnostics:
        click.echo(f"{source_file}:{diagnostic.line + 1}: error: {diagnostic.message}", err=True)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable debug logging",
)
@click.version_option(version=__version__, prog_name="edubasic")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Run and inspect EduBASIC programs.

    EduBASIC is a line-oriented, BASIC-derived teaching language with
    structured blocks, SUBs, TRY/CATCH, graphics, sound and files.
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Run Command
# =============================================================================

@main.command()
@click.argument("source_file", type=SOURCE_FILE)
@click.option(
    "--max-steps",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many statements (default: EDUBASIC_MAX_STEPS or 1000000)",
)
@click.option(
    "--canvas",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Save the graphics canvas as PNG when the run finishes",
)
@click.option(
    "--input", "inputs",
    multiple=True,
    help="Line of input for INPUT statements (can be repeated)",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed the random number generator",
)
@click.option(
    "--mount",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Copy a host directory into the program's file system",
)
@click.option(
    "--save-files",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write the program's files to a host directory when the run finishes",
)
@pass_context
def run(
    ctx: Context,
    source_file: Path,
    max_steps: Optional[int],
    canvas: Optional[Path],
    inputs: tuple[str, ...],
    seed: Optional[int],
    mount: Optional[Path],
    save_files: Optional[Path],
) -> None:
    """
    Run a program.

    SOURCE_FILE is the EduBASIC program (.bas) to run. PRINT output goes
    to stdout, runtime errors to stderr.

    \b
    Examples:
        edubasic run hello.bas
        edubasic run guess.bas --input 42 --seed 7
        edubasic run spiral.bas --canvas spiral.png
        edubasic run notes.bas --mount data/ --save-files out/
    """
    try:
        config = dataclasses.replace(get_default_config(), echo_console=True)
        if seed is not None:
            config.rng_seed = seed
        if max_steps is not None:
            config.max_steps = max_steps

        interpreter = Interpreter(config)
        if mount is not None:
            count = interpreter.file_system.load_directory(mount)
            logger.debug("Mounted %d files from %s", count, mount)

        diagnostics = interpreter.load(source_file.read_text(encoding="utf-8"))
        if diagnostics:
            report_diagnostics(source_file, diagnostics)
            sys.exit(ExitCode.PROGRAM_ERROR)

        interpreter.queue_input(*inputs)
        result = interpreter.run()

        if canvas is not None:
            interpreter.devices.graphics.save(canvas)
            logger.debug("Saved canvas to %s", canvas)
        if save_files is not None:
            count = interpreter.file_system.save_directory(save_files)
            logger.debug("Saved %d files to %s", count, save_files)

        if result.error is not None:
            # The console has already shown the error
            sys.exit(ExitCode.PROGRAM_ERROR)
        if result.step_limit_reached:
            click.echo(f"Stopped after {result.steps} steps (step limit reached)", err=True)
            sys.exit(ExitCode.PROGRAM_ERROR)

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Check Command
# =============================================================================

@main.command()
@click.argument("source_file", type=SOURCE_FILE)
@pass_context
def check(ctx: Context, source_file: Path) -> None:
    """
    Report parse and structural errors.

    Every problem is printed as FILE:LINE: error: MESSAGE. The exit code
    is 1 when any problem is found.
    """
    try:
        interpreter = Interpreter(dataclasses.replace(get_default_config(), echo_console=False))
        diagnostics = interpreter.load(source_file.read_text(encoding="utf-8"))
        if diagnostics:
            report_diagnostics(source_file, diagnostics)
            click.echo(f"{len(diagnostics)} error(s) found", err=True)
            sys.exit(ExitCode.PROGRAM_ERROR)
        click.echo(f"{source_file}: OK ({interpreter.program.line_count()} lines)")
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Format Command
# =============================================================================

@main.command("format")
@click.argument("source_file", type=SOURCE_FILE)
@click.option(
    "-i", "--in-place",
    is_flag=True,
    help="Rewrite the file instead of printing",
)
@pass_context
def format_command(ctx: Context, source_file: Path, in_place: bool) -> None:
    """
    Print the canonical, indented form of a program.

    Keywords are upper-cased, spacing is normalized and blocks are
    indented. Lines that do not parse are kept as written.
    """
    try:
        interpreter = Interpreter(dataclasses.replace(get_default_config(), echo_console=False))
        interpreter.load(source_file.read_text(encoding="utf-8"))
        formatted = interpreter.formatted_source()
        if in_place:
            source_file.write_text(formatted, encoding="utf-8")
            click.echo(f"Formatted {source_file}")
        else:
            click.echo(formatted, nl=False)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Tokens Command
# =============================================================================

@main.command()
@click.argument("source_file", type=SOURCE_FILE)
@pass_context
def tokens(ctx: Context, source_file: Path) -> None:
    """
    Dump the token stream, one token per output line.

    Lines that fail to tokenize are reported and the exit code is 1.
    """
    try:
        failed = False
        lines = source_file.read_text(encoding="utf-8").splitlines()
        for number, text in enumerate(lines, start=1):
            try:
                line_tokens = tokenize(text, str(source_file))
            except TokenizeError as e:
                click.echo(f"{source_file}:{number}: error: {e.message}", err=True)
                failed = True
                continue
            for token in line_tokens:
                if token.type == TokenType.EOF:
                    continue
                click.echo(f"{number}:{token.column}\t{token.type.name}\t{token.value!r}")
        if failed:
            sys.exit(ExitCode.PROGRAM_ERROR)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


if __name__ == "__main__":
    main()
