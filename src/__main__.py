#!/usr/bin/env python3
"""
matcha - Progressive-disclosure presentation compiler

Compiles an annotated Markdown-like deck into static slides whose content
is revealed step by step: chunks separated by step markers, and
highlight spans inside each chunk.

As with other ChRIS-style tools, the ChRIS "plugin" pattern is used here
as a general purpose application frame.

Source layout:
    component definitions, global styles and global usages
    ---global
    slide one
    ---
    slide two

Usage:
    matcha inputdir/ outputdir/ --inputFile deck.md

    index.html and deck.json are written to outputdir/.

Examples:
    # Basic compilation
    matcha . output/ --inputFile deck.md

    # Global template variables from YAML, into a subdirectory
    matcha . output/ --inputFile deck.md --varsFile vars.yaml --outputSubdir talk/

    # Verbose output
    matcha . output/ --inputFile deck.md -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

import yaml
from chris_plugin import chris_plugin

from . import __version__
from .lib import Compiler, LOG, state_connectToLogger
from .models import ProgramState, pipeline


DISPLAY_TITLE = r"""
                 _       _
  _ __ ___   __ _| |_ ___| |__   __ _
 | '_ ` _ \ / _` | __/ __| '_ \ / _` |
 | | | | | | (_| | || (__| | | | (_| |
 |_| |_| |_|\__,_|\__\___|_| |_|\__,_|

  Progressive-disclosure presentation compiler
"""

parser = ArgumentParser(
    description="matcha - progressive-disclosure presentation compiler",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input deck file (relative to inputdir)"
)

parser.add_argument(
    "--varsFile",
    default=None,
    type=str,
    help="YAML mapping of global template variables (relative to inputdir)",
)

parser.add_argument(
    "--outputSubdir",
    default=".",
    type=str,
    help="Subdirectory within outputdir for the compiled deck",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def file_require(inputdir: Path, name: str, what: str) -> Path:
    """inputdir / name, or exit 1 when it is not a file"""
    path = inputdir / name
    if not path.is_file():
        print(f"Error: {what} not found: {path}", file=sys.stderr)
        sys.exit(1)
    LOG(f"{what}: {path}", level=2)
    return path


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Resolve the deck and variables files and create the output directory.

    Returns:
        ProgramState with inputSourceFile, varsSourceFile, htmlOutputdir
        and envOK set

    Exits:
        1 if the deck or the variables file is missing
    """
    state = inputstate.copy()
    LOG(DISPLAY_TITLE, level=2)

    state.inputSourceFile = file_require(state.inputdir, state.inputFile, "Deck file")
    if state.varsFile:
        state.varsSourceFile = file_require(state.inputdir, state.varsFile, "Variables file")

    state.htmlOutputdir = state.outputdir / state.outputSubdir
    state.htmlOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Writing to {state.htmlOutputdir}", level=2)

    state.envOK = True
    return state


def source_parse(inputstate: ProgramState) -> ProgramState:
    """
    Read the deck source and the optional global variables.

    Returns:
        ProgramState with sourceText and templateVars set

    Exits:
        1 if a file cannot be read or the variables file is not a YAML mapping
    """
    state = inputstate.copy()

    try:
        state.sourceText = state.inputSourceFile.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error reading deck: {e}", file=sys.stderr)
        sys.exit(1)
    LOG(f"Read {state.inputSourceFile.name} ({len(state.sourceText)} characters)", level=1)

    if state.varsSourceFile is not None:
        try:
            loaded = yaml.safe_load(state.varsSourceFile.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            print(f"Error reading variables file: {e}", file=sys.stderr)
            sys.exit(1)
        if not isinstance(loaded, dict):
            print("Error: Variables file must hold a mapping", file=sys.stderr)
            sys.exit(1)
        state.templateVars = {str(key): value for key, value in loaded.items()}
        LOG(f"Loaded {len(state.templateVars)} global variable(s)", level=2)

    return state


def deck_compile(inputstate: ProgramState) -> ProgramState:
    """
    Build the deck and write index.html and deck.json.

    Returns:
        ProgramState with compileResult set (status, output_file,
        deck_file, slide_count, diagnostics)

    Exits:
        1 if there is no source or the output cannot be written
    """
    state = inputstate.copy()

    if state.sourceText is None:
        print("Error: deck_compile ran before source_parse", file=sys.stderr)
        sys.exit(1)

    compiler = Compiler(state.sourceText, vars=state.templateVars)
    try:
        state.compileResult = compiler.compile(str(state.htmlOutputdir))
    except OSError as e:
        print(f"Error writing {state.htmlOutputdir}: {e}", file=sys.stderr)
        sys.exit(1)
    LOG(f"Built {state.compileResult['slide_count']} slide(s)", level=1)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Summarize the build for the user.

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if compileResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.compileResult:
        print("Error: no compile result to report", file=sys.stderr)
        sys.exit(1)

    LOG("\n✓ Compilation successful!", level=1)
    LOG(f"  Output: {state.compileResult['output_file']}", level=1)
    LOG(f"  Deck:   {state.compileResult['deck_file']}", level=1)
    LOG(f"  Slides: {state.compileResult['slide_count']}", level=1)
    diagnostics = state.compileResult["diagnostics"]
    if diagnostics:
        LOG(f"  {len(diagnostics)} warning(s):", level=1)
        for diagnostic in diagnostics:
            LOG(f"    {diagnostic}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="matcha - progressive-disclosure presentation compiler",
    category="Visualization",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Compile a matcha deck.

    Pipeline:
        1. env_check: validate paths
        2. source_parse: read the deck and global variables
        3. deck_compile: build and write the output
        4. results_report: summarize, including diagnostics

    Args:
        options: CLI arguments (inputFile, varsFile, outputSubdir, verbosity)
        inputdir: Directory holding the deck
        outputdir: Directory the compiled deck is written to
    """
    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    state_connectToLogger(state)

    pipeline(state, env_check, source_parse, deck_compile, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
