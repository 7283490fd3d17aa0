"""
Build state carried between the stages of the matcha CLI

Each stage takes a ProgramState and returns an updated copy:

    env_check -> source_parse -> deck_compile -> results_report
"""

import dataclasses
from argparse import Namespace
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar


PS = TypeVar("PS", bound="ProgramState")

Stage = Callable[["ProgramState"], "ProgramState"]


@dataclass
class ProgramState:
    """
    Everything one deck build knows, stage by stage.

    Set from the command line:
        inputdir, outputdir, verbosity, inputFile, varsFile, outputSubdir

    Set by env_check:
        inputSourceFile: Deck file inside inputdir
        varsSourceFile: Variables file inside inputdir, None without --varsFile
        htmlOutputdir: outputdir / outputSubdir, created if missing
        envOK: True once the paths above check out

    Set by source_parse:
        sourceText: Deck text
        templateVars: Global template variables from the YAML mapping

    Set by deck_compile:
        compileResult: Dict returned by Compiler.compile()

    stagesRun lists the stages applied so far, in order.
    """

    inputdir: Optional[Path] = None
    outputdir: Optional[Path] = None
    verbosity: int = 1
    inputFile: str = ""
    varsFile: Optional[str] = None
    outputSubdir: str = "."

    envOK: bool = False
    inputSourceFile: Path = Path("/")
    varsSourceFile: Optional[Path] = None
    htmlOutputdir: Path = Path("/")

    sourceText: Optional[str] = None
    templateVars: Dict[str, Any] = field(default_factory=dict)
    compileResult: Optional[Dict[str, Any]] = None

    stagesRun: List[str] = field(default_factory=list)

    @classmethod
    def state_createFromNamespace(cls, options: Namespace, inputdir: Path, outputdir: Path) -> "ProgramState":
        """
        Initial state from parsed arguments and the plugin directories.

        Arguments that are not state fields (e.g. --version) are ignored.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        values = {name: value for name, value in vars(options).items() if name in known}
        values.update(inputdir=inputdir, outputdir=outputdir)
        return cls(**values)

    def copy(self: PS) -> PS:
        """Shallow copy; the stage list is duplicated so copies do not share it"""
        return dataclasses.replace(self, stagesRun=list(self.stagesRun))


def pipeline(initial_state: ProgramState, *stages: Stage) -> ProgramState:
    """
    Feed the state through each stage in turn.

        pipeline(state, env_check, source_parse)

    is source_parse(env_check(state)), with each stage's name appended to
    the returned state's stagesRun.
    """
    state = initial_state
    for stage in stages:
        state = stage(state)
        state.stagesRun.append(stage.__name__)
    return state
