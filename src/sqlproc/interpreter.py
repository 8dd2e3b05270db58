"""Execution engine for procedure scripts.

A script is loaded into a Program once, then run instruction by
instruction. Each instruction has its placeholders resolved against the
run's parameters and is handed to the handler registered for its command.
Handlers are plain functions of the interpreter and an explicit
ExecutionState; they return None to continue with the next instruction,
or the index to jump to.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from sqlproc.cache import ResultsetCache, Rows
from sqlproc.client import QueryClient, QueryClientError, Resultset
from sqlproc.commands import PASSIVE, REACTIVATION, BlankValue, Command, Gate
from sqlproc.conditions import evaluate_condition, render_condition
from sqlproc.errors import CallSite, DiagnosticAbort, ExecutionError, ProcedureError, SourceLoadError, ValidationError
from sqlproc.parsing.script_parser import DEFAULT_MARKER, ScriptParser, validate_instruction, validate_program
from sqlproc.program import Instruction, Program
from sqlproc.resolver import ResolvedStatement, fill_placeholders, resolve
from sqlproc.source import ScriptSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCLUDE_DEPTH = 32
MAX_PROCESS_DEPTH = 32

_SETTING_RE = re.compile(r"\s*(?:blank\s*(?:=\s*)?)?(empty|null|zero)\s*$", re.IGNORECASE)


@dataclass
class ExecutionState:
    """Mutable state of one run."""

    cursor: int = 0
    gate: Gate = Gate.RUN
    passed: list[Any] = field(default_factory=list)  # positional ($N) parameters
    custom: dict[str, Any] = field(default_factory=dict)  # named ($!name) parameters
    last_resultset: Resultset | None = None
    blank: BlankValue = BlankValue.EMPTY


Handler = Callable[["Interpreter", ExecutionState, ResolvedStatement], "int | None"]


class Interpreter:
    """Loads and runs procedure scripts against one query client."""

    def __init__(
        self,
        client: QueryClient,
        source: ScriptSource,
        *,
        marker: str = DEFAULT_MARKER,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
    ) -> None:
        self.client = client
        self.source = source
        self.parser = ScriptParser(marker)
        self.max_include_depth = max_include_depth
        self.program: Program | None = None
        self.cache = ResultsetCache()
        self.state = ExecutionState()
        self.depth = 0  # include nesting level
        self.process_depth = 0
        self.origin: CallSite | None = None

    # --- Loading ---

    def load(self, path: str, origin: CallSite | None = None) -> Program:
        """Load and validate a script from the source, replacing the program."""
        if origin is not None:
            self.origin = origin
        try:
            text = self.source.read(path)
        except ProcedureError as e:
            e.attach(source=path, origin=origin)
            raise
        return self.load_text(text, source=path, origin=origin)

    def load_text(self, text: str, source: str = "<string>", origin: CallSite | None = None) -> Program:
        """Parse and validate script text, replacing the program."""
        program = self.parser.parse_program(text, source)
        try:
            validate_program(program)
        except ProcedureError as e:
            e.attach(origin=origin)
            raise
        self.program = program
        logger.info("Loaded %s (%d instruction%s)", source, len(program), "" if len(program) == 1 else "s")
        return program

    def command(self, keyword: str | Command, statement: str) -> Instruction:
        """Append one instruction to the current program."""
        command = keyword if isinstance(keyword, Command) else Command.lookup(keyword)
        if self.program is None:
            self.program = Program(source="<commands>")
        if command is None:
            raise ValidationError(f"unknown command {keyword!r}", source=self.program.source)
        instruction = Instruction(command=command, statement=statement)
        validate_instruction(instruction, len(self.program), self.program.source)
        self.program.append(instruction)
        return instruction

    # --- Running ---

    def run(
        self,
        program: Program | None = None,
        args: Sequence[Any] = (),
        custom: Mapping[str, Any] | None = None,
        origin: CallSite | None = None,
    ) -> Resultset | None:
        """Run a program from the top and return the last resultset."""
        if program is not None:
            validate_program(program)
            self.program = program
        if origin is not None:
            self.origin = origin
        if self.program is None or len(self.program) == 0:
            source = self.program.source if self.program is not None else None
            raise ExecutionError("File has no commands to process", source=source, origin=self.origin)

        self.state = ExecutionState(passed=list(args), custom=dict(custom or {}))
        state = self.state
        program = self.program
        while state.cursor < len(program):
            index = state.cursor
            instruction = program[index]
            if instruction.command in PASSIVE:
                state.cursor += 1
                continue
            jump = self._dispatch(index, instruction)
            if jump is None:
                state.cursor += 1
            else:
                logger.debug("Jumping from #%d to #%d", index, jump)
                state.cursor = jump
        return state.last_resultset

    def run_at(
        self,
        index: int,
        args: Sequence[Any] | None = None,
        custom: Mapping[str, Any] | None = None,
    ) -> Resultset | None:
        """Dispatch the single instruction at an absolute index.

        Out-of-range indexes are a no-op. Supplied positional arguments
        replace the current ones; custom arguments are merged. Jumps are
        ignored since no cursor is involved.
        """
        if self.program is None:
            return None
        instruction = self.program.get(index)
        if instruction is None or instruction.command not in HANDLERS:
            return None
        if args:
            self.state.passed = list(args)
        if custom:
            self.state.custom.update(custom)
        if not self._dispatches(instruction):
            return None
        self._dispatch(index, instruction)
        return self.state.last_resultset

    def _dispatches(self, instruction: Instruction) -> bool:
        """Whether the skip gate lets an instruction through."""
        return self.state.gate is Gate.RUN or instruction.command in REACTIVATION

    def _dispatch(self, index: int, instruction: Instruction) -> int | None:
        """Resolve and run one instruction, honouring the skip gate."""
        state = self.state
        if not self._dispatches(instruction):
            logger.debug("Skipping #%d [%s]", index, instruction.command.value)
            return None

        resolved = resolve(instruction.statement, state.passed, state.custom, self.client.bind_marker)
        logger.debug("Dispatching #%d [%s] %s", index, instruction.command.value, resolved.text)
        handler = HANDLERS[instruction.command]
        try:
            return handler(self, state, resolved)
        except QueryClientError as e:
            raise self._context(ExecutionError(str(e)), index, instruction, resolved) from e
        except ProcedureError as e:
            raise self._context(e, index, instruction, resolved)

    def _context(
        self,
        error: ProcedureError,
        index: int,
        instruction: Instruction,
        resolved: ResolvedStatement,
    ) -> ProcedureError:
        error.attach(
            source=self.program.source if self.program is not None else None,
            index=index,
            line=instruction.line,
            command=instruction.command.value,
            statement=instruction.statement,
            parameters=resolved.args,
            origin=self.origin,
        )
        return error

    def spawn(self) -> Interpreter:
        """Create an interpreter for an included script.

        It shares the client and source but owns its program, state and cache.
        """
        child = Interpreter(
            self.client,
            self.source,
            marker=self.parser.marker,
            max_include_depth=self.max_include_depth,
        )
        child.depth = self.depth + 1
        child.origin = self.origin
        return child

    # --- Captures ---

    def get_capture(self, index: int) -> Rows:
        """Return the rows of a captured resultset, or an empty list."""
        return self.cache.get(index)

    @property
    def captures(self) -> list[Rows]:
        return self.cache.all()

    def clear_cache(self) -> None:
        self.cache.reset()

    def reset(self) -> None:
        """Forget the program, the captures and the execution state."""
        self.program = None
        self.cache.reset()
        self.state = ExecutionState()


# --- Handlers ---


def _index_operand(resolved: ResolvedStatement, marker: str) -> tuple[int, list[Any]]:
    """Split a statement into a target index and the arguments after it."""
    parts = resolved.text.split(None, 1)
    if not parts:
        raise ExecutionError("an instruction index is required")
    args = list(resolved.args)
    token = parts[0]
    if token == marker and args:
        value = args.pop(0)
    else:
        value = token
    try:
        return int(value), args
    except (TypeError, ValueError):
        raise ExecutionError(f"invalid instruction index {value!r}") from None


def _execute(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    state.last_resultset = interp.client.query(resolved.text, resolved.args)
    return None


def _capture(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    resultset = interp.client.query(resolved.text, resolved.args)
    state.last_resultset = resultset
    interp.cache.append(resultset.rows)
    return None


def _replace(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    resultset = interp.client.query(resolved.text, resolved.args)
    state.last_resultset = resultset
    last = resultset.last
    state.passed = list(last.values()) if last is not None else []
    return None


def _declare(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    resultset = interp.client.query(resolved.text, resolved.args)
    state.last_resultset = resultset
    first = resultset.first
    if first is not None:
        state.custom.update(first)
    return None


def _proceed(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    condition = render_condition(resolved.statement, resolved.args, state.blank)
    try:
        passed = evaluate_condition(condition)
    except (SyntaxError, RuntimeError) as e:
        raise ExecutionError(f"invalid condition ({condition}): {e}") from e
    state.gate = Gate.RUN if passed else Gate.SKIP
    return None


def _forward(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    target, _ = _index_operand(resolved, interp.client.bind_marker)
    if target < 0:
        raise ExecutionError(f"cannot forward to negative index {target}")
    # Jumping past the end finishes the run
    return min(target, len(interp.program)) if interp.program is not None else target


def _process(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    target, args = _index_operand(resolved, interp.client.bind_marker)
    instruction = interp.program.get(target) if interp.program is not None else None
    if instruction is None:
        logger.debug("process: no instruction at #%d", target)
        return None
    if interp.process_depth >= MAX_PROCESS_DEPTH:
        raise ExecutionError(f"process nesting deeper than {MAX_PROCESS_DEPTH} levels")
    if args:
        state.passed = args
    interp.process_depth += 1
    try:
        interp._dispatch(target, instruction)
    finally:
        interp.process_depth -= 1
    return None


def _include(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    parts = resolved.text.split(None, 1)
    if not parts:
        raise ExecutionError("include needs a script name")
    if interp.depth >= interp.max_include_depth:
        raise ExecutionError(f"include nesting deeper than {interp.max_include_depth} levels")
    name = parts[0]
    logger.info("Including %s (depth %d)", name, interp.depth + 1)
    child = interp.spawn()
    try:
        child.load(name)
    except SourceLoadError as e:
        # Reported against the include line, not the missing script
        raise SourceLoadError(f"cannot include {name}: {e.detail}") from e
    child.run(args=resolved.args, custom=dict(state.custom))
    return None


def _setting(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    m = _SETTING_RE.match(resolved.text)
    if not m:
        raise ExecutionError(f"unknown setting: {resolved.text}")
    state.blank = BlankValue(m.group(1).lower())
    return None


def _examine(interp: Interpreter, state: ExecutionState, resolved: ResolvedStatement) -> int | None:
    literals = [interp.client.quote(arg) for arg in resolved.args]
    raise DiagnosticAbort(fill_placeholders(resolved.statement, literals))


HANDLERS: dict[Command, Handler] = {
    Command.EXECUTE: _execute,
    Command.CAPTURE: _capture,
    Command.REPLACE: _replace,
    Command.DECLARE: _declare,
    Command.PROCEED: _proceed,
    Command.IFVALID: _proceed,
    Command.VALIDIF: _proceed,
    Command.FORWARD: _forward,
    Command.PROCESS: _process,
    # Only reached through index-addressed execution
    Command.STORAGE: _execute,
    Command.INCLUDE: _include,
    Command.SETTING: _setting,
    Command.EXAMINE: _examine,
}
