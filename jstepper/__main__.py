"""CLI entry point for the jstepper interpreter.

Usage:
    python -m jstepper [-v|-vv|-vvv] [--html PAGE] [--answer TEXT ...] [--click ID ...] <program.js>
    python -m jstepper [-v...] --emit-ast <program.js>
    python -m jstepper [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --html        Attach a page built from this HTML file
  --answer      Scripted reply to the next prompt() (can be repeated)
  --click       Click the element with this id once the program has run (can be repeated)
  --max-steps   Stop after this many steps per run
  --emit-ast    Parse the given .js file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Every step is printed as ``[line N] explanation`` followed by the log lines
it produced. Debug information is written to `debug.txt` in the current
directory when verbosity is greater than zero.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .ast_json import ast_to_obj, ast_from_obj
from .errors import ConstructionError
from .interpreter import Interpreter
from .parser import parse_program
from .surface import Surface


def _read(path_str: str) -> str:
    path = Path(path_str)
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _drive(interpreter: Interpreter, max_steps: Optional[int], printed: int = 0) -> int:
    """Step to completion, echoing each step and any log lines not printed yet."""
    state = interpreter.get_state()
    for line in state.logs[printed:]:
        print(f"    {line}")
    printed = len(state.logs)
    taken = 0
    while not state.finished:
        if max_steps is not None and taken >= max_steps:
            print(f"Stopped after {taken} steps")
            break
        before = interpreter.steps
        interpreter.step()
        if interpreter.steps == before:
            continue
        taken += 1
        print(f"[line {state.current_line}] {state.explanation}")
        for line in state.logs[printed:]:
            print(f"    {line}")
        printed = len(state.logs)
    return printed


_EPILOG = (
    "'==' compares with Python equality instead of JavaScript coercion, so '5' == 5 "
    "is false; only null and undefined are loosely equal to each other. prompt() answers "
    "are strings; convert them with parseInt or parseFloat before comparing them to numbers."
)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Step-by-step JavaScript interpreter", epilog=_EPILOG)
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ast', metavar='JS_FILE', help='emit AST JSON for the given .js file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('--html', metavar='HTML_FILE', help='page the program runs against')
    parser.add_argument('--answer', action='append', default=[], help='reply to the next prompt(); answers are strings')
    parser.add_argument('--click', action='append', default=[], metavar='ID', help='click an element after the run')
    parser.add_argument('--max-steps', type=int, default=None, help='step limit per run')
    parser.add_argument('program', nargs='?', help='JavaScript program file to execute')
    args = parser.parse_args(argv)

    handler = _debug_handler() if args.v > 0 else None
    try:
        _run(args, parser)
    finally:
        if handler is not None:
            logging.getLogger('jstepper').removeHandler(handler)
            logging.getLogger('jstepper').setLevel(logging.NOTSET)
            handler.close()


def _debug_handler() -> logging.Handler:
    handler = logging.FileHandler('debug.txt', mode='w', encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(name)s %(levelname)s: %(message)s'))
    package_logger = logging.getLogger('jstepper')
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    return handler


def _run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = _read(args.emit_ast)
        try:
            ast_program = parse_program(source)
        except ConstructionError as e:
            print(str(e), file=sys.stderr)
            sys.exit(1)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(ast_program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    surface = None
    if args.html or args.answer or args.click:
        markup = _read(args.html) if args.html else ''
        surface = Surface.from_html(markup, answers=args.answer)

    try:
        if args.ast:
            data = json.loads(_read(args.ast))
            interpreter = Interpreter.from_ast(ast_from_obj(data), surface, debug_level=args.v)
        else:
            if not args.program:
                parser.error('missing program file; or use --emit-ast/--ast')
            interpreter = Interpreter(_read(args.program), surface, debug_level=args.v)
    except (ConstructionError, ValueError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    state = interpreter.get_state()
    printed = _drive(interpreter, args.max_steps)
    for element_id in args.click:
        if state.error is not None:
            break
        try:
            surface.click(element_id)
        except KeyError as e:
            print(f"Error: {e.args[0]}", file=sys.stderr)
            sys.exit(1)
        printed = _drive(interpreter, args.max_steps, printed)

    if surface is not None and surface.alerts:
        print("Alerts: " + ' | '.join(surface.alerts))
    if state.error is not None:
        print(f"Runtime error: {state.error}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
