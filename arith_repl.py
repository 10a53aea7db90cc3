import argparse
import asyncio
import logging
import sys
from pathlib import Path

from arith.arith_config import load_config, build_evaluator
from arith.arith_errors import ParseError
from arith.arith_runtime import ExpressionRunner

logger = logging.getLogger("arith")

# A basic awaitable input prompt.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return await loop.run_in_executor(None, sys.stdin.readline)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Evaluate arithmetic expressions")
    parser.add_argument("file", nargs="?", help="evaluate each line of FILE instead of starting the REPL")
    parser.add_argument("--config", help="path to a YAML config file")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--tokens", action="store_true", help="also print the postfix form of each expression")
    return parser


def _print_result(runner: ExpressionRunner, line: str, show_tokens: bool) -> bool:
    """Evaluates one line and prints the outcome; returns False on error."""
    if show_tokens:
        try:
            print(f"postfix: {runner.format_postfix(line)}")
        except ParseError:
            # Reported by handle_expression below.
            pass
    result = runner.handle_expression(line)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return False
    print(runner.format_value(result.value))
    return True


def run_file(runner: ExpressionRunner, file_path: str, show_tokens: bool = False) -> int:
    """Evaluate every non-blank line of a file; returns the exit status."""
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        return 1
    status = 0
    for line in source.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if not _print_result(runner, line, show_tokens):
            status = 1
    return status


async def main(argv=None):
    """Run a file when provided, otherwise start the interactive REPL."""
    args = build_arg_parser().parse_args(sys.argv[1:] if argv is None else argv)
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: config file not found: {args.config}", file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: invalid config: {e}", file=sys.stderr)
        raise SystemExit(2)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        evaluator = build_evaluator(config)
    except ValueError as e:
        print(f"Error: invalid config: {e}", file=sys.stderr)
        raise SystemExit(2)

    runner = ExpressionRunner(evaluator, precision=config.precision)
    logger.debug("evaluator ready: %r", evaluator)

    if args.file:
        status = run_file(runner, args.file, args.tokens)
        if status:
            raise SystemExit(status)
        return

    print("arith REPL v0.1")
    print("Enter an expression; an empty line or Ctrl+D quits.")

    while True:
        try:
            raw = await ainput(config.prompt)
            if raw == "":
                raise EOFError
            line = raw.strip()
            if not line:
                break
            _print_result(runner, line, args.tokens)
        except EOFError:
            print("\nExiting.")
            break


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")


if __name__ == "__main__":
    run()
