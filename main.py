"""
textkit: a small demo of helmsman (count, grep, reverse, copy).

    python main.py --count -i README.md
    python main.py -p helmsman -i DESIGN.md -i SPEC_FULL.md
    cat main.py | python main.py --reverse
"""
import contextlib
import logging
import sys

from helmsman import *

__prog__ = "textkit"

logger = logging.getLogger(__prog__)

app = App(
    "textkit",
    descr="Small text utilities over files or standard input.",
    fields=(
        flag("count", "c", "count", help="Count lines in the input"),
        string("pattern", "p", "pattern", help="Print lines containing PATTERN"),
        flag("reverse", "r", "reverse", help="Print lines in reverse order"),
    ),
    version=collect("0.1.0", "Copyright (c) 2025 Eiko Reishin", "MIT License", "https://opensource.org/licenses/MIT"),
    supplement="examples:\n  textkit --count -i notes.txt\n  textkit -p TODO -i a.py -i b.py -o todo.txt",
)


def _sources(config):
    """Yield (label, lines) for every input, standard input when none is given."""
    if not config.input:
        logger.info("reading from standard input")
        yield "<stdin>", sys.stdin.read().splitlines()
        return
    for path in config.input:
        logger.info("processing %s", path)
        yield str(path), path.read_text(encoding="utf-8").splitlines()


@contextlib.contextmanager
def _sink(config):
    if config.output is None:
        yield sys.stdout
        return
    with config.output.open("w", encoding="utf-8") as stream:
        yield stream


@app.command(when=lambda config: config.count, priority=2)
def count(config):
    """Count lines in each input."""
    if config.dry_run:
        for label in [str(path) for path in config.input] or ["<stdin>"]:
            print(f"Would count lines in: {label}")
        return
    with _sink(config) as stream:
        for label, lines in _sources(config):
            if config.verbosity > 0:
                print(f"{label}: {len(lines)} lines", file=stream)
            else:
                print(len(lines), file=stream)


@app.command(when=lambda config: config.pattern is not None, priority=3)
def grep(config):
    """Print lines containing the pattern."""
    with _sink(config) as stream:
        for label, lines in _sources(config):
            for line in lines:
                if config.pattern in line:
                    print(f"{label}: {line}" if config.verbosity > 0 else line, file=stream)


@app.command(when=lambda config: config.reverse, priority=4)
def reverse(config):
    """Print lines in reverse order."""
    with _sink(config) as stream:
        for _, lines in _sources(config):
            for line in reversed(lines):
                print(line, file=stream)


@app.default
def copy(config):
    """Copy the input to the output."""
    with _sink(config) as stream:
        for _, lines in _sources(config):
            for line in lines:
                print(line, file=stream)


if __name__ == '__main__':
    app.main()
