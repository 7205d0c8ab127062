"""
CLI interface for mdsurgeon.

One sub-command per core operation. The CLI owns everything the core doesn't:
argument parsing, whole-file reads and writes, stdin, and picking an output
format. Failures surface as "error: <code>" plus a message on stderr, exit 1.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from . import __version__
from .config import get_config
from .core import (
    append_content,
    concat,
    create,
    empty_section,
    h1_title,
    meta_delete,
    meta_get,
    meta_set,
    outline,
    read_section,
    remove_section,
    search,
    summarize_matches,
    write_section,
)
from .dom import Document
from .errors import FILE_NOT_FOUND, IO_ERROR, PARSE_ERROR, MdError
from .formats import json as _json  # noqa: F401 - ensure json format is registered
from .formats import text as _text  # noqa: F401 - ensure text format is registered
from .formats.base import OutputFormat, registry
from .ids import is_valid_id
from .parser import parse_document

logger = logging.getLogger(__name__)


def _common_options() -> argparse.ArgumentParser:
    """Flags accepted by every sub-command."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--json",
        action="store_const",
        const="json",
        dest="format",
        help="Shorthand for --format=json",
    )
    common.add_argument(
        "--format",
        choices=registry.names,
        dest="format",
        help="Output format (default: from config, else text)",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging on stderr",
    )
    return common


def build_parser() -> tuple[argparse.ArgumentParser, dict[str, argparse.ArgumentParser]]:
    """Top-level parser (help, --version) plus one parser per sub-command."""
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="md",
        description="Read and surgically edit Markdown files section by section",
    )
    parser.add_argument("--version", "-v", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", metavar="<command>")
    commands = sub.choices

    def command(name: str, **kwargs) -> argparse.ArgumentParser:
        # declared flags match exactly, so "--de" stays text rather than --deep
        return sub.add_parser(name, parents=[common], allow_abbrev=False, **kwargs)

    p = command("outline", help="List sections")
    p.add_argument("file")
    p.add_argument("--after", metavar="ID", help="Only subsections of this section")
    p.add_argument("--last", action="store_true", help="Only the last section")
    p.add_argument("--count", action="store_true", help="Only the number of sections")

    p = command("read", help="Read section content")
    p.add_argument("file")
    p.add_argument("id")
    p.add_argument("--deep", action="store_true", help="Include subsections")

    p = command("write", help="Replace section content")
    p.add_argument("file")
    p.add_argument("id")
    p.add_argument("content", nargs="?", help="New content (stdin if omitted)")
    p.add_argument("--deep", action="store_true", help="Replace subsections too")

    p = command("append", help="Insert content into a file or section")
    p.add_argument("file")
    p.add_argument("rest", nargs="*", metavar="[id] [content]")
    p.add_argument("--deep", action="store_true", help="Insert after subsections")
    p.add_argument("--before", action="store_true", help="Insert before the section (or file start)")

    p = command("empty", help="Remove section content, keep header")
    p.add_argument("file")
    p.add_argument("id")
    p.add_argument("--deep", action="store_true", help="Empty subsections too")

    p = command("remove", help="Remove section and its subsections")
    p.add_argument("file")
    p.add_argument("id")

    p = command("search", help="Search for a substring")
    p.add_argument("file")
    p.add_argument("pattern", nargs="?")
    p.add_argument("--summary", action="store_true", help="Group matches by section")

    p = command("concat", help="Concatenate files")
    p.add_argument("files", nargs="+")
    p.add_argument(
        "--shift",
        type=int,
        default=0,
        metavar="N",
        help="Demote headers by N levels (--shift alone means 1)",
    )

    p = command("meta", help="Show or edit frontmatter")
    p.add_argument("file")
    p.add_argument("key", nargs="?")
    p.add_argument("value", nargs="?")
    p.add_argument("--set", action="store_true", help="Set <key> to <value>")
    p.add_argument("--del", "--delete", action="store_true", dest="delete", help="Delete <key>")
    p.add_argument("--h1", action="store_true", help="Print the first H1 title")

    p = command("create", help="Create a new file")
    p.add_argument("file")
    p.add_argument("content", nargs="?")
    p.add_argument("--title", help="H1 title")
    p.add_argument(
        "--meta",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Frontmatter entry (repeatable)",
    )
    p.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser, commands


def _normalize_argv(args: list[str]) -> list[str]:
    # bare --shift means one level; --shift=N is the explicit form
    return ["--shift=1" if arg == "--shift" else arg for arg in args]


# positionals that may hold arbitrary user text, in fill order
FREE_POSITIONALS = {
    "write": ("content",),
    "append": ("rest",),
    "search": ("pattern",),
    "meta": ("key", "value"),
    "create": ("content",),
}


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    The first bare word picks the sub-command; everything else, flags before
    it included, goes to that sub-command's parser. Intermixed parsing lets
    flags sit between positionals (md meta notes.md --set key value).
    """
    if args is None:
        args = sys.argv[1:]
    args = _normalize_argv(args)
    parser, commands = build_parser()

    for index, arg in enumerate(args):
        if not arg.startswith("-"):
            break
    else:
        # only flags: --help / --version exit here, anything else is an error
        parser.parse_args(args)
        return argparse.Namespace(command=None)

    if arg not in commands:
        parser.error(f"unknown command '{arg}' (choose from {', '.join(commands)})")

    command = commands[arg]
    parsed, extras = command.parse_known_intermixed_args(args[:index] + args[index + 1:])
    _restore_dash_words(parsed, extras, FREE_POSITIONALS.get(arg, ()), command)
    parsed.command = arg
    return parsed


def _restore_dash_words(
    parsed: argparse.Namespace,
    extras: list[str],
    dests: tuple[str, ...],
    command: argparse.ArgumentParser,
) -> None:
    """
    Hand words argparse took for unknown options back to the free positionals.

    Content such as '---' (a horizontal rule) or '-x' looks like a flag; only
    the flags a command declares are flags, everything else is text.
    """
    for word in extras:
        for dest in dests:
            current = getattr(parsed, dest)
            if isinstance(current, list):
                current.append(word)
                break
            if current is None:
                setattr(parsed, dest, word)
                break
        else:
            command.error(f"unrecognized arguments: {word}")


# -- file I/O --------------------------------------------------------------


def read_file(path: str, encoding: str = "utf-8") -> str:
    try:
        with open(path, encoding=encoding) as f:
            return f.read()
    except FileNotFoundError as e:
        raise MdError(FILE_NOT_FOUND, f"File not found: {path}", path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise MdError(IO_ERROR, f"Failed to read file: {path}", path) from e


def write_file(path: str, text: str, encoding: str = "utf-8") -> None:
    try:
        with open(path, "w", encoding=encoding) as f:
            f.write(text)
    except OSError as e:
        raise MdError(IO_ERROR, f"Failed to write file: {path}", path) from e


def read_stdin() -> str:
    return sys.stdin.read()


# -- commands --------------------------------------------------------------


class Context:
    """Per-invocation settings resolved from config and flags."""

    def __init__(self, parsed: argparse.Namespace):
        cfg = get_config()
        self.encoding = cfg.io.encoding
        self.expand = cfg.magic.enabled
        fmt = registry.get(parsed.format or cfg.output.format)
        if fmt is None:
            raise MdError(PARSE_ERROR, f"Unknown output format: {parsed.format}")
        self.fmt: OutputFormat = fmt

    def load(self, path: str) -> Document:
        return parse_document(read_file(path, self.encoding))

    def save(self, path: str, lines: list[str]) -> None:
        write_file(path, "\n".join(lines), self.encoding)
        logger.debug("wrote %d lines to %s", len(lines), path)


def cmd_outline(parsed: argparse.Namespace, ctx: Context) -> str:
    doc = ctx.load(parsed.file)
    sections = outline(doc, after=parsed.after, file=parsed.file)
    if parsed.count:
        return ctx.fmt.count(len(sections))
    if parsed.last:
        return ctx.fmt.section(sections[-1] if sections else None)
    return ctx.fmt.outline(sections)


def cmd_read(parsed: argparse.Namespace, ctx: Context) -> str:
    doc = ctx.load(parsed.file)
    return ctx.fmt.read(read_section(doc, parsed.id, deep=parsed.deep, file=parsed.file))


def cmd_write(parsed: argparse.Namespace, ctx: Context) -> str:
    doc = ctx.load(parsed.file)
    content = parsed.content if parsed.content is not None else read_stdin()
    lines, result = write_section(
        doc, parsed.id, content, deep=parsed.deep, expand=ctx.expand, file=parsed.file
    )
    ctx.save(parsed.file, lines)
    return ctx.fmt.mutation(result)


def cmd_append(parsed: argparse.Namespace, ctx: Context) -> str:
    rest = parsed.rest
    if len(rest) > 2:
        raise MdError(PARSE_ERROR, "Usage: md append [--deep] [--before] <file> [id] [content]")

    # the second positional is an id only if it has the shape of one
    has_id = bool(rest) and is_valid_id(rest[0])
    id = rest[0] if has_id else None
    remaining = rest[1:] if has_id else rest
    content = remaining[0] if remaining else read_stdin()

    doc = ctx.load(parsed.file)
    lines, result = append_content(
        doc, id, content,
        deep=parsed.deep, before=parsed.before, expand=ctx.expand, file=parsed.file,
    )
    ctx.save(parsed.file, lines)
    return ctx.fmt.mutation(result)


def cmd_empty(parsed: argparse.Namespace, ctx: Context) -> str:
    doc = ctx.load(parsed.file)
    lines, result = empty_section(doc, parsed.id, deep=parsed.deep, file=parsed.file)
    ctx.save(parsed.file, lines)
    return ctx.fmt.mutation(result)


def cmd_remove(parsed: argparse.Namespace, ctx: Context) -> str:
    doc = ctx.load(parsed.file)
    lines, result = remove_section(doc, parsed.id, file=parsed.file)
    ctx.save(parsed.file, lines)
    return ctx.fmt.mutation(result)


def cmd_search(parsed: argparse.Namespace, ctx: Context) -> str:
    if parsed.pattern is None:
        raise MdError(PARSE_ERROR, "Usage: md search [--summary] <file> <pattern>")
    doc = ctx.load(parsed.file)
    matches = search(doc, parsed.pattern)
    if parsed.summary:
        return ctx.fmt.summary(summarize_matches(doc, matches))
    return ctx.fmt.matches(matches)


def cmd_concat(parsed: argparse.Namespace, ctx: Context) -> str:
    texts = [read_file(path, ctx.encoding) for path in parsed.files]
    return concat(texts, shift=parsed.shift)


def cmd_meta(parsed: argparse.Namespace, ctx: Context) -> str:
    doc = ctx.load(parsed.file)

    if parsed.h1:
        return h1_title(doc)

    if parsed.delete:
        if not parsed.key:
            raise MdError(PARSE_ERROR, "Usage: md meta <file> --del <key>")
        updated = meta_delete(doc, parsed.key)
        ctx.save(parsed.file, updated.lines)
        return f"deleted {parsed.key}"

    if parsed.set:
        if not parsed.key or parsed.value is None:
            raise MdError(PARSE_ERROR, "Usage: md meta <file> --set <key> <value>")
        updated = meta_set(doc, parsed.key, parsed.value, expand=ctx.expand)
        ctx.save(parsed.file, updated.lines)
        return f"set {parsed.key}"

    return meta_get(doc, parsed.key)


def _split_meta(entries: list[str]) -> list[tuple[str, str]]:
    pairs = []
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep or not key:
            raise MdError(PARSE_ERROR, f"Invalid --meta entry '{entry}', expected key=value")
        pairs.append((key, value))
    return pairs


def cmd_create(parsed: argparse.Namespace, ctx: Context) -> str:
    if os.path.exists(parsed.file) and not parsed.force:
        raise MdError(
            IO_ERROR,
            f"File already exists: {parsed.file}. Use --force to overwrite.",
            parsed.file,
        )
    text = create(
        title=parsed.title,
        meta=_split_meta(parsed.meta),
        content=parsed.content,
        expand=ctx.expand,
    )
    write_file(parsed.file, text, ctx.encoding)
    return f"created {parsed.file}"


COMMANDS = {
    "outline": cmd_outline,
    "read": cmd_read,
    "write": cmd_write,
    "append": cmd_append,
    "empty": cmd_empty,
    "remove": cmd_remove,
    "search": cmd_search,
    "concat": cmd_concat,
    "meta": cmd_meta,
    "create": cmd_create,
}


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_config().logging.level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    if args is None:
        args = sys.argv[1:]

    if not args:
        build_parser()[0].print_help()
        return 0

    parsed = parse_args(args)
    if parsed.command is None:
        build_parser()[0].print_help()
        return 1

    configure_logging(parsed.verbose)

    try:
        ctx = Context(parsed)
        output = COMMANDS[parsed.command](parsed, ctx)
    except MdError as e:
        print(e.format(), file=sys.stderr)
        return 1

    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
