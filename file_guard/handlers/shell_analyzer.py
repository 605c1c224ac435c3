"""Extract implied file operations from shell commands.

Static, best-effort analysis of a raw command string: which paths it
reads, writes and deletes. Nothing is executed. Variable expansion,
command substitution, globbing and here-doc bodies are not modelled;
unknown commands contribute nothing.

Usage:
    ops = extract_file_operations("cat .env | grep KEY > out.txt")
    ops.reads   # [".env"]
    ops.writes  # ["out.txt"]
"""
import os
import re
from dataclasses import dataclass, field

# Command families, keyed by base name of the first token
READ_COMMANDS = frozenset({"cat", "head", "tail", "less", "more"})
# First positional argument is the search pattern, the rest are files
GREP_COMMANDS = frozenset({"grep", "egrep", "fgrep", "rg"})
DELETE_COMMANDS = frozenset({"rm", "unlink", "shred"})
COPY_MOVE_COMMANDS = frozenset({"cp", "mv"})

FLAG_PATTERN = re.compile(r"-[A-Za-z0-9]+")
SED_EXPRESSION = re.compile(r"[sy]/.*/.*/", re.DOTALL)
# Whitespace-separated words; quoted spans (with whitespace) stay in one word
TOKEN_PATTERN = re.compile(r"""(?:[^\s"']+|"[^"]*"|'[^']*')+""")
# Longest operators first
REDIRECT_OPERATOR = re.compile(r"<<<|<<-|<<|<>|<&|<|&>>|&>|>>|>\||>&|>")

_HEREDOC_OPERATORS = frozenset({"<<<", "<<-", "<<"})
_WRITE_OPERATORS = frozenset({">", ">>", ">|", "&>", "&>>"})
_TARGET_TERMINATORS = frozenset("<>")


@dataclass
class FileOperations:
    """Paths a command touches, unquoted, in command order (duplicates kept)."""
    reads: list[str] = field(default_factory=list)
    writes: list[str] = field(default_factory=list)
    deletes: list[str] = field(default_factory=list)


# =============================================================================
# Splitting and Tokenizing
# =============================================================================

def _continuation_width(command: str, i: int) -> int:
    """Length of a backslash-newline at i (0 if there is none)."""
    if command.startswith("\\\n", i):
        return 2
    if command.startswith("\\\r\n", i):
        return 3
    return 0


def split_commands(command: str) -> list[str]:
    """Split on ;, &&, ||, |, background & and newlines outside quotes.

    "||" is one operator, never two pipes. A "|" right after ">" belongs to
    the ">|" redirect. "|&" is a pipe. An "&" touching a redirect (&>, >&,
    <&) is part of it. Backslash-newline joins lines (except inside single
    quotes).
    """
    parts: list[str] = []
    current: list[str] = []
    quote = None
    i, n = 0, len(command)

    while i < n:
        ch = command[i]
        nxt = command[i + 1] if i + 1 < n else ""

        continuation = _continuation_width(command, i) if quote != "'" else 0
        if continuation:
            current.append(" ")
            i += continuation
            continue
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in "'\"":
            quote = ch
            current.append(ch)
            i += 1
            continue

        if ch == "|" and current and current[-1] == ">":
            current.append(ch)
            i += 1
            continue
        if ch in ";\n":
            width = 1
        elif ch == "&" and nxt == "&":
            width = 2
        elif ch == "&" and nxt != ">" and not (current and current[-1] in "<>"):
            # background job
            width = 1
        elif ch == "|":
            width = 2 if nxt in ("|", "&") else 1
        else:
            current.append(ch)
            i += 1
            continue

        parts.append("".join(current).strip())
        current = []
        i += width

    parts.append("".join(current).strip())
    return [p for p in parts if p]


def unquote(token: str) -> str:
    """Remove shell quote characters, keeping the quoted text."""
    if "'" not in token and '"' not in token:
        return token
    out = []
    quote = None
    for ch in token:
        if quote:
            if ch == quote:
                quote = None
            else:
                out.append(ch)
        elif ch in "'\"":
            quote = ch
        else:
            out.append(ch)
    return "".join(out)


def tokenize(text: str) -> list[str]:
    """Split on whitespace honoring quotes; quotes are stripped from tokens."""
    return [unquote(t) for t in TOKEN_PATTERN.findall(text)]


def _read_target(text: str, start: int) -> tuple[str, int]:
    """Read the word after a redirect operator.

    Returns:
        (raw word, index just past it)
    """
    i, n = start, len(text)
    while i < n and text[i] in " \t":
        i += 1
    begin = i
    quote = None
    while i < n:
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "'\"":
            quote = ch
        elif ch.isspace() or ch in _TARGET_TERMINATORS:
            break
        i += 1
    return text[begin:i], i


def _drop_fd_prefix(out: list[str]):
    """Drop a file-descriptor number (the 2 in 2>) from the collected text."""
    j = len(out)
    while j > 0 and out[j - 1].isdigit():
        j -= 1
    if j < len(out) and (j == 0 or out[j - 1].isspace()):
        del out[j:]


def extract_redirects(command: str) -> tuple[str, list[str], list[str]]:
    """Pull redirections out of a single sub-command.

    Returns:
        (command with redirects removed, read targets, write targets)
    """
    out: list[str] = []
    reads: list[str] = []
    writes: list[str] = []
    quote = None
    i, n = 0, len(command)

    while i < n:
        ch = command[i]
        if quote:
            out.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in "'\"":
            quote = ch
            out.append(ch)
            i += 1
            continue

        match = REDIRECT_OPERATOR.match(command, i) if ch in "<>&" else None
        if match is None:
            out.append(ch)
            i += 1
            continue

        operator = match.group()
        _drop_fd_prefix(out)
        raw, i = _read_target(command, match.end())
        target = unquote(raw)
        out.append(" ")
        if not target or operator in _HEREDOC_OPERATORS:
            continue

        if operator in _WRITE_OPERATORS:
            writes.append(target)
        elif operator == "<":
            reads.append(target)
        elif operator == "<>":
            reads.append(target)
            writes.append(target)
        elif operator == ">&" and not (target.isdigit() or target == "-"):
            # >&file is bash shorthand for &>file
            writes.append(target)
        # <& and >&N duplicate descriptors, no path involved

    return "".join(out).strip(), reads, writes


def extract_args(tokens: list[str]) -> list[str]:
    """Positional arguments: flags dropped until a bare "--".

    Empty tokens and stray backslashes are never paths.
    """
    args = []
    after_dashes = False
    for token in tokens:
        if not after_dashes:
            if token == "--":
                after_dashes = True
                continue
            if FLAG_PATTERN.fullmatch(token) or token.startswith("--"):
                continue
        if token and token != "\\":
            args.append(token)
    return args


# =============================================================================
# Classification
# =============================================================================

def _is_sed_in_place(token: str) -> bool:
    return token.startswith("-i") or token == "--in-place" or token.startswith("--in-place=")


def classify(tokens: list[str], ops: FileOperations):
    """Add the file operations implied by one tokenized command to ops."""
    if not tokens:
        return
    name = os.path.basename(tokens[0])
    rest = tokens[1:]
    args = extract_args(rest)

    if name in DELETE_COMMANDS:
        ops.deletes.extend(args)
    elif name in COPY_MOVE_COMMANDS:
        if len(args) >= 2:
            ops.reads.extend(args[:-1])
            ops.writes.append(args[-1])
        elif len(args) == 1:
            ops.reads.append(args[0])
    elif name == "sed":
        in_place = any(_is_sed_in_place(t) for t in rest)
        paths = [
            a for a in args
            if not SED_EXPRESSION.match(a) and not _is_sed_in_place(a)
        ]
        (ops.writes if in_place else ops.reads).extend(paths)
    elif name == "tee":
        ops.writes.extend(args)
    elif name in GREP_COMMANDS:
        ops.reads.extend(args[1:])
    elif name in READ_COMMANDS:
        ops.reads.extend(args)


def extract_file_operations(command: str) -> FileOperations:
    """
    Statically extract the paths a shell command reads, writes and deletes.

    Args:
        command: Raw shell command string

    Returns:
        FileOperations aggregated over every sub-command
    """
    ops = FileOperations()
    for sub in split_commands(command or ""):
        remaining, reads, writes = extract_redirects(sub)
        ops.reads.extend(reads)
        ops.writes.extend(writes)
        classify(tokenize(remaining), ops)
    return ops
