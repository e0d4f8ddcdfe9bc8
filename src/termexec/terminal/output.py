"""Terminal output compression.

Raw terminal output is noisy: progress bars redraw with carriage returns,
spinners use backspaces, and watch-style tools print the same line many
times. compress_terminal_output() folds all of that and then bounds the
result to a line limit, keeping the head and (mostly) the tail.
"""

from __future__ import annotations

# Share of the line limit kept from the start of the output
HEAD_RATIO = 0.2


def _split_lines(content: str) -> list[str]:
    """Split on newlines, keeping the terminator on each line."""
    parts = content.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def process_carriage_returns(content: str) -> str:
    """Apply carriage returns the way a terminal would.

    Text after a bare carriage return overwrites the start of the line,
    leaving any longer tail of the earlier text visible.
    """
    if "\r" not in content:
        return content

    rendered: list[str] = []
    for line in content.split("\n"):
        visible = ""
        for segment in line.split("\r"):
            visible = segment + visible[len(segment):]
        rendered.append(visible)
    return "\n".join(rendered)


def process_backspaces(content: str) -> str:
    """Delete the character before each backspace."""
    if "\b" not in content:
        return content

    chars: list[str] = []
    for char in content:
        if char == "\b":
            if chars and chars[-1] != "\n":
                chars.pop()
        else:
            chars.append(char)
    return "".join(chars)


def _fold_repeats(line: str, repeats: int) -> str:
    marker = f"<previous line repeated {repeats} additional times>\n"
    if len(marker) < len(line) * repeats:
        return marker
    return line * repeats


def apply_run_length_encoding(content: str) -> str:
    """Collapse runs of identical consecutive lines when that is shorter."""
    if not content:
        return content

    out: list[str] = []
    previous: str | None = None
    repeats = 0
    for line in _split_lines(content):
        if line == previous:
            repeats += 1
            continue
        if previous is not None and repeats:
            out.append(_fold_repeats(previous, repeats))
        out.append(line)
        previous = line
        repeats = 0
    if previous is not None and repeats:
        out.append(_fold_repeats(previous, repeats))
    return "".join(out)


def truncate_output(content: str, line_limit: int | None) -> str:
    """Bound output to line_limit lines, dropping the middle."""
    if not line_limit or line_limit <= 0:
        return content

    lines = _split_lines(content)
    if len(lines) <= line_limit:
        return content

    head = int(line_limit * HEAD_RATIO)
    tail = line_limit - head
    omitted = len(lines) - line_limit
    return (
        "".join(lines[:head])
        + f"\n[...{omitted} lines omitted...]\n\n"
        + "".join(lines[len(lines) - tail:])
    )


def compress_terminal_output(content: str, line_limit: int | None) -> str:
    """Fold control characters and repeats, then truncate to line_limit."""
    folded = process_backspaces(process_carriage_returns(content))
    return truncate_output(apply_run_length_encoding(folded), line_limit)
