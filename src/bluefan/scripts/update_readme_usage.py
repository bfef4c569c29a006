"""Regenerate the README usage block from the bluefan argument parser."""

from __future__ import annotations

import argparse
from pathlib import Path

from markdown_it import MarkdownIt

from bluefan.main import build_args

README_PATH = Path(__file__).resolve().parents[3] / "README.md"
HELP_WIDTH = 80


def render_help() -> str:
    parser = build_args()
    parser.formatter_class = lambda prog: argparse.HelpFormatter(prog, width=HELP_WIDTH)
    return parser.format_help().rstrip()


def section_headings(readme_text: str) -> list[tuple[int, str]]:
    """Return ``(line, title)`` for every level two heading."""
    tokens = MarkdownIt().parse(readme_text)
    return [
        (opening.map[0], title.content.strip())
        for opening, title in zip(tokens, tokens[1:])
        if opening.type == "heading_open" and opening.tag == "h2" and opening.map
    ]


def replace_usage(readme_text: str, help_text: str) -> str:
    headings = section_headings(readme_text)
    starts = [line for line, title in headings if title == "Usage"]
    if not starts:
        raise RuntimeError("README.md has no '## Usage' section.")

    lines = readme_text.splitlines()
    start = starts[0]
    end = next((line for line, _ in headings if line > start), len(lines))
    block = ["## Usage", "", "```text", "bluefan --help", help_text, "```", ""]
    return "\n".join(lines[:start] + block + lines[end:]).rstrip() + "\n"


def main() -> int:
    current = README_PATH.read_text(encoding="utf-8")
    updated = replace_usage(current, render_help())
    if updated != current:
        README_PATH.write_text(updated, encoding="utf-8")
        print("Updated README usage section.")
    else:
        print("README usage section is up to date.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
