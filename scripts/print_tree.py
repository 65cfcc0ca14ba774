#!/usr/bin/env python3
"""Print a stored convention tree, one node per line."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from bidsystem.conventions import ConventionTree
from bidsystem.store import JsonFileStore


def format_tree(tree: ConventionTree, *, indent: str = "  ") -> List[str]:
    lines: List[str] = []
    for depth, node in tree.walk():
        meaning = f" - {node.meaning}" if node.meaning else ""
        tags = ""
        if node.definition is not None and node.definition.tags:
            tags = f" [{', '.join(sorted(node.definition.tags))}]"
        lines.append(f"{indent * depth}{node.label}{meaning}{tags}")
    return lines


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print a convention tree.")
    parser.add_argument("--store", type=Path, default=Path("data/conventions.json"))
    args = parser.parse_args(argv)

    tree = ConventionTree.load(JsonFileStore(args.store))
    for line in format_tree(tree):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
