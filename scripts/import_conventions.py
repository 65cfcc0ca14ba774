#!/usr/bin/env python3
"""Import "label - meaning" lines into a convention store."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from bidsystem.batch import parse_batch
from bidsystem.calls import normalize_label
from bidsystem.conventions import ConventionTree
from bidsystem.store import JsonFileStore


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import pasted convention lines into a JSON store.")
    parser.add_argument("source", type=Path, help="Text file with one 'label - meaning' per line.")
    parser.add_argument("--store", type=Path, default=Path("data/conventions.json"), help="Store file to update.")
    parser.add_argument(
        "--parent",
        nargs="*",
        default=[],
        help="Call labels leading to the parent node, e.g. --parent 1NT 2♣. Empty imports openings.",
    )
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(message)s")

    tree = ConventionTree.load(JsonFileStore(args.store))
    parent_path = [normalize_label(label) for label in args.parent]
    pairs = parse_batch(args.source.read_text(encoding="utf-8"))
    nodes = tree.import_batch(parent_path, pairs)
    for node in nodes:
        print(f"{' '.join(tree.path_of(node))}: {node.meaning}")
    print(f"Imported {len(nodes)} line(s); store now holds {len(tree)} node(s).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
