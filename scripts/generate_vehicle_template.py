#!/usr/bin/env python3
"""Generate a placeholder vehicle SVG template for the per-vehicle colorizer."""
from __future__ import annotations

import argparse
from pathlib import Path

# The colorizer replaces this exact fill attribute with each vehicle's color.
_TEMPLATE = """<svg xmlns="http://www.w3.org/2000/svg" width="20" height="40" viewBox="0 0 20 40">
  <rect x="2" y="2" width="16" height="36" rx="4" fill="#000000"/>
  <rect x="4" y="8" width="12" height="7" rx="2" fill="#cfe8ff"/>
  <rect x="4" y="28" width="12" height="5" rx="2" fill="#cfe8ff"/>
</svg>
"""


def write_asset(path: Path, data: str, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists. Use --overwrite to replace.")
    path.write_text(data)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate the placeholder vehicle SVG template.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("images"),
        help="Directory to write the template into.",
    )
    parser.add_argument("--overwrite", action="store_true", help="Overwrite an existing template.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    write_asset(output_dir / "car-cropped.svg", _TEMPLATE, args.overwrite)

    print(f"Generated vehicle template in {output_dir}")


if __name__ == "__main__":
    main()
