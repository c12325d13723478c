"""CLI entry point for synthetic data generators.

Usage:
    python -m generators context --config configs/contexts.yaml --seed 42 --count 1000
    python -m generators device --seed 7 --count 50 --output file
"""

import argparse
import json
import sys
from pathlib import Path

import yaml


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Risk engine synthetic data generators")
    parser.add_argument(
        "generator",
        choices=["context", "device"],
        help="Which generator to run",
    )
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config file")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--count", type=int, default=100, help="Number of records to generate")
    parser.add_argument(
        "--output",
        type=str,
        default="stdout",
        choices=["stdout", "file"],
        help="Output destination",
    )
    parser.add_argument("--output-file", type=str, default=None, help="Output file path")

    args = parser.parse_args(argv)

    config = {}
    if args.config:
        with open(args.config) as f:
            config = yaml.safe_load(f) or {}

    if args.generator == "context":
        from .context_generator import ContextGenerator

        records = ContextGenerator(config=config, seed=args.seed).generate(num_contexts=args.count)
    elif args.generator == "device":
        from .device_generator import DeviceSignalGenerator

        records = DeviceSignalGenerator(config=config, seed=args.seed).generate(
            num_devices=args.count
        )
    else:
        print(f"Unknown generator: {args.generator}", file=sys.stderr)
        sys.exit(1)

    if args.output == "stdout":
        for record in records:
            print(json.dumps(record, default=str))
    else:
        output_path = args.output_file or f"output/{args.generator}_records.jsonl"
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            for record in records:
                f.write(json.dumps(record, default=str) + "\n")
        print(f"Wrote {len(records)} records to {output_path}", file=sys.stderr)

    print(f"Generated {len(records)} records", file=sys.stderr)
