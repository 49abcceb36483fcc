#!/usr/bin/env python3
"""
flexiring command line.

Usage:
    python -m flexiring hash test object-a --hasher md5
    python -m flexiring lookup object-a object-b --targets cache-1,cache-2,cache-3 --count 2
    python -m flexiring distribution --targets s1,s2,s3,s4,s5 --keys 1000 --remove s3

    # Defaults come from the environment
    FLEXIRING_HASHER=md5 FLEXIRING_REPLICAS=128 python -m flexiring lookup key --targets a,b
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

from flexiring import __version__
from flexiring.core.config import FlexiRingConfig
from flexiring.core.errors import ConfigurationError, FlexiRingError
from flexiring.hashing import HASH_STRATEGIES, get_strategy
from flexiring.observability.logging import LogLevel, setup_logging
from flexiring.observability.metrics import MetricsCollector
from flexiring.sharding import (
    ConsistentHashRing,
    key_distribution,
    measure_disruption,
    placement,
    sample_keys,
)


def _parse_targets(raw: str) -> list[str]:
    return [t.strip() for t in raw.split(",") if t.strip()]


def _parse_weight(raw: str) -> tuple[str, float]:
    """Parse "target=weight"."""
    target, sep, weight = raw.rpartition("=")
    if not sep or not target:
        raise argparse.ArgumentTypeError(f"expected TARGET=WEIGHT, got {raw!r}")
    try:
        return target, float(weight)
    except ValueError:
        raise argparse.ArgumentTypeError(f"weight must be a number, got {weight!r}") from None


def build_parser(config: FlexiRingConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flexiring",
        description="Weighted consistent hashing, compatible with PHP Flexihash",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default=config.observability.log_level,
        choices=[level.name for level in LogLevel],
        help=f"Log level (default: {config.observability.log_level})",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=config.observability.log_json,
        help="Emit logs as JSON lines",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print collected metrics in Prometheus text format on exit",
    )

    ring_options = argparse.ArgumentParser(add_help=False)
    ring_options.add_argument(
        "--hasher",
        default=config.ring.hasher,
        choices=sorted(HASH_STRATEGIES),
        help=f"Hash strategy (default: {config.ring.hasher})",
    )
    ring_options.add_argument(
        "--replicas", "-r",
        type=int,
        default=config.ring.replicas,
        help=f"Positions per unit of weight (default: {config.ring.replicas})",
    )
    ring_options.add_argument(
        "--targets", "-t",
        type=_parse_targets,
        required=True,
        help="Comma-separated target names",
    )
    ring_options.add_argument(
        "--weight", "-w",
        type=_parse_weight,
        action="append",
        default=[],
        metavar="TARGET=WEIGHT",
        help=f"Per-target weight, repeatable (default weight: {config.ring.default_weight})",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.required = True

    # hash command
    hash_parser = subparsers.add_parser("hash", help="Print ring positions of values")
    hash_parser.add_argument("values", nargs="+", help="Values to hash")
    hash_parser.add_argument(
        "--hasher",
        default=config.ring.hasher,
        choices=sorted(HASH_STRATEGIES),
        help=f"Hash strategy (default: {config.ring.hasher})",
    )

    # lookup command
    lookup_parser = subparsers.add_parser(
        "lookup", parents=[ring_options], help="Place keys on a ring",
    )
    lookup_parser.add_argument("keys", nargs="+", help="Resource keys to place")
    lookup_parser.add_argument(
        "--count", "-n",
        type=int,
        default=1,
        help="Targets per key, primary first (default: 1)",
    )

    # distribution command
    dist_parser = subparsers.add_parser(
        "distribution", parents=[ring_options], help="Report key spread and disruption",
    )
    dist_parser.add_argument(
        "--keys", "-k",
        type=int,
        default=1000,
        help="Number of synthetic keys (default: 1000)",
    )
    dist_parser.add_argument(
        "--remove",
        metavar="TARGET",
        help="Remove TARGET afterwards and report how many keys moved",
    )

    return parser


def _build_ring(
    args: argparse.Namespace,
    config: FlexiRingConfig,
    metrics: Optional[MetricsCollector],
) -> ConsistentHashRing:
    hasher = get_strategy(args.hasher).unwrap()
    if args.replicas < 1:
        raise ConfigurationError.invalid(f"replicas must be >= 1, got {args.replicas}")

    ring = ConsistentHashRing(hasher=hasher, replicas=args.replicas, metrics=metrics)
    weights = dict(args.weight)
    unknown = sorted(set(weights) - set(args.targets))
    if unknown:
        raise ConfigurationError.invalid(f"weights given for unknown targets: {', '.join(unknown)}")

    for target in args.targets:
        result = ring.add_target(target, weights.get(target, config.ring.default_weight))
        if result.is_err():
            raise result.error
    return ring


def _run_hash(args: argparse.Namespace) -> None:
    hasher = get_strategy(args.hasher).unwrap()
    for value in args.values:
        print(f"{value}\t{hasher(value)}")


def _run_lookup(args: argparse.Namespace, ring: ConsistentHashRing) -> None:
    for key in args.keys:
        targets = ring.lookup_list(key, args.count)
        if targets.is_err():
            raise targets.error
        print(f"{key} -> {', '.join(targets.unwrap()) or '(none)'}")


def _run_distribution(args: argparse.Namespace, ring: ConsistentHashRing) -> None:
    keys = sample_keys(args.keys)
    before = placement(ring, keys)
    print(key_distribution(ring, keys).summary())

    if args.remove:
        result = ring.remove_target(args.remove)
        if result.is_err():
            raise result.error
        report = measure_disruption(before, placement(ring, keys))
        expected = 1 / (len(ring) + 1)
        print(f"\nAfter removing {args.remove}:")
        print(f"  keys moved: {report.moved}/{report.total} ({report.fraction:.1%})")
        print(f"  expected:   ~{expected:.0%} (only keys on the removed target)")


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entrypoint."""
    config_result = FlexiRingConfig.from_env().flat_map(
        lambda config: config.validate().map(lambda _: config)
    )
    if config_result.is_err():
        print(config_result.error, file=sys.stderr)
        return 2
    config = config_result.unwrap()

    args = build_parser(config).parse_args(argv)
    setup_logging(LogLevel.from_name(args.log_level), json_output=args.json_logs)

    metrics = MetricsCollector() if args.metrics and config.observability.metrics_enabled else None

    try:
        if args.command == "hash":
            _run_hash(args)
        else:
            ring = _build_ring(args, config, metrics)
            if args.command == "lookup":
                _run_lookup(args, ring)
            else:
                _run_distribution(args, ring)
    except ConfigurationError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 2
    except FlexiRingError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if metrics is not None:
        print()
        print(metrics.export_prometheus())
    return 0


if __name__ == "__main__":
    sys.exit(main())
