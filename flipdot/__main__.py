#!/usr/bin/env python3
"""
Flip-dot pipeline - command line entry point.

    python -m flipdot --config config.toml
    python -m flipdot --dev          # PNG output instead of the panel
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .app import FlipdotApp
from .config import AppConfig, NetworkConfig, SerialConfig, default_config, load_from_toml
from .transport import TransportConnectError

logger = logging.getLogger("flipdot")

DEFAULT_CONFIG_PATH = Path("config.toml")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Flip-dot display pipeline")
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument(
        "--dev", action="store_true", help="Write frames to a PNG instead of the panel"
    )
    parser.add_argument("--fps", type=float, help="Override the frame rate")
    parser.add_argument(
        "--transport", choices=["serial", "network"], help="Override the transport"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    """Load the config file (or defaults) and apply command line overrides."""
    if args.config:
        cfg = load_from_toml(args.config)
    elif DEFAULT_CONFIG_PATH.exists():
        cfg = load_from_toml(DEFAULT_CONFIG_PATH)
    else:
        cfg = default_config(dev=args.dev)

    if args.dev and not cfg.output.dev:
        cfg = dataclasses.replace(cfg, output=dataclasses.replace(cfg.output, dev=True))
    if args.fps is not None:
        cfg = dataclasses.replace(cfg, fps=args.fps)
    if args.transport is not None and args.transport != cfg.transport.kind:
        transport = SerialConfig() if args.transport == SerialConfig.kind else NetworkConfig()
        cfg = dataclasses.replace(cfg, transport=transport)
    return cfg


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        cfg = resolve_config(args)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        asyncio.run(FlipdotApp(cfg).run())
    except TransportConnectError as e:
        logger.error(f"Cannot open display link: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
