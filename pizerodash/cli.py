"""Command line entry point for the dashboard."""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from typing import Optional, Sequence

from .latcher import set_current_latcher
from .linux_link import GPIO_CHIP_DEVICE, SPI_DEVICE, LinuxPicoLink
from .pico import PicoLatcher


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pizerodash", description="Pi Zero dashboard.")
    parser.add_argument("--spi", default=SPI_DEVICE, help="SPI device file")
    parser.add_argument("--gpio", default=GPIO_CHIP_DEVICE, help="GPIO chip device file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Connect to the Pico and make its latcher the current one."""
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)

    print("*** Pi Zero Dash ***\n")

    with contextlib.ExitStack() as stack:
        link: Optional[LinuxPicoLink]
        try:
            link = stack.enter_context(LinuxPicoLink(args.spi, args.gpio))
        except OSError as exc:
            print(f"Could not open Pico link: {exc}")
            link = None

        try:
            latcher = stack.enter_context(PicoLatcher(link))
        except OSError as exc:
            print(f"Could not set up Pico latcher: {exc}")
            latcher = stack.enter_context(PicoLatcher(None))

        set_current_latcher(latcher)
        try:
            pass
        finally:
            set_current_latcher(None)
    return 0