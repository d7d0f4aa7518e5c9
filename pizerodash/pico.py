"""Latched data sourced from a Pi Pico over SPI with GPIO handshaking."""

from __future__ import annotations

import errno
import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Optional

from .latcher import LatchedDataIndex, Latcher

log = logging.getLogger(__name__)

#: GPIO line driven high while a command is in progress.
COMMAND_ACTIVE_GPIO = 25
#: GPIO line the Pico drives to signal readiness for a command.
READY_FOR_COMMAND_GPIO = 24
#: Number of line events read at once.
GPIO_LINE_EVENT_BUFFER_SIZE = 16
#: Size of a command or response frame, in bytes.
FRAME_SIZE = 8

#: Names the Pico uses for each latched data value.
PICO_INDEX_NAMES = {
    LatchedDataIndex.ENGINE_RPM: "ERM",
    LatchedDataIndex.SPEED_KMH: "SKH",
    LatchedDataIndex.ENGINE_TEMP_C: "ETC",
}


class PicoCommand(IntEnum):
    """Commands understood by the Pico."""

    GET_LATCHED_DATA_INDEX = 0xF1
    GET_LATCHED_DATA_RESOLUTION = 0xF2
    GET_LATCHED_DATA = 0xF3


class PicoLink(ABC):
    """The physical lines to the Pico. Failures raise OSError."""

    @abstractmethod
    def set_command_active(self, active: bool) -> None:
        """Drive the 'command active' line."""

    @abstractmethod
    def ready_for_command(self) -> bool:
        """Whether the 'ready for command' line is high."""

    @abstractmethod
    def wait_for_edge(self) -> int:
        """Block until the 'ready for command' line changes; return events seen."""

    @abstractmethod
    def transfer(self, tx: bytes) -> bytes:
        """Clock ``tx`` out over SPI and return the bytes clocked in."""


class PicoLatcher(Latcher):
    """Latcher that downloads its index and resolution tables from a Pico.

    With no link the latcher is never ready.
    """

    def __init__(self, link: Optional[PicoLink]) -> None:
        super().__init__()
        self._link = link
        self._indexes: dict[LatchedDataIndex, Optional[int]] = {}
        self._resolutions: dict[LatchedDataIndex, Optional[int]] = {}
        self._ready = link is not None
        if link is not None:
            link.set_command_active(False)
            self.download_indexes()
            self.download_resolutions()

    def _poll(self) -> None:
        """Called once per polling interval.

        Only the index and resolution handshake is defined with the Pico,
        so a poll requests nothing from it.
        """

    def _is_ready(self) -> bool:
        return self._ready

    @property
    def indexes(self) -> dict[LatchedDataIndex, Optional[int]]:
        """Pico index for each latched value; None where it could not be had."""
        return dict(self._indexes)

    @property
    def resolutions(self) -> dict[LatchedDataIndex, Optional[int]]:
        """Resolution for each latched value that has a Pico index."""
        return dict(self._resolutions)

    def send_command(self, frame: bytes) -> bytes:
        """Send a command frame and return the Pico's reply frame.

        The first byte is the command; the Pico echoes it in a good reply.
        """
        if not frame or len(frame) > FRAME_SIZE:
            raise ValueError(f"command frame must be 1 to {FRAME_SIZE} bytes")
        link = self._link
        if link is None:
            raise OSError(errno.ENODEV, "no Pico link")

        tx = bytes(frame).ljust(FRAME_SIZE, b"\0")
        command = tx[0]

        # One active/inactive cycle per exchange lets the Pico reset on faults.
        link.set_command_active(True)
        try:
            while not link.ready_for_command():
                link.wait_for_edge()
            link.transfer(tx)
            # The ready line drops once a reply is available.
            while link.ready_for_command():
                link.wait_for_edge()
            reply = link.transfer(bytes(FRAME_SIZE))
        finally:
            link.set_command_active(False)

        if not reply or reply[0] != command:
            raise OSError(errno.EPROTO, f"Pico rejected command 0x{command:02X}")
        return reply

    def download_index(self, name: str) -> int:
        """Ask the Pico for the index of the three-letter data name."""
        encoded = name.encode("ascii")
        if len(encoded) != 3:
            raise ValueError("latched data index name must be three characters")
        reply = self.send_command(bytes([PicoCommand.GET_LATCHED_DATA_INDEX]) + encoded)
        return reply[1]

    def download_resolution(self, pico_index: int) -> int:
        """Ask the Pico for the resolution of a data index."""
        if not 0 <= pico_index <= 0xFF:
            raise ValueError("Pico index must fit in a byte")
        reply = self.send_command(bytes([PicoCommand.GET_LATCHED_DATA_RESOLUTION, pico_index]))
        return int.from_bytes(reply[1:3], "little")

    def download_indexes(self) -> None:
        """Fetch the Pico index of every known latched value."""
        for key, name in PICO_INDEX_NAMES.items():
            log.info("Waiting for %s latched data index.", name)
            try:
                index: Optional[int] = self.download_index(name)
            except OSError as exc:
                log.warning("Could not get %s index: %s", name, exc)
                index = None
            self._indexes[key] = index
            log.info("%s Index: %s", name, index)

    def download_resolutions(self) -> None:
        """Fetch the resolution of every value that has a Pico index."""
        for key, index in self._indexes.items():
            if not index:
                continue
            try:
                resolution: Optional[int] = self.download_resolution(index)
            except OSError as exc:
                log.warning("Could not get %s resolution: %s", PICO_INDEX_NAMES[key], exc)
                resolution = None
            self._resolutions[key] = resolution
            log.info("%s resolution: %s", PICO_INDEX_NAMES[key], resolution)