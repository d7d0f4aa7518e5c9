"""Pico link over Linux spidev and the GPIO character device."""

from __future__ import annotations

import errno
import fcntl
import logging
import os
import struct
from array import array
from collections.abc import Sequence
from typing import Optional

from .pico import (
    COMMAND_ACTIVE_GPIO,
    GPIO_LINE_EVENT_BUFFER_SIZE,
    READY_FOR_COMMAND_GPIO,
    PicoLink,
)

log = logging.getLogger(__name__)

IOC_NONE = 0
IOC_WRITE = 1
IOC_READ = 2

SPI_DEVICE = "/dev/spidev0.0"
GPIO_CHIP_DEVICE = "/dev/gpiochip0"
GPIO_CONSUMER = "PZDASH"

SPI_MODE_1 = 0x01
SPI_BITS_PER_WORD = 8
SPI_CLOCK_HZ = 4 * 1000 * 1000


def ioc(direction: int, type_char, number: int, size: int) -> int:
    """Encode an ioctl request number the way the Linux _IOC macro does."""
    type_code = ord(type_char) if isinstance(type_char, str) else type_char
    if not 0 <= direction <= 3:
        raise ValueError("direction out of range")
    if not 0 <= type_code <= 0xFF or not 0 <= number <= 0xFF:
        raise ValueError("type and number must fit in a byte")
    if not 0 <= size < 1 << 14:
        raise ValueError("size out of range")
    return (direction << 30) | (size << 16) | (type_code << 8) | number


_SPI_TRANSFER = struct.Struct("=QQIIHBBBBBB")

SPI_IOC_WR_MODE = ioc(IOC_WRITE, "k", 1, 1)
SPI_IOC_WR_BITS_PER_WORD = ioc(IOC_WRITE, "k", 3, 1)
SPI_IOC_WR_MAX_SPEED_HZ = ioc(IOC_WRITE, "k", 4, 4)
SPI_IOC_RD_MAX_SPEED_HZ = ioc(IOC_READ, "k", 4, 4)
SPI_IOC_MESSAGE_1 = ioc(IOC_WRITE, "k", 0, _SPI_TRANSFER.size)

GPIO_V2_LINES_MAX = 64
GPIO_MAX_NAME_SIZE = 32
GPIO_V2_LINE_NUM_ATTRS_MAX = 10
GPIO_V2_LINE_ATTR_ID_FLAGS = 1
GPIO_V2_LINE_FLAG_INPUT = 1 << 2
GPIO_V2_LINE_FLAG_OUTPUT = 1 << 3
GPIO_V2_LINE_FLAG_EDGE_RISING = 1 << 4
GPIO_V2_LINE_FLAG_EDGE_FALLING = 1 << 5

_LINE_REQUEST = struct.Struct(
    f"={GPIO_V2_LINES_MAX}I{GPIO_MAX_NAME_SIZE}sQI5I"
    + "IIQQ" * GPIO_V2_LINE_NUM_ATTRS_MAX
    + "II5Ii"
)
_LINE_VALUES = struct.Struct("=QQ")
_LINE_EVENT_SIZE = 48

LINE_REQUEST_FD_OFFSET = _LINE_REQUEST.size - 4

GPIO_V2_GET_LINE_IOCTL = ioc(IOC_READ | IOC_WRITE, 0xB4, 0x07, _LINE_REQUEST.size)
GPIO_V2_LINE_GET_VALUES_IOCTL = ioc(IOC_READ | IOC_WRITE, 0xB4, 0x0E, _LINE_VALUES.size)
GPIO_V2_LINE_SET_VALUES_IOCTL = ioc(IOC_READ | IOC_WRITE, 0xB4, 0x0F, _LINE_VALUES.size)


def pack_spi_transfer(tx_address: int, rx_address: int, length: int) -> bytes:
    """Pack one spi_ioc_transfer using default speed and word size."""
    return _SPI_TRANSFER.pack(tx_address, rx_address, length, 0, 0, 0, 1, 0, 0, 0, 0)


def pack_line_request(offsets: Sequence[int], consumer: str) -> bytes:
    """Pack a gpio_v2_line_request.

    The first line is an output; any others are inputs reporting both edges.
    """
    offsets = list(offsets)
    if not 1 <= len(offsets) <= GPIO_V2_LINES_MAX:
        raise ValueError(f"between 1 and {GPIO_V2_LINES_MAX} line offsets are needed")
    name = consumer.encode("ascii")
    if len(name) >= GPIO_MAX_NAME_SIZE:
        raise ValueError("consumer name too long")

    attrs = [(GPIO_V2_LINE_ATTR_ID_FLAGS, 0, GPIO_V2_LINE_FLAG_OUTPUT, 1)]
    if len(offsets) > 1:
        input_mask = ((1 << len(offsets)) - 1) & ~1
        input_flags = (
            GPIO_V2_LINE_FLAG_INPUT | GPIO_V2_LINE_FLAG_EDGE_RISING | GPIO_V2_LINE_FLAG_EDGE_FALLING
        )
        attrs.append((GPIO_V2_LINE_ATTR_ID_FLAGS, 0, input_flags, input_mask))
    attrs += [(0, 0, 0, 0)] * (GPIO_V2_LINE_NUM_ATTRS_MAX - len(attrs))
    flat_attrs = [field for attr in attrs for field in attr]
    num_attrs = sum(1 for attr in attrs if attr[0])

    padded_offsets = offsets + [0] * (GPIO_V2_LINES_MAX - len(offsets))
    return _LINE_REQUEST.pack(
        *padded_offsets,
        name,
        0,
        num_attrs,
        *[0] * 5,
        *flat_attrs,
        len(offsets),
        0,
        *[0] * 5,
        0,
    )


def _ioctl(fd: int, request: int, arg, what: str, mutate: bool = False):
    try:
        if mutate:
            return fcntl.ioctl(fd, request, arg, True)
        return fcntl.ioctl(fd, request, arg)
    except OSError as exc:
        raise OSError(exc.errno, f"{what}: {exc.strerror}") from exc


class LinuxPicoLink(PicoLink):
    """SPI and GPIO lines to the Pico through Linux device files."""

    def __init__(self, spi_path: str = SPI_DEVICE, gpio_path: str = GPIO_CHIP_DEVICE) -> None:
        self._spi_fd: Optional[int] = None
        self._gpio_fd: Optional[int] = None
        self._line_fd: Optional[int] = None
        try:
            self._open(spi_path, gpio_path)
        except OSError:
            self.close()
            raise

    def _open(self, spi_path: str, gpio_path: str) -> None:
        self._spi_fd = os.open(spi_path, os.O_RDWR)
        _ioctl(self._spi_fd, SPI_IOC_WR_MODE, struct.pack("B", SPI_MODE_1), "Could not set SPI mode")
        _ioctl(
            self._spi_fd,
            SPI_IOC_WR_BITS_PER_WORD,
            struct.pack("B", SPI_BITS_PER_WORD),
            "Could not set SPI bits per word",
        )
        try:
            _ioctl(self._spi_fd, SPI_IOC_WR_MAX_SPEED_HZ, struct.pack("=I", SPI_CLOCK_HZ), "SPI bus clock")
        except OSError as exc:
            log.warning("%s", exc)
        try:
            raw = _ioctl(self._spi_fd, SPI_IOC_RD_MAX_SPEED_HZ, bytes(4), "SPI bus clock")
            log.info("SPI bus clock %d kHz.", struct.unpack("=I", raw)[0] // 1000)
        except OSError as exc:
            log.debug("%s", exc)

        self._gpio_fd = os.open(gpio_path, os.O_RDWR)
        request = bytearray(
            pack_line_request((COMMAND_ACTIVE_GPIO, READY_FOR_COMMAND_GPIO), GPIO_CONSUMER)
        )
        _ioctl(self._gpio_fd, GPIO_V2_GET_LINE_IOCTL, request, "GPIO line request failed", mutate=True)
        (self._line_fd,) = struct.unpack_from("=i", request, LINE_REQUEST_FD_OFFSET)

    @staticmethod
    def _require(fd: Optional[int]) -> int:
        if fd is None:
            raise OSError(errno.EBADF, "Pico link is closed")
        return fd

    def set_command_active(self, active: bool) -> None:
        values = bytearray(_LINE_VALUES.pack(1 if active else 0, 1))
        _ioctl(
            self._require(self._line_fd),
            GPIO_V2_LINE_SET_VALUES_IOCTL,
            values,
            f"Could not set command active to {active}",
            mutate=True,
        )

    def ready_for_command(self) -> bool:
        values = bytearray(_LINE_VALUES.pack(0, 2))
        _ioctl(
            self._require(self._line_fd),
            GPIO_V2_LINE_GET_VALUES_IOCTL,
            values,
            "Could not read ready for command",
            mutate=True,
        )
        bits, _mask = _LINE_VALUES.unpack(values)
        return bool(bits & 2)

    def wait_for_edge(self) -> int:
        data = os.read(self._require(self._line_fd), _LINE_EVENT_SIZE * GPIO_LINE_EVENT_BUFFER_SIZE)
        return len(data) // _LINE_EVENT_SIZE

    def transfer(self, tx: bytes) -> bytes:
        if not tx:
            raise ValueError("nothing to transfer")
        tx_buf = array("B", tx)
        rx_buf = array("B", bytes(len(tx_buf)))
        message = pack_spi_transfer(tx_buf.buffer_info()[0], rx_buf.buffer_info()[0], len(tx_buf))
        _ioctl(self._require(self._spi_fd), SPI_IOC_MESSAGE_1, message, "SPI transfer failed")
        return rx_buf.tobytes()

    def close(self) -> None:
        """Close the line, GPIO chip and SPI device."""
        for name in ("_line_fd", "_gpio_fd", "_spi_fd"):
            fd = getattr(self, name)
            if fd is not None:
                setattr(self, name, None)
                os.close(fd)

    def __enter__(self) -> LinuxPicoLink:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()