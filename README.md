# pizerodash

Instruments and latched data sources for a small car dashboard that runs on a
Raspberry Pi Zero and talks to a Raspberry Pi Pico over SPI and GPIO.

## What is in it

- `pizerodash.instrument.Instrument`: the base for every instrument. Its
  `latch()` method stores the current reading and returns `True` when it
  changed; the `in_test_mode` property says whether a test cycle is running.
  A test cycle ramps a value from a minimum up to a maximum and, unless it is
  forward only, back down again. It is timed by the clock passed to the
  constructor (a callable returning seconds, `time.monotonic` by default).
- `pizerodash.instruments`: the concrete instruments, each with a `test(...)`
  method that starts a test cycle and a property for the latched reading:

  | Instrument                 | Reading property   | `test` arguments              |
  |----------------------------|--------------------|-------------------------------|
  | `BoostInstrument`          | `boost`            | `min_boost, max_boost`        |
  | `EngineTempInstrument`     | `engine_temp`      | `min_temp, max_temp`          |
  | `FuelLevelInstrument`      | `fuel_volume`      | `max_fuel_litres`             |
  | `IndicatorInstrument`      | `indicator_state`  | none                          |
  | `OilPressureInstrument`    | `oil_pressure`     | `max_oil_pressure`            |
  | `OilTemperatureInstrument` | `oil_temperature`  | `max_oil_temperature`         |
  | `OnOffInstrument`          | `on_off_state`     | none                          |
  | `SpeedoInstrument`         | `speed`            | `max_speed`                   |
  | `TachoInstrument`          | `rpm`              | `max_rpm`                     |
  | `VoltageInstrument`        | `voltage`          | `max_voltage`                 |

  `IndicatorInstrument` reports an `IndicatorState` (`NONE`, `LEFT`, `RIGHT`,
  `BOTH`); its test cycle shows left, then right, then both, flashing off for
  half of each second. `OnOffInstrument` toggles once per second in its test
  cycle, and its first `latch()` always returns `True`.
- `pizerodash.latcher`: `Latcher`, the base for sources of latched data, which
  calls its poll hook on a background thread. `start(polling_interval)` takes
  the interval in microseconds and returns `False` if the source is not ready;
  `stop()`, `close()`, the `is_polling` property and use as a context manager
  control the thread. Also `LatchedDataIndex` (`ENGINE_RPM`, `SPEED_KMH`,
  `ENGINE_TEMP_C`) and `set_current_latcher` / `current_latcher`.
- `pizerodash.pico`: `PicoLatcher`, which speaks the Pico command protocol
  (`PicoCommand`) over any `PicoLink`. On construction it downloads the Pico's
  index for each `LatchedDataIndex` and the resolution of each index it got,
  available as the `indexes` and `resolutions` properties. `send_command`,
  `download_index` and `download_resolution` perform single exchanges and
  raise `OSError` when the Pico does not echo the command. Given `None` as
  its link, a `PicoLatcher` is never ready.
- `pizerodash.linux_link`: `LinuxPicoLink`, a `PicoLink` over the Linux
  `spidev` and GPIO character device interfaces, plus the helpers `ioc`,
  `pack_spi_transfer` and `pack_line_request` that build the ioctl numbers
  and structures it uses.

## Running an instrument test cycle

```python
from pizerodash.instruments import SpeedoInstrument

speedo = SpeedoInstrument()
speedo.test(250)
while speedo.in_test_mode:
    if speedo.latch():
        print(speedo.speed)
```

## Talking to the Pico

```python
from pizerodash.linux_link import LinuxPicoLink
from pizerodash.pico import PicoLatcher

with LinuxPicoLink("/dev/spidev0.0", "/dev/gpiochip0") as link:
    with PicoLatcher(link) as latcher:
        print(latcher.indexes)
        print(latcher.resolutions)
```

## Command line

```
pizerodash [--spi /dev/spidev0.0] [--gpio /dev/gpiochip0]
```

Opens the Pico link on the given device files, downloads the latched data
indexes and resolutions, logging each one to standard output, makes the
resulting latcher the current one, and exits. If the link cannot be opened it
says so and carries on with a latcher that is not ready.

## What it does not do

- It draws nothing: there are no gauges, dials or display output.
- The instruments produce readings only during their test cycles; outside a
  test cycle `latch()` returns `False` and the reading does not change.
- `PicoLatcher` only performs the index and resolution handshake. Its poll
  requests no latched data from the Pico, and the command line does not start
  polling.

## Tests

```
pip install -e .[test]
pytest
```