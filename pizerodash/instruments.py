"""Concrete dashboard instruments."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .instrument import Clock, Instrument


class _ValueInstrument(Instrument):
    """Instrument latching a single numerical reading during test cycles."""

    _initial: float = 0.0

    def __init__(self, clock: Optional[Clock] = None) -> None:
        super().__init__(clock)
        self._latched = self._initial

    def _sample(self) -> float:
        return self._numerical_test_value()

    def _store(self, value: float) -> float:
        return value

    def _latch_value(self) -> bool:
        if not self.in_test_mode:
            # Live data from the hardware link is not read by instruments yet.
            return False
        value = self._sample()
        if self._latched != value:
            self._latched = self._store(value)
            return True
        return False


class BoostInstrument(_ValueInstrument):
    """Forced induction boost instrument."""

    def latch(self) -> bool:
        """Latch the current boost; True if it changed."""
        return self._latch_value()

    @property
    def boost(self) -> float:
        """The latched amount of boost."""
        return self._latched

    def test(self, min_boost: float, max_boost: float) -> None:
        """Run a test cycle between the two boost values."""
        self._test_numerical(min_boost, max_boost, (max_boost - min_boost) / 6000.0, False)


class EngineTempInstrument(_ValueInstrument):
    """Engine temperature instrument, whole degrees."""

    _initial = 0

    def _sample(self) -> float:
        return int(self._numerical_test_value())

    def latch(self) -> bool:
        """Latch the current engine temperature; True if it changed."""
        return self._latch_value()

    @property
    def engine_temp(self) -> int:
        """The latched engine temperature."""
        return int(self._latched)

    def test(self, min_temp: int, max_temp: int) -> None:
        """Run a test cycle that covers the range in six seconds each way."""
        temp_range = float(max_temp - min_temp)
        seconds_for_range = 6.0
        self._test_numerical(min_temp, max_temp, temp_range / seconds_for_range / 1000.0, False)


class FuelLevelInstrument(_ValueInstrument):
    """Fuel level instrument."""

    def latch(self) -> bool:
        """Latch the current fuel volume; True if it changed."""
        return self._latch_value()

    @property
    def fuel_volume(self) -> float:
        """The latched volume of fuel."""
        return self._latched

    def test(self, max_fuel_litres: int) -> None:
        """Run a test cycle from slightly below empty up to the tank size."""
        self._test_numerical(-2.0, max_fuel_litres, max_fuel_litres / 6000.0, False)


class IndicatorState(Enum):
    """Turn indicator state."""

    NONE = 0
    LEFT = 1
    RIGHT = 2
    BOTH = 3


class IndicatorInstrument(Instrument):
    """Turn indicator instrument."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        super().__init__(clock)
        self._latched = IndicatorState.NONE

    def latch(self) -> bool:
        if not self.in_test_mode:
            return False
        value = self._numerical_test_value()
        if value - int(value) > 0.5:
            # Off for half of each second.
            state = IndicatorState.NONE
        elif value < 5.0:
            state = IndicatorState.LEFT
        elif value < 10.0:
            state = IndicatorState.RIGHT
        else:
            state = IndicatorState.BOTH
        if self._latched != state:
            self._latched = state
            return True
        return False

    @property
    def indicator_state(self) -> IndicatorState:
        """The latched indicator state."""
        return self._latched

    def test(self) -> None:
        """Cycle through left, right and both, flashing once per second."""
        self._test_numerical(0.0, 15.0, 1.0 / 1000.0, True)


class OilPressureInstrument(_ValueInstrument):
    """Engine oil pressure instrument."""

    def latch(self) -> bool:
        """Latch the current oil pressure; True if it changed."""
        return self._latch_value()

    @property
    def oil_pressure(self) -> float:
        """The latched oil pressure."""
        return self._latched

    def test(self, max_oil_pressure: float) -> None:
        """Run a test cycle up to the given pressure."""
        self._test_numerical(0.0, max_oil_pressure, max_oil_pressure / 6000.0, False)


class OilTemperatureInstrument(_ValueInstrument):
    """Engine oil temperature instrument, degrees Celsius."""

    def latch(self) -> bool:
        """Latch the current oil temperature; True if it changed."""
        return self._latch_value()

    @property
    def oil_temperature(self) -> float:
        """The latched oil temperature."""
        return self._latched

    def test(self, max_oil_temperature: float) -> None:
        """Run a test cycle from below freezing up to the given temperature."""
        self._test_numerical(-10.0, max_oil_temperature, max_oil_temperature / 6000.0, False)


class OnOffInstrument(Instrument):
    """On/off switch instrument."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        super().__init__(clock)
        self._latched = False
        self._unlatched = True

    def latch(self) -> bool:
        latched = self._unlatched
        self._unlatched = False
        if self.in_test_mode:
            state = int(self._numerical_test_value()) % 2 == 1
            if self._latched != state:
                self._latched = state
                latched = True
        return latched

    @property
    def on_off_state(self) -> bool:
        """The latched on/off state."""
        return self._latched

    def test(self) -> None:
        """Toggle the state once per second."""
        self._test_numerical(0.0, 16.0, 2.0 / 1000.0, False)


class SpeedoInstrument(_ValueInstrument):
    """Speed instrument, whole units."""

    _initial = 0

    def _store(self, value: float) -> int:
        return int(value)

    def latch(self) -> bool:
        """Latch the current speed; True if it changed."""
        return self._latch_value()

    @property
    def speed(self) -> int:
        """The latched speed."""
        return int(self._latched)

    def test(self, max_speed: int) -> None:
        """Run a test cycle up to the given speed."""
        self._test_numerical(0.0, max_speed, 1.0 / 30.0, False)


class TachoInstrument(_ValueInstrument):
    """Engine speed instrument, whole RPM."""

    _initial = 0

    def _store(self, value: float) -> int:
        return int(value)

    def latch(self) -> bool:
        """Latch the current RPM; True if it changed."""
        return self._latch_value()

    @property
    def rpm(self) -> int:
        """The latched RPM."""
        return int(self._latched)

    def test(self, max_rpm: int) -> None:
        """Run a test cycle up to the given RPM."""
        self._test_numerical(0.0, max_rpm, 1.0, False)


class VoltageInstrument(_ValueInstrument):
    """Power supply voltage instrument."""

    def latch(self) -> bool:
        """Latch the current voltage; True if it changed."""
        return self._latch_value()

    @property
    def voltage(self) -> float:
        """The latched voltage."""
        return self._latched

    def test(self, max_voltage: float) -> None:
        """Run a test cycle up to the given voltage."""
        self._test_numerical(0.0, max_voltage, max_voltage / 6000.0, False)