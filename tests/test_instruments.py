import pytest

from pizerodash.instruments import (
    BoostInstrument,
    EngineTempInstrument,
    FuelLevelInstrument,
    IndicatorInstrument,
    IndicatorState,
    OilPressureInstrument,
    OilTemperatureInstrument,
    OnOffInstrument,
    SpeedoInstrument,
    TachoInstrument,
    VoltageInstrument,
)


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def advance_to(instrument, clock, start, total_seconds, step=0.1):
    """Latch repeatedly in small steps until total_seconds after start."""
    results = []
    while clock.now - start < total_seconds - 1e-9:
        clock.advance(min(step, total_seconds - (clock.now - start)))
        results.append(instrument.latch())
    return results


def run_cycle(instrument, clock, read, step=0.1, limit=10000):
    values = []
    for _ in range(limit):
        if not instrument.in_test_mode:
            break
        clock.advance(step)
        instrument.latch()
        values.append(read(instrument))
    return values


NUMERIC_CASES = [
    ("boost", (-1.0, 1.0), -1.0, 1.0),
    ("engine_temp", (20, 80), 20, 80),
    ("fuel_volume", (60,), -2.0, 60),
    ("oil_pressure", (5.0,), 0.0, 5.0),
    ("oil_temperature", (150.0,), -10.0, 150.0),
    ("speed", (100,), 0, 100),
    ("rpm", (1000,), 0, 1000),
    ("voltage", (14.5,), 0.0, 14.5),
]


@pytest.mark.parametrize("attr, args, low, high", NUMERIC_CASES)
def test_latch_outside_test_mode_is_false(clock, attr, args, low, high):
    instrument = {
        "boost": BoostInstrument(clock),
        "engine_temp": EngineTempInstrument(clock),
        "fuel_volume": FuelLevelInstrument(clock),
        "oil_pressure": OilPressureInstrument(clock),
        "oil_temperature": OilTemperatureInstrument(clock),
        "speed": SpeedoInstrument(clock),
        "rpm": TachoInstrument(clock),
        "voltage": VoltageInstrument(clock),
    }[attr]
    assert instrument.latch() is False
    assert instrument.in_test_mode is False


@pytest.mark.parametrize("attr, args, low, high", NUMERIC_CASES)
def test_cycle_rises_then_falls_and_ends(clock, attr, args, low, high):
    instrument = {
        "boost": BoostInstrument(clock),
        "engine_temp": EngineTempInstrument(clock),
        "fuel_volume": FuelLevelInstrument(clock),
        "oil_pressure": OilPressureInstrument(clock),
        "oil_temperature": OilTemperatureInstrument(clock),
        "speed": SpeedoInstrument(clock),
        "rpm": TachoInstrument(clock),
        "voltage": VoltageInstrument(clock),
    }[attr]
    instrument.test(*args)
    assert instrument.in_test_mode is True
    values = run_cycle(instrument, clock, lambda inst: getattr(inst, attr))
    assert instrument.in_test_mode is False
    peak_index = values.index(max(values))
    assert values[: peak_index + 1] == sorted(values[: peak_index + 1])
    assert values[peak_index:] == sorted(values[peak_index:], reverse=True)
    assert max(values) >= high
    assert values[-1] <= low


@pytest.mark.parametrize("attr, args, low, high", NUMERIC_CASES)
def test_first_latch_reports_change(clock, attr, args, low, high):
    instrument = {
        "boost": BoostInstrument(clock),
        "engine_temp": EngineTempInstrument(clock),
        "fuel_volume": FuelLevelInstrument(clock),
        "oil_pressure": OilPressureInstrument(clock),
        "oil_temperature": OilTemperatureInstrument(clock),
        "speed": SpeedoInstrument(clock),
        "rpm": TachoInstrument(clock),
        "voltage": VoltageInstrument(clock),
    }[attr]
    instrument.test(*args)
    assert instrument.latch() is True


def test_engine_temp_latches_whole_degrees(clock):
    instrument = EngineTempInstrument(clock)
    instrument.test(20, 80)
    assert instrument.latch() is True
    assert instrument.engine_temp == 20
    clock.advance(0.05)
    assert instrument.latch() is False
    assert instrument.engine_temp == 20


def test_tacho_follows_elapsed_milliseconds(clock):
    instrument = TachoInstrument(clock)
    instrument.test(1000)
    instrument.latch()
    clock.advance(0.25)
    assert instrument.latch() is True
    assert instrument.rpm == 250


def test_speedo_truncates_speed(clock):
    instrument = SpeedoInstrument(clock)
    instrument.test(100)
    assert instrument.latch() is True
    assert instrument.speed == 0
    clock.advance(0.3)
    instrument.latch()
    assert instrument.speed == 10


def test_boost_stays_within_range_while_rising(clock):
    instrument = BoostInstrument(clock)
    instrument.test(-1.0, 1.0)
    instrument.latch()
    assert -1.0 < instrument.boost < 1.0
    clock.advance(0.1)
    previous = instrument.boost
    instrument.latch()
    assert instrument.boost > previous


def test_indicator_initial_state_is_none(clock):
    instrument = IndicatorInstrument(clock)
    assert instrument.indicator_state is IndicatorState.NONE
    assert instrument.latch() is False


def test_indicator_sequence(clock):
    instrument = IndicatorInstrument(clock)
    instrument.test()
    start = clock.now
    assert instrument.latch() is True
    assert instrument.indicator_state is IndicatorState.LEFT

    advance_to(instrument, clock, start, 0.4)
    assert instrument.indicator_state is IndicatorState.LEFT
    clock.advance(0.2)
    assert instrument.latch() is True
    assert instrument.indicator_state is IndicatorState.NONE

    advance_to(instrument, clock, start, 6.0)
    assert instrument.indicator_state is IndicatorState.RIGHT

    advance_to(instrument, clock, start, 11.0)
    assert instrument.indicator_state is IndicatorState.BOTH


def test_indicator_cycle_is_forward_only(clock):
    instrument = IndicatorInstrument(clock)
    instrument.test()
    instrument.latch()
    calls = 0
    while instrument.in_test_mode and calls < 1000:
        clock.advance(0.1)
        instrument.latch()
        calls += 1
    assert instrument.in_test_mode is False
    assert instrument.indicator_state is IndicatorState.BOTH


def test_on_off_first_latch_reports_change(clock):
    instrument = OnOffInstrument(clock)
    assert instrument.latch() is True
    assert instrument.latch() is False
    assert instrument.on_off_state is False


def test_on_off_toggles_each_second(clock):
    instrument = OnOffInstrument(clock)
    instrument.test()
    start = clock.now
    assert instrument.latch() is True
    assert instrument.on_off_state is False
    clock.advance(0.4)
    assert instrument.latch() is False
    advance_to(instrument, clock, start, 0.5)
    assert instrument.on_off_state is True
    advance_to(instrument, clock, start, 1.0)
    assert instrument.on_off_state is False


def test_on_off_cycle_ends(clock):
    instrument = OnOffInstrument(clock)
    instrument.test()
    states = run_cycle(instrument, clock, lambda inst: inst.on_off_state)
    assert instrument.in_test_mode is False
    assert set(states) == {True, False}