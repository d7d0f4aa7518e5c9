"""Dashboard instruments with test cycles, and latched data sources backed by a Pico."""

__version__ = "0.1.0"