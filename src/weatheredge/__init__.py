"""weather-edge - weather-sensitive prediction market discovery and ranking."""

__version__ = "0.1.0"
