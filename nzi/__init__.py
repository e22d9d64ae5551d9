"""nzi - New Zealand around the world: weather, world clock and currency in the terminal."""

__version__ = "0.3.0"
