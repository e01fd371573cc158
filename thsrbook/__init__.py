"""Book Taiwan High Speed Rail tickets from the command line."""

__version__ = "1.0.0"