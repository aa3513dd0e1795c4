"""Match encyclopedia abstracts to movie catalog records."""

__version__ = "0.1.0"
