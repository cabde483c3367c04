"""Partnership Agent: grounded question answering over partnership agreements."""

__version__ = "1.0.0"
