"""pagescript -- plain-text instructions for driving a live browser."""

__version__ = "0.3.0"
