"""JSON message protocol between a host and package material plugins."""

__version__ = "0.1.0"
