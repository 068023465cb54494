"""Post new Wires-X node and room log events to Slack."""

__version__ = "0.1.0"
