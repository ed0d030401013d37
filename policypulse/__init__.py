"""PolicyPulse: bill impact analysis scoring and PDF report export."""

__version__ = "1.0.0"
