"""StreamMeter: pay-per-second metering for streamed media."""

__version__ = "0.1.0"
