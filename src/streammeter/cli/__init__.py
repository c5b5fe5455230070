"""Command-line interface for StreamMeter."""
