#!/usr/bin/env python3
"""
CLI entry point for streammeter.cli module.

This allows running: python -m streammeter.cli
"""

from .main import cli

if __name__ == "__main__":
    cli()
