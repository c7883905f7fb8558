#!/usr/bin/env python3
"""
iocsweep Entry Point
"""
from iocsweep.cli import cli

if __name__ == '__main__':
    cli()
