#!/usr/bin/env python3
"""
Doubles Round-Robin Scheduler
Entry point for the tournament scheduling system.
"""

import sys

if __name__ == "__main__":
    from doubles_tournament.cli import main

    sys.exit(main())
