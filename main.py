#!/usr/bin/env python3
"""
JobFinder entry point: `python main.py <command>`.
"""

from jobfinder.cli import main

if __name__ == "__main__":
    main()
