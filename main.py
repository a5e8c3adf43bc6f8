#!/usr/bin/env python3
"""SUBSWEEP main entry point.

Usage::

    python main.py scan --domain example.com
    python main.py scan --domain example.com --wordlist words.txt --depth 2 --output json
    python main.py version
    python main.py config
"""

from subsweep.cli import main

if __name__ == "__main__":
    main()
