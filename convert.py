#!/usr/bin/env python3
"""
Convert generated HTML documents to PDF.

Usage: python convert.py [--input DIR] [--output DIR] [--config PATH] [--file PATH] [--parallel N] [--quiet]
"""

import sys

from pdf_export.cli import main

if __name__ == "__main__":
    sys.exit(main())
