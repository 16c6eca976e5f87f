#!/usr/bin/env python3
"""Unified CLI for the Internship Placement Office.

Usage:
    python cli.py placements --help
"""
import sys
import argparse


def main():
    parser = argparse.ArgumentParser(
        description='🎓 Internship Placement Office',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modules:
  placements    Internships, applications, offers & withdrawals

Examples:
  python cli.py placements import --data-dir data/
  python cli.py placements apply U2310001A 3
  python cli.py placements decide hr@acme.com 12 offer
  python cli.py placements accept U2310001A 12
  python cli.py placements report
"""
    )

    parser.add_argument(
        'module',
        choices=['placements'],
        help='Module to run'
    )

    # Parse just the module, pass rest to submodule
    args, remaining = parser.parse_known_args()

    if args.module == 'placements':
        from modules.placements.cli import main as placements_main
        sys.exit(placements_main(remaining))


if __name__ == '__main__':
    main()
