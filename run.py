#!/usr/bin/env python3
"""Convenience runner for the Strava climbs summary tool.

Usage:
    python run.py --client-secret <secret>
"""
import logging
from strava_climbs.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
