#!/usr/bin/env python3
"""Convenience runner for the route tracker simulator.

Usage:
    python run.py --points 40 --shape loop
"""
import logging
from route_tracker.simulate import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    raise SystemExit(main())
