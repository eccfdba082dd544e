#!/usr/bin/env python3
"""Entry point for astro-chart-mcp server."""

from astro_chart_mcp.server import run

if __name__ == "__main__":
    run()
