#!/usr/bin/env python3
"""
Bid Scraper - Startup Script
"""

import os

import uvicorn

from bid_scraper.utils.logging import setup_logging

if __name__ == "__main__":
    # Set default environment variables if not set
    os.environ.setdefault("LOG_LEVEL", "INFO")
    os.environ.setdefault("HOST", "0.0.0.0")
    os.environ.setdefault("PORT", "8000")

    setup_logging()

    print("Starting Bid Scraper...")
    print("API documentation at: http://localhost:8000/docs")
    print("Health check at: http://localhost:8000/health")
    print("\nPress Ctrl+C to stop the server\n")

    uvicorn.run(
        "bid_scraper.web.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
