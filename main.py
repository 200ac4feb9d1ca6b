#!/usr/bin/env python3
"""Nexus - run the API server with uvicorn."""
import uvicorn

from nexus.config import get_settings


def main():
    """Main entry point."""
    settings = get_settings()
    uvicorn.run(
        "nexus.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
