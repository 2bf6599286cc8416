#!/usr/bin/env python3
"""
Script to run the My Bookshelf API server.
"""

import uvicorn

from api.config import config
from utilities.config import config as core_config


def main():
    """Run the API server."""
    print("Starting My Bookshelf API Server")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"Environment: {config.environment}")
    print(f"Database: {core_config.mongodb_database}")
    print("=" * 50)

    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        reload=config.is_development(),
        log_level=core_config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
