#!/usr/bin/env python3
"""Run the application."""
import uvicorn

from hierflow.api.container import get_container

if __name__ == "__main__":
    config = get_container().config
    uvicorn.run(
        "hierflow.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=True,
    )
