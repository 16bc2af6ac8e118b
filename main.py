#!/usr/bin/env python3
"""
Entry point for the contact relay.
"""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "contact_relay.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=os.getenv("API_RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
