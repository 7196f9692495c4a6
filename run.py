#!/usr/bin/env python3
"""Run script for the Task Manager API."""

import os

import uvicorn

from taskmanager.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging()
    uvicorn.run(
        "taskmanager.api.app:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "False").lower() == "true",
    )
