#!/usr/bin/env python3
# run.py
"""
Development server runner.

Serves the API with auto-reload against whatever DATABASE_URL is configured
(a local SQLite file by default).
"""

import uvicorn

from classdesk.core.config import settings

if __name__ == "__main__":
    print("🚀 Starting classdesk development server...")
    print("🌐 Access at: http://localhost:8000")
    print("📚 API Docs: http://localhost:8000/docs")

    uvicorn.run(
        "classdesk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )
