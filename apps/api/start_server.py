#!/usr/bin/env python3
"""
Development server startup script
"""
import os
import sys

# Add the api directory to Python path so the dutysnap package resolves
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

if __name__ == "__main__":
    import uvicorn

    from dutysnap.core.config import settings

    # Log startup info
    print(f"🚀 Starting {settings.APP_NAME} {settings.APP_VERSION}...")
    print("📁 Working directory:", os.getcwd())
    print(f"🔑 Reasoning provider configured: {bool(settings.OPENAI_API_KEY)}")
    print(f"🔑 Structured provider configured: {bool(settings.ZONOS_API_KEY)}")
    print(f"🗄️  Result store: {settings.RESULT_STORE_BACKEND}")
    print("=" * 50)

    # Start the server
    uvicorn.run(
        "dutysnap.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=[os.path.join(os.path.dirname(os.path.abspath(__file__)), "dutysnap")],
        log_level="info"
    )
