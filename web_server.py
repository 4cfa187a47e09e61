"""Web server entry point for the BizBud site platform"""

import os

import uvicorn
from dotenv import load_dotenv

# Load environment variables from .env file BEFORE importing the app
load_dotenv()

from web.main import app  # noqa: E402


if __name__ == "__main__":
    host = os.getenv("WEB_HOST", "0.0.0.0")
    port = int(os.getenv("WEB_PORT", "8000"))
    workers = int(os.getenv("WEB_WORKERS", "1"))

    print("Starting BizBud Sites API...")
    print(f"Local server will be available at: http://localhost:{port}")

    if workers > 1:
        # uvicorn needs an import string to spawn workers
        uvicorn.run("web.main:app", host=host, port=port, workers=workers, reload=False)
    else:
        uvicorn.run(app, host=host, port=port, reload=False)
