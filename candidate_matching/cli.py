import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def serve():
    """Run the matching HTTP API."""
    load_dotenv()
    uvicorn.run(
        "candidate_matching.api.main:app",
        host=os.getenv("API_HOST", "127.0.0.1"),
        port=int(os.getenv("API_PORT", "8000")),
    )


def init_db():
    """Create missing tables in the configured database."""
    load_dotenv()
    from candidate_matching.db import create_schema

    create_schema()
    print("Schema is up to date.")


def local_dev():
    os.chdir(PROJECT_ROOT)
    os.environ.setdefault("DAGSTER_HOME", str(PROJECT_ROOT))
    os.execvp(
        sys.executable,
        [sys.executable, "-m", "dagster", "dev", "-m", "candidate_matching.definitions"]
        + sys.argv[1:],
    )
