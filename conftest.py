import os
import sys
from pathlib import Path

# Tests run against the in-memory store and cache unless a test opts in.
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("LOG_SAMPLE_2XX", "0")

sys.path.insert(0, str(Path(__file__).resolve().parent))
