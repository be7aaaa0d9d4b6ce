"""
Configuration settings for DFAC Pulse.

Centralized configuration for the record store, dashboard and analytics.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = Path(os.getenv("DFAC_DATA_ROOT", str(PROJECT_ROOT / "data")))
OUTPUT_ROOT = PROJECT_ROOT / "output"

# Record store
STORE_BACKEND = os.getenv("DFAC_STORE_BACKEND", "json")  # "json" or "firebase"
FIREBASE_DATABASE_URL = os.getenv("FIREBASE_DATABASE_URL", "")
FIREBASE_AUTH_TOKEN = os.getenv("FIREBASE_AUTH_TOKEN") or None
FIREBASE_TIMEOUT_SECONDS = float(os.getenv("FIREBASE_TIMEOUT_SECONDS")) if os.getenv("FIREBASE_TIMEOUT_SECONDS") else None

# Admin dashboard (empty password locks the dashboard)
ADMIN_PASSWORD = os.getenv("DFAC_ADMIN_PASSWORD", "")

# Survey form
REQUIRE_MEAL = True

# API Configuration (theme summaries are skipped without a key)
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# LLM Models
SUMMARY_MODEL = "gemini-1.5-flash"
LLM_TEMPERATURE = 0.0
SUMMARY_MAX_RETRIES = 2
SUMMARY_MAX_COMMENTS = 20

# Theme extraction
THEME_VOCABULARY_PATH = PROJECT_ROOT / "config" / "theme_vocabulary.json"
THEME_MIN_CHARACTERS = 6
THEME_MIN_TOKEN_LENGTH = 3
MAX_THEMES = 5

# Metrics
BEST_WORST_DAYS = 3
DEFAULT_WINDOW = "all"  # "all", "current-week" or "current-month"

# Logging
LOG_LEVEL = os.getenv("DFAC_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "dfac_pulse.log"
