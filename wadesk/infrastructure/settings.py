"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Environment
ENV = os.getenv("WADESK_ENV", "development")

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("PORT", os.getenv("API_PORT", "3000")))
LOG_LEVEL = os.getenv("WADESK_LOG_LEVEL", "INFO")


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"
