#!/usr/bin/env python3
"""
Calendar Assistant Runner Script

Entry point for running the Calendar Assistant.

Usage:
    python run.py --text          # Interactive chat
    python run.py --check-config  # Validate configuration
    python run.py --tools         # Print the tool catalog
    python run.py --text --config config/settings.yaml
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))


def main():
    from dotenv import load_dotenv
    load_dotenv()

    from calendar_assistant.app import main as app_main
    app_main()


if __name__ == "__main__":
    main()
