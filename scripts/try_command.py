"""Classifies a command and prints the resulting intent without touching any
calendar or board.

Example:
    python scripts/try_command.py "Dentist appointment tomorrow at 2pm" --timezone America/Chicago
"""

import argparse
import logging
import os
import sys
from datetime import datetime

# Ensure the main package is in the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from schedule_engine.core.config import get_settings
from schedule_engine.core.dependencies import build_llm_service
from schedule_engine.features.intent_service import classify

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def main() -> int:
    parser = argparse.ArgumentParser(description="Dry-run the intent resolver on one command.")
    parser.add_argument("text", help="The command to classify.")
    parser.add_argument("--timezone", help="IANA zone of the user (defaults to default_timezone).")
    parser.add_argument("--now", help="Reference instant in ISO format, e.g. 2025-01-01T09:00:00.")
    parser.add_argument("--no-llm", action="store_true", help="Skip the language model and use the deterministic path.")
    args = parser.parse_args()

    settings = get_settings()
    reference_instant = None
    if args.now:
        try:
            reference_instant = datetime.fromisoformat(args.now)
        except ValueError:
            logger.error(f"--now must be an ISO datetime, got '{args.now}'")
            return 2

    llm_service = None if args.no_llm else build_llm_service(settings)
    intent = classify(
        args.text,
        [],
        args.timezone or settings.default_timezone,
        llm_service=llm_service,
        reference_instant=reference_instant,
        default_timezone=settings.default_timezone,
        context_event_limit=settings.context_event_limit,
    )
    print(intent.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
