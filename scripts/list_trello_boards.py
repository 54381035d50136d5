"""Prints every open Trello board with its lists and their ids.

Use the output to fill in TRELLO_BOARD_LISTS, e.g.
TRELLO_BOARD_LISTS='{"personal": "<list id>", "work": "<list id>"}'
"""

import argparse
import json
import logging
import os
import sys

# Ensure the main package is in the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from schedule_engine.core.config import get_settings
from schedule_engine.core.errors import ScheduleEngineError
from schedule_engine.features.trello_services import TrelloBoardService

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


def main() -> int:
    parser = argparse.ArgumentParser(description="List Trello boards and list ids for TRELLO_BOARD_LISTS.")
    parser.add_argument("--json", action="store_true", help="Print the boards as JSON instead of text.")
    args = parser.parse_args()

    settings = get_settings()
    try:
        board_service = TrelloBoardService.from_settings(settings)
    except ScheduleEngineError as e:
        logger.error(f"{e.message}. {e.details or ''}")
        return 1

    try:
        boards = board_service.list_boards()
    except ScheduleEngineError as e:
        logger.error(f"Could not fetch boards: {e.message} ({e.details})")
        return 1
    finally:
        board_service.close()

    if args.json:
        print(json.dumps([board.model_dump() for board in boards], indent=2))
        return 0

    print(f"Found {len(boards)} boards:\n")
    for board in boards:
        print(f"Board: {board.name} (ID: {board.id})")
        for lst in board.lists:
            print(f"  - List: {lst['name']} (ID: {lst['id']})")
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
