#!/usr/bin/env python3
"""
Record from the microphone, then add the clip to the index or match it.

Usage:
    python scripts/listen.py --add "My Song"
    python scripts/listen.py --match
"""

import argparse
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from recognizers.bandpeak import BandPeakRecognizer, BandprintError, load_config
from recognizers.bandpeak.capture import record_in_background
from recognizers.bandpeak.config import DB_PATH
from recognizers.logs import log_success, setup_logging

log = setup_logging()


def main():
    parser = argparse.ArgumentParser(description='Capture audio and add or match it')
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--add', metavar='SONG_ID', type=str, help='Index the capture under this id')
    mode.add_argument('--match', action='store_true', help='Recognize the capture')
    parser.add_argument('--db', type=str, default=DB_PATH)
    parser.add_argument('--config', '-c', type=str, default='config/bandpeak.yaml')
    args = parser.parse_args()

    try:
        params = load_config(args.config)
        recognizer = BandPeakRecognizer(params, db_path=Path(args.db))
        recognizer.load()
    except BandprintError as e:
        log.error(str(e))
        sys.exit(1)

    session = record_in_background(params)
    input("Press ENTER key to stop listening...")
    raw = session.stop()

    try:
        if args.match:
            match = recognizer.recognize_bytes(raw)
            if match is None:
                print("✗ No match found")
                sys.exit(2)
            print(f"Best song: {match.song_id} (score {match.score}, offset {match.offset}, "
                  f"confidence {match.confidence:.2%})")
        else:
            added = recognizer.index_bytes(raw, args.add)
            recognizer.save()
            log_success(f"Added '{args.add}' with {added} observations")
    except BandprintError as e:
        log.error(str(e))
        sys.exit(1)


if __name__ == '__main__':
    main()
