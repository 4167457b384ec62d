#!/usr/bin/env python3
"""
Song recognition CLI.

Usage:
    python scripts/recognize.py --query audio.wav
    python scripts/recognize.py --query audio.wav --clip-length 10 --snr 5 --plot votes.png
"""

import argparse
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from recognizers.bandpeak import BandPeakRecognizer, BandprintError, load_config
from recognizers.bandpeak.config import DB_PATH
from recognizers.logs import setup_logging

log = setup_logging()


def main():
    parser = argparse.ArgumentParser(description='bandprint - Song Recognition')
    parser.add_argument('--query', '-q', type=str, required=True,
                        help='Path to query audio file')
    parser.add_argument('--db', type=str, default=DB_PATH,
                        help='Index file or directory (default: %(default)s)')
    parser.add_argument('--config', '-c', type=str, default='config/bandpeak.yaml')
    parser.add_argument('--clip-length', type=float, default=None,
                        help='Clip length in seconds (for testing with shorter clips)')
    parser.add_argument('--snr', type=float, default=None,
                        help='SNR in dB for noise injection (for testing robustness)')
    parser.add_argument('--min-score', type=int, default=1,
                        help='Votes the best offset needs before a match is reported')
    parser.add_argument('--plot', type=str, default=None,
                        help='Save a plot of the winning song\'s offset votes to this path')

    args = parser.parse_args()
    query_path = Path(args.query)

    if not query_path.exists():
        log.error(f"Query file not found: {query_path}")
        sys.exit(1)

    try:
        recognizer = BandPeakRecognizer(load_config(args.config), db_path=Path(args.db),
                                        min_score=args.min_score)
        recognizer.load()
    except BandprintError as e:
        log.error(str(e))
        sys.exit(1)

    print(f"Recognizing: {query_path.name}")
    print(f"Database: {recognizer.num_indexed_songs} songs indexed")

    song_id, confidence, metadata = recognizer.recognize(
        query_path,
        clip_length_sec=args.clip_length,
        snr_db=args.snr,
    )

    if song_id:
        print(f"\n✓ Match found: {song_id}")
        print(f"  Confidence: {confidence:.2%}")
        print(f"  Score: {metadata['best_song_score']} votes at offset {metadata['best_song_offset']}")
        print(f"  Candidates: {metadata['num_candidate_songs']}")
        if args.plot:
            from recognizers.bandpeak.plotting import plot_offset_votes
            plot_offset_votes(metadata['best_song_offset_distribution'], song_id,
                              Path(args.plot), highlight=metadata['best_song_offset'])
            print(f"  Offset votes plotted to {args.plot}")
    else:
        print("\n✗ No match found")
        sys.exit(2)


if __name__ == '__main__':
    main()
