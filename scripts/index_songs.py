#!/usr/bin/env python3
"""
Index songs into the band-peak fingerprint database.

Usage:
    python scripts/index_songs.py --folder ~/datasets/songs
    python scripts/index_songs.py --folder ~/datasets/songs --pattern "*.flac" --db fingerprints/bandpeak
"""

import argparse
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from recognizers.bandpeak import BandPeakRecognizer, BandprintError, load_config
from recognizers.bandpeak.config import DB_PATH
from recognizers.logs import log_detail, log_section, log_success, setup_logging

log = setup_logging()


def plot_songs(folder: Path, pattern: str, params, plot_dir: Path):
    from recognizers.bandpeak.audio import extract_spectrogram, load_audio
    from recognizers.bandpeak.peaks import extract_all
    from recognizers.bandpeak.plotting import plot_band_peaks

    plot_dir.mkdir(parents=True, exist_ok=True)
    for audio_path in sorted(folder.glob(pattern)):
        try:
            signal, sr = load_audio(audio_path)
        except RuntimeError as e:
            log.warning(f"Skipping plot for {audio_path.name}: {e}")
            continue
        spectrum = extract_spectrogram(signal, sr, params)
        plot_band_peaks(spectrum, extract_all(spectrum, params), params,
                        plot_dir / f"{audio_path.stem}_peaks.png")
    log_detail("Plots", str(plot_dir))


def main():
    parser = argparse.ArgumentParser(description='Index songs for recognition')
    parser.add_argument('--folder', '-f', type=str, required=True)
    parser.add_argument('--db', '-o', type=str, default=DB_PATH,
                        help='Index file or directory (default: %(default)s)')
    parser.add_argument('--pattern', '-p', type=str, default='*.wav')
    parser.add_argument('--config', '-c', type=str, default='config/bandpeak.yaml')
    parser.add_argument('--fresh', action='store_true', help='Ignore any existing index')
    parser.add_argument('--plot-dir', type=str, default=None,
                        help='Save a band-peak plot per song into this directory')
    args = parser.parse_args()

    folder = Path(args.folder).expanduser()
    if not folder.exists():
        log.error(f"Folder not found: {folder}")
        sys.exit(1)

    log_section("🎵 Band-peak Indexing")
    try:
        params = load_config(args.config)
        recognizer = BandPeakRecognizer(params, db_path=Path(args.db).expanduser())
        if not args.fresh:
            recognizer.load()
    except BandprintError as e:
        log.error(str(e))
        sys.exit(1)
    log_detail("Existing songs", str(recognizer.num_indexed_songs))

    count = recognizer.index_folder(folder, args.pattern)

    try:
        recognizer.save()
    except BandprintError as e:
        log.error(str(e))
        sys.exit(1)

    if args.plot_dir:
        plot_songs(folder, args.pattern, params, Path(args.plot_dir))

    stats = recognizer.index.stats()
    log_success(f"Indexed {count} new songs; {stats['num_songs']} songs, "
                f"{stats['unique_hashes']} unique hashes in {recognizer.db_path}")


if __name__ == '__main__':
    main()
