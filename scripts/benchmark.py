#!/usr/bin/env python3
"""
Benchmark script: recognition accuracy and query time of the band-peak recognizer
across clip lengths and noise levels.

Prerequisites:
    Run index_songs.py on the same songs first; each test file's stem must be
    the id it was indexed under.

Usage:
    python scripts/benchmark.py --db fingerprints/bandpeak \
                                --test_dir ~/datasets/songs \
                                --n_test 100 --output results.json
"""

import sys
import json
import time
import random
import argparse
from pathlib import Path
from dataclasses import dataclass, asdict, field
from typing import List, Optional, Dict

sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
from tqdm import tqdm

from recognizers.bandpeak import BandPeakRecognizer, load_config
from recognizers.bandpeak.config import DB_PATH
from recognizers.logs import setup_logging

log = setup_logging()


@dataclass
class TestCondition:
    name: str
    clip_length_sec: float
    snr_db: Optional[float] = None


@dataclass
class BenchmarkResults:
    approach: str
    n_db_songs: int
    n_queries: int
    db_load_time_ms: float
    conditions: Dict[str, dict] = field(default_factory=dict)


# Test conditions to evaluate
TEST_CONDITIONS = [
    TestCondition("clean_15s", clip_length_sec=15.0),
    TestCondition("clean_10s", clip_length_sec=10.0),
    TestCondition("clean_5s", clip_length_sec=5.0),
    TestCondition("snr_10db", clip_length_sec=10.0, snr_db=10.0),
    TestCondition("snr_5db", clip_length_sec=10.0, snr_db=5.0),
    TestCondition("snr_0db", clip_length_sec=10.0, snr_db=0.0),
]


def benchmark(recognizer: BandPeakRecognizer, test_files: List[Path],
              conditions: List[TestCondition], db_load_time_ms: float) -> BenchmarkResults:
    results = BenchmarkResults(
        approach=recognizer.name,
        n_db_songs=recognizer.num_indexed_songs,
        n_queries=len(test_files),
        db_load_time_ms=db_load_time_ms,
    )

    for condition in conditions:
        correct = 0
        no_match = 0
        query_times = []

        for test_file in tqdm(test_files, desc=condition.name, unit="query"):
            start = time.time()
            song, _, _ = recognizer.recognize(
                test_file,
                clip_length_sec=condition.clip_length_sec,
                snr_db=condition.snr_db,
            )
            query_times.append((time.time() - start) * 1000)
            if song is None:
                no_match += 1
            elif song == test_file.stem:
                correct += 1

        total = len(test_files)
        accuracy = correct / total * 100 if total > 0 else 0
        avg_time = float(np.mean(query_times)) if query_times else 0
        results.conditions[condition.name] = {
            "accuracy": accuracy,
            "avg_query_time_ms": avg_time,
            "correct": correct,
            "no_match": no_match,
            "total": total,
        }
        print(f"  {condition.name}: {accuracy:.1f}% ({correct}/{total}), "
              f"{no_match} without match, {avg_time:.1f}ms/query")

    return results


def main():
    parser = argparse.ArgumentParser(description='Benchmark the band-peak recognizer')
    parser.add_argument('--db', type=str, default=DB_PATH,
                        help='Index file or directory')
    parser.add_argument('--config', '-c', type=str, default='config/bandpeak.yaml')
    parser.add_argument('--test_dir', type=str, required=True,
                        help='Directory with test audio files')
    parser.add_argument('--pattern', type=str, default='*.wav')
    parser.add_argument('--n_test', type=int, default=100,
                        help='Number of test files to sample')
    parser.add_argument('--seed', type=int, default=42)
    parser.add_argument('--output', type=str, default=None,
                        help='Write results as JSON to this path')
    args = parser.parse_args()

    test_dir = Path(args.test_dir).expanduser()
    test_files = sorted(test_dir.rglob(args.pattern))
    if not test_files:
        log.error(f"No files matching {args.pattern} in {test_dir}")
        sys.exit(1)
    random.seed(args.seed)
    test_files = random.sample(test_files, k=min(args.n_test, len(test_files)))

    start = time.time()
    recognizer = BandPeakRecognizer(load_config(args.config), db_path=Path(args.db))
    recognizer.load()
    db_load_time = (time.time() - start) * 1000
    print(f"Loaded {recognizer.num_indexed_songs} songs in {db_load_time:.1f}ms")

    results = benchmark(recognizer, test_files, TEST_CONDITIONS, db_load_time)

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(asdict(results), f, indent=2)
        print(f"Results written to {args.output}")


if __name__ == '__main__':
    main()
