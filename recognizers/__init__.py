"""
bandprint - Song recognition from band-peak fingerprints

The package provides the recognizer interface and a band-peak implementation:
each analysis chunk is reduced to its strongest frequency per band, the peaks are
hashed, and queries are matched by time-offset-consistency voting.
"""

from recognizers.base import BaseSongRecognizer

__all__ = ['BaseSongRecognizer']
