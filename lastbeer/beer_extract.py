#!/usr/bin/env python3
"""
Eichhof Lastbeer BEER.DAT archive decruncher.

Unpacks every item of BEER.DAT into the output directory and converts the
.SND sound banks into plain WAVs (mono, 8-bit unsigned PCM) under <output>/snd.

Usage:
    python -m lastbeer.beer_extract [BEER.DAT] [-o beer] [--dry-run] [--best-effort]

    # Parse and decode everything, write nothing:
    python -m lastbeer.beer_extract path/to/BEER.DAT --dry-run

    # Keep going past a damaged item (exit status is still 1 if any was skipped):
    python -m lastbeer.beer_extract path/to/BEER.DAT --best-effort
"""

import argparse
import os
import sys
from pathlib import Path, PurePath
from typing import NamedTuple

from lastbeer.common.beer_dat import open_archive
from lastbeer.common.errors import BeerDatError, FormatError, OutOfRangeError
from lastbeer.common.snd import (
    decode_sample,
    is_sound_entry,
    parse_sound_block,
    sample_output_names,
)
from lastbeer.common.wav import encode_wav

DEFAULT_ARCHIVE = 'BEER.DAT'
DEFAULT_OUTPUT = 'beer'
SND_SUBDIR = 'snd'

INFO_STR = "Eichhof Lastbeer BEER.DAT archive decruncher."


# ---------------------------------------------------------------------------
# Output sinks
# ---------------------------------------------------------------------------

class FileSink:
    """Writes outputs below ``root``. With dry_run=True nothing touches the disk."""

    def __init__(self, root, dry_run=False):
        self.root = Path(root)
        self.dry_run = dry_run

    def write(self, relpath, data):
        path = self.root / relpath
        if self.root.resolve() not in path.resolve().parents:
            raise FormatError(f"Refusing to write {relpath!r} outside of {self.root}")
        if not self.dry_run:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return path


class MemorySink:
    def __init__(self):
        self.files = {}

    def write(self, relpath, data):
        self.files[PurePath(relpath).as_posix()] = bytes(data)
        return relpath


class ExtractResult(NamedTuple):
    files: list
    wavs: list
    skipped: list


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def _skip(skipped, entry, error):
    print(f"Warning: skipping {entry.name}: {error}", file=sys.stderr)
    skipped.append((entry.name, error))


def check_entry_name(entry):
    """Entry names must be plain file names; the archive has no directories."""
    name = entry.name
    if name in ('', '.', '..') or '/' in name or '\\' in name:
        raise FormatError(f"Entry has no usable file name: {name!r}")


def convert_sound_entry(entry, data, log=None):
    """
    Decodes every sample of an extracted .SND payload.

    Returns a list of (wav_name, wav_bytes). Nothing is written here, so a
    bank that fails halfway leaves no partial set of WAVs behind.
    """
    records = parse_sound_block(entry.name, data)
    names = sample_output_names(entry.name, len(records))
    wavs = []
    for wav_name, record in zip(names, records):
        if log:
            kind = "ADPCM" if record.is_adpcm else "PCM"
            log(f"   - {wav_name}: size={len(record.data)}, "
                f"rate={record.sample_rate}Hz, {kind}")
        sample = decode_sample(record)
        wavs.append((wav_name, encode_wav(sample.pcm, sample.sample_rate)))
    return wavs


def extract_archive(reader, sink, best_effort=False, log=None):
    """
    Unpacks all items of an opened archive into ``sink``.

    reader: BeerDatReader.
    sink: object with write(relpath, data) -> path (FileSink, MemorySink).
    best_effort: report and skip items that have no usable name or fail to
        extract or decode instead of aborting. A .SND item that extracts but fails to decode keeps its
        raw file and loses only its WAVs. Header/directory errors and write
        failures always abort.
    log: optional callable(str) for progress lines.

    Returns an ExtractResult.
    """
    files, wavs, skipped = [], [], []

    for entry in reader.entries():
        if log:
            log(f" - {entry.name}: size={entry.size}, flag={entry.flags}")
        try:
            check_entry_name(entry)
            data = reader.extract(entry)
        except (OutOfRangeError, FormatError) as e:
            if not best_effort:
                raise
            _skip(skipped, entry, e)
            continue

        files.append(sink.write(entry.name, data))
        if not is_sound_entry(entry.name):
            continue

        try:
            converted = convert_sound_entry(entry, data, log)
        except FormatError as e:
            if not best_effort:
                raise
            _skip(skipped, entry, e)
            continue
        for wav_name, wav in converted:
            wavs.append(sink.write(PurePath(SND_SUBDIR, wav_name), wav))

    return ExtractResult(files, wavs, skipped)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def build_parser():
    parser = argparse.ArgumentParser(description=INFO_STR)
    parser.add_argument('archive', nargs='?', default=DEFAULT_ARCHIVE,
                        help=f"Path to BEER.DAT (default: {DEFAULT_ARCHIVE})")
    parser.add_argument('-o', '--output', default=DEFAULT_OUTPUT,
                        help=f"Output directory (default: ./{DEFAULT_OUTPUT})")
    parser.add_argument('--dry-run', action='store_true',
                        help="Parse and decode everything but write no files")
    parser.add_argument('--best-effort', action='store_true',
                        help="Skip damaged items instead of aborting")
    parser.add_argument('-q', '--quiet', action='store_true',
                        help="Only print errors")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    log = None if args.quiet else print

    if log:
        log(INFO_STR + "\n")

    try:
        with open_archive(args.archive) as reader:
            if log:
                log(f"Decrunching archive {os.fspath(args.archive)}:")
            sink = FileSink(args.output, dry_run=args.dry_run)
            result = extract_archive(reader, sink, best_effort=args.best_effort, log=log)
    except (BeerDatError, OSError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        print(parser.format_usage(), end='', file=sys.stderr)
        return 1

    if result.skipped:
        print(f"\n{len(result.skipped)} item(s) skipped.", file=sys.stderr)
        return 1

    if log:
        log("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
