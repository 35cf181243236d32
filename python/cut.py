#!/usr/bin/env python3
"""
Name: cut
Description: select portions of each line of a file
Author: Rich Lafferty, rich@alcor.concordia.ca (Original Perl Author)
License: perl
"""

import sys
import os
import argparse
import contextlib
import csv
import io
import re
from typing import Iterable, Iterator, List, NamedTuple, Sequence, Union

DIGITS = re.compile(r'[0-9]+')


class PositionRange(NamedTuple):
    """A half-open [start, end) span of zero-based positions."""
    start: int
    end: int


RangeList = List[PositionRange]


# --- List parsing errors ---

class RangeSpecError(ValueError):
    """Base class for every way a byte/char/field list can be rejected."""


class EmptySpec(RangeSpecError):
    def __init__(self):
        super().__init__("empty range")


class MalformedTerm(RangeSpecError):
    """
    A term that does not fit the list grammar. `raw` is the literal text
    quoted in the message; `detail` says whether a whole term or a single
    bound was at fault, and is set by the two subclasses.
    """

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f'illegal list value: "{raw}"')


class InvalidTerm(MalformedTerm):
    detail = 'term'


class InvalidBound(MalformedTerm):
    detail = 'bound'


class InvalidOrder(RangeSpecError):
    """A two-bound term whose second number is not above the first."""

    def __init__(self, first: int, second: int):
        self.first = first
        self.second = second
        super().__init__(
            f"First number in range ({first}) must be lower than second number ({second})"
        )


# --- List parsing ---

def parse_bound(bound: str, term: str) -> int:
    """
    Converts one side of a term to a one-based position. Leading zeros are
    fine ("007" is 7) but a sign never is.
    """
    if bound.startswith('+'):
        raise InvalidTerm(term)
    if not DIGITS.fullmatch(bound):
        raise InvalidBound(bound)
    value = int(bound)
    if value == 0:
        raise InvalidBound(bound)
    return value


def parse_range_list(spec: str) -> RangeList:
    """
    Parses a cut-style list such as "1,7,3-5" into PositionRanges, one per
    comma-separated term and in the same order. Nothing is sorted, merged
    or deduplicated. Raises a RangeSpecError on the first bad term.
    """
    if not spec:
        raise EmptySpec()

    ranges = []
    for term in spec.split(','):
        if not term:
            raise InvalidTerm(term)

        bounds = term.split('-')
        if len(bounds) > 2:
            raise InvalidTerm(term)

        first = parse_bound(bounds[0], term)
        if len(bounds) == 1:
            ranges.append(PositionRange(first - 1, first))
            continue

        second = parse_bound(bounds[1], term)
        if second <= first:
            raise InvalidOrder(first, second)
        ranges.append(PositionRange(first - 1, second))

    return ranges


def format_range_list(ranges: Iterable[PositionRange]) -> str:
    """Renders ranges back into the one-based list syntax parse_range_list() reads."""
    terms = []
    for start, end in ranges:
        if end - start == 1:
            terms.append(str(end))
        else:
            terms.append(f"{start + 1}-{end}")
    return ','.join(terms)


# --- Extraction ---

def select(seq: Sequence, ranges: Iterable[PositionRange]) -> Iterator:
    """
    Yields seq[start:end] for each range in order, skipping any range that
    doesn't lie wholly inside seq. Nothing is clamped or padded.
    """
    length = len(seq)
    for start, end in ranges:
        if start < length and end <= length:
            yield seq[start:end]


def extract_chars(line: str, ranges: Iterable[PositionRange]) -> str:
    """Selects by Unicode character position."""
    return ''.join(select(line, ranges))


def extract_bytes(line: Union[str, bytes], ranges: Iterable[PositionRange]) -> str:
    """
    Selects by byte position in the UTF-8 encoding of the line. Each range is
    decoded on its own, so a range that splits a multi-byte character yields
    U+FFFD for the broken piece, even if the next range holds the rest of it.
    """
    data = line.encode('utf-8') if isinstance(line, str) else line
    return ''.join(chunk.decode('utf-8', errors='replace') for chunk in select(data, ranges))


def extract_fields(fields: Sequence[str], ranges: Iterable[PositionRange]) -> List[str]:
    """Selects fields of an already-split record; the caller joins them."""
    return [field for chunk in select(fields, ranges) for field in chunk]


# --- Command line ---

def parse_delim(value: str) -> str:
    """argparse type for -d: the delimiter must encode to exactly one byte."""
    if len(value.encode('utf-8')) != 1:
        raise argparse.ArgumentTypeError(f'--delim "{value}" must be a single byte')
    return value


def handle_bytes(stream, ranges):
    """Processes a binary stream in byte mode."""
    for line in stream:
        print(extract_bytes(line.rstrip(b'\n'), ranges))


def handle_chars(stream, ranges):
    """Processes a text stream in character mode."""
    for line in stream:
        print(extract_chars(line.rstrip('\n'), ranges))


def handle_fields(stream, ranges, delimiter):
    """Processes a text stream in field mode; quoted fields are honoured."""
    for record in csv.reader(stream, delimiter=delimiter):
        print(delimiter.join(extract_fields(record, ranges)))


@contextlib.contextmanager
def open_input(filename, mode):
    """
    Yields a stream for one input ('-' is stdin): binary in byte mode, UTF-8
    text otherwise. Files are closed afterwards; stdin never is.
    """
    # The csv module wants newline='' so it can see embedded newlines.
    newline = '' if mode == 'fields' else None

    if filename != '-':
        if mode == 'bytes':
            with open(filename, 'rb') as fh:
                yield fh
        else:
            with open(filename, 'r', encoding='utf-8', errors='replace', newline=newline) as fh:
                yield fh
        return

    if mode == 'bytes':
        yield sys.stdin.buffer
        return

    wrapper = io.TextIOWrapper(sys.stdin.buffer, encoding='utf-8', errors='replace', newline=newline)
    try:
        yield wrapper
    finally:
        # Detach so dropping the wrapper leaves stdin open.
        wrapper.detach()


def process_file(filename, mode, ranges, delimiter):
    """Runs the selected handler over one input."""
    with open_input(filename, mode) as fh:
        if mode == 'bytes':
            handle_bytes(fh, ranges)
        elif mode == 'chars':
            handle_chars(fh, ranges)
        else:
            handle_fields(fh, ranges, delimiter)


def main(argv=None):
    """Parses arguments, then extracts from each file in turn."""
    parser = argparse.ArgumentParser(
        description="Select portions of each line of a file.",
        usage="%(prog)s [-b list | -c list | -f list] [-d delim] [file ...]"
    )
    # Exactly one list is required.
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument('-b', '--bytes', dest='byte_list', metavar='LIST',
                            help='Select only these bytes.')
    mode_group.add_argument('-c', '--chars', dest='char_list', metavar='LIST',
                            help='Select only these characters.')
    mode_group.add_argument('-f', '--fields', dest='field_list', metavar='LIST',
                            help='Select only these fields.')

    parser.add_argument('-d', '--delim', dest='delimiter', default='\t', type=parse_delim,
                        help='Use DELIM instead of TAB for field delimiter.')
    parser.add_argument('files', nargs='*', default=['-'], metavar='FILE',
                        help="Files to process. Reads from stdin if none are given or for '-'.")

    args = parser.parse_args(argv)
    program_name = os.path.basename(sys.argv[0])

    if args.byte_list is not None:
        mode, list_str = 'bytes', args.byte_list
    elif args.char_list is not None:
        mode, list_str = 'chars', args.char_list
    else:
        mode, list_str = 'fields', args.field_list

    # Records are bounded only by memory.
    csv.field_size_limit(sys.maxsize)

    # A bad list is fatal before any input is read.
    try:
        ranges = parse_range_list(list_str)
    except RangeSpecError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        sys.exit(1)

    for filename in args.files:
        try:
            process_file(filename, mode, ranges, args.delimiter)
        except OSError as e:
            # Report and move on to the next file.
            print(f"{filename}: {e.strerror or e}", file=sys.stderr)
        except csv.Error as e:
            print(f"{filename}: {e}", file=sys.stderr)

    sys.exit(0)


if __name__ == "__main__":
    main()
