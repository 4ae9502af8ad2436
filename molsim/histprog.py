"""Command that bins numbers read from standard input into a histogram."""

from __future__ import annotations

import getopt
import re
import sys

from molsim.histogram import Histogram

USAGE = (
    "usage: hist [-n <nbin>][-l <lo>][-h <hi>]\n\n"
    "Takes a series of numbers on stdin and outputs\n"
    "a histogram on stdout\n\n"
    "Options:\n"
    "-n <nbin>:  number of bins (default 50)\n"
    "-l <lo>: lower boundary of histogram (default lowest value of data)\n"
    "-h <hi>: higher boundary of histogram (default highest value of data)\n"
)

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"\s*[+-]?\d+")


def _atof(s: str) -> float:
    m = _FLOAT_PREFIX.match(s)
    return float(m.group()) if m else 0.0


def _atoi(s: str) -> int:
    m = _INT_PREFIX.match(s)
    return int(m.group()) if m else 0


def _read_numbers(text: str) -> list[float]:
    data = []
    for token in text.split():
        try:
            data.append(float(token))
        except ValueError:
            break
    return data


def main(argv: list[str] | None = None) -> int:
    """Read numbers from stdin and write their histogram to stdout."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts, _ = getopt.getopt(args, "n:l:h:")
    except getopt.GetoptError:
        sys.stderr.write(USAGE)
        return 1
    nbin = 50
    lo: float | None = None
    hi: float | None = None
    for flag, value in opts:
        if flag == "-n":
            nbin = _atoi(value)
        elif flag == "-l":
            lo = _atof(value)
        elif flag == "-h":
            hi = _atof(value)
    if nbin < 1:
        sys.stderr.write(USAGE)
        return 1
    data = _read_numbers(sys.stdin.read())
    if lo is None:
        lo = (min(data) if data else 0.0) - 1e-8
    if hi is None:
        hi = (max(data) if data else 0.0) + 1e-8
    if hi < lo:
        sys.stderr.write("hist: <hi> is less than <lo>\n")
        return 1
    h = Histogram(nbin=nbin, lo=lo, hi=hi, is_dynamic=False)
    h.init()
    for x in data:
        h.update(x)
    h.write(sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())