#!/usr/bin/env python
"""
Usage:
    schemconv [options] <input> <output>
    schemconv --identify <input>
    schemconv --dump <input>

Converts between .litematic, .schematic and .schem files. Formats are taken
from the file extensions unless --from / --to are given.
"""
import logging
import optparse
import os
import sys

import convert
import nbt
from schembase import ConversionError

log = logging.getLogger(__name__)

parser = optparse.OptionParser(usage=__doc__.strip())
parser.add_option("-f", "--from", dest="source", choices=convert.formats, help="Format of the input file")
parser.add_option("-t", "--to", dest="target", choices=convert.formats, help="Format of the output file")
parser.add_option("-i", "--identify", action="store_true", default=False, help="Print the format of the input file")
parser.add_option("-d", "--dump", action="store_true", default=False, help="Print the input file's tag tree")
parser.add_option("-v", "--verbose", action="store_const", const=logging.DEBUG, dest="level", default=logging.INFO)
parser.add_option("-q", "--quiet", action="store_const", const=logging.WARNING, dest="level")


def readDocument(filename):
    with open(filename, "rb") as f:
        data = f.read()
    if nbt.isGzipped(data):
        data = nbt.gunzip(data)
    return data


def run(options, args):
    if options.identify or options.dump:
        if len(args) != 1:
            parser.error("expected one input file")
        if options.identify:
            with open(args[0], "rb") as f:
                print(convert.identify(f.read()))
        else:
            print(nbt.load(readDocument(args[0])).pretty_string())
        return 0

    if len(args) != 2:
        parser.error("expected an input and an output file")
    convert.convertFile(args[0], args[1], source=options.source, target=options.target)
    return 0


def main(argv=None):
    options, args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(format='%(levelname)s:%(message)s', level=options.level)

    profile = os.getenv("SCHEMCONV_PROFILE", None)
    try:
        if profile:
            log.info("Profiling enabled")
            import cProfile
            result = {}
            cProfile.runctx('result["status"] = run(options, args)', globals(), locals(), profile)
            return result["status"]
        return run(options, args)
    except (ConversionError, IOError) as e:
        log.error("{0}".format(e))
        return 1


if __name__ == '__main__':
    sys.exit(main())
