"""
Command line entry point: decode, analyse and render class files.

    classdump Foo.class
    classdump build/classes --analyse main -o listing.txt
"""

import argparse
import logging
import os
import sys

from classdump.classfile import ClassFile
from classdump.dumper import Dumper
from classdump.errors import AnalysisFailed, ClassDumpError
from classdump.options import Options

log = logging.getLogger(__name__)


def find_class_files(paths):
    """Expand directories into the .class files below them, sorted."""
    class_files = []
    for path in paths:
        if os.path.isdir(path):
            for root, dirs, files in os.walk(path):
                for f in files:
                    if f.endswith('.class'):
                        class_files.append(os.path.join(root, f))
        else:
            class_files.append(path)
    return sorted(class_files)


def dump_file(path, options, d):
    cf = ClassFile.from_path(path)
    cf.analyse_top(options)
    cf.dump(d)
    return cf


def dump_all(paths, options, out):
    """Render every class file under ``paths``; returns the number that failed."""
    failed = 0
    d = Dumper(out)
    for path in find_class_files(paths):
        try:
            dump_file(path, options, d)
        except AnalysisFailed as e:
            # Each failing method has already been logged.
            log.error("Error analysing %s: %d method(s) failed", path, len(e.failures))
            failed += 1
        except (ClassDumpError, OSError) as e:
            log.error("Error analysing %s: %s", path, e)
            failed += 1
    d.flush()
    return failed


def build_parser():
    parser = argparse.ArgumentParser(
        prog='classdump',
        description="Render compiled Java class files as Java declarations.")
    parser.add_argument('paths', nargs='+', metavar='PATH',
                        help="class files, or directories to search for them")
    parser.add_argument('--analyse', action='append', metavar='NAME',
                        help="only analyse methods with this name (repeatable)")
    parser.add_argument('--skip', action='append', metavar='NAME',
                        help="never analyse methods with this name (repeatable)")
    parser.add_argument('--no-analyse', action='store_true',
                        help="render without analysing any method")
    parser.add_argument('--keep-going', action='store_true',
                        help="render a class even when some of its methods fail analysis")
    parser.add_argument('-o', '--output', metavar='FILE',
                        help="write the listing to FILE instead of stdout")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="log section offsets and analysis tracebacks")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s')
    options = Options.from_args(args)

    if args.output:
        with open(args.output, 'w', encoding='utf-8', errors='backslashreplace') as out:
            failed = dump_all(args.paths, options, out)
        print(f"Listing written to: {args.output}")
    else:
        failed = dump_all(args.paths, options, sys.stdout)
    return 1 if failed else 0


if __name__ == '__main__':
    sys.exit(main())
