import sys
import argparse

import graphviz

from re_parser import RegexTreeParser, recursion_room
from tree_tracer import (ParseTracer, persist_tree, tree_print, tree_save,
                         visualize_tree)


def build_arg_parser():
    # usage:
    # re-tree "(ab)*+c" -o tree.txt --json tree.json --graph tree
    parser = argparse.ArgumentParser(
        description='Print the derivation tree of a regular expression')
    parser.add_argument('expression', nargs='*',
                        help='regular expression over # ( ) * + and [A-Za-z0-9_]')
    parser.add_argument(
        '-o', '--output', help='also write the tree dump to this file')
    parser.add_argument('--json', help='persist the tree as JSON')
    parser.add_argument('--graph', help='render the tree with graphviz')
    parser.add_argument('--format', default='png',
                        choices=sorted(graphviz.FORMATS),
                        help='graphviz output format (default: png)')
    parser.add_argument('--trace', action='store_true',
                        help='print RE/RE\' entry and exit events')
    parser.add_argument('--explain', action='store_true',
                        help='say why a syntax error happened')
    return parser


def main(argv=None):
    arg_parser = build_arg_parser()
    args = arg_parser.parse_args(argv)

    if len(args.expression) != 1:
        print("Wrong number of command-line arguments: "
              f"{len(args.expression)} arguments found, 1 expected")
        arg_parser.print_usage()
        return 1

    parser = RegexTreeParser(args.expression[0])
    tracer = ParseTracer()
    if args.trace:
        tracer.instrument(parser)

    tree = parser.tree
    if parser.parse():
        top = tree.root.children[0]  # Root itself is not printed.
        # dumps recurse as deep as the tree, which can be as long as the input
        with recursion_room(len(parser.text)):
            tree_print(top, 0)
            if args.output:
                with open(args.output, 'w', encoding='utf-8') as f:
                    tree_save(top, f, 0)
            if args.json:
                persist_tree(top, args.json)
            if args.graph:
                visualize_tree(top, output_path=args.graph, format=args.format)
    else:
        print("Syntax error")
        if args.explain:
            print(f"  {tree.failure.kind.name} at index {tree.failure.position}")

    tracer.restore()
    for event in tracer.get_trace():
        print("    ", event)

    tree.release()
    return 0


if __name__ == '__main__':
    sys.exit(main())
