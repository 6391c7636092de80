import sys
import json
from graphviz import Digraph

# Tooling around the derivation trees built by re_parser:
# text dumps, JSON snapshots, graphviz pictures and a call tracer.

INDENTATION = 1  # Child indentation when the tree is printed.
INDENT_MARK = "-"


def tree_save(node, stream, indent: int = 0) -> None:
    """
    Write one node per line, prefixed by one INDENT_MARK per level of depth.
    """
    if node is None:
        return
    stream.write(f"{INDENT_MARK * indent}{node.label}\n")
    for child in node.children:
        tree_save(child, stream, indent + INDENTATION)


def tree_print(node, indent: int = 0) -> None:
    tree_save(node, sys.stdout, indent)


def tree_to_dict(node):
    """
    Convert a tree into a JSON-serializable dictionary.
    """
    return {
        "label": node.label,
        "children": [tree_to_dict(child) for child in node.children],
    }


def persist_tree(node, filename: str) -> None:
    """
    Serialize the tree to a JSON file.
    """
    with open(filename, 'w') as f:
        json.dump(tree_to_dict(node), f, indent=2)


def build_graph(node, format: str = 'png') -> Digraph:
    graph = Digraph(comment='RE derivation tree', format=format)

    # ids are positional so that equal trees give equal sources
    counter = [0]

    def recurse(n):
        nid = f"n{counter[0]}"
        counter[0] += 1
        shape = 'box' if n.is_leaf() else 'ellipse'
        graph.node(nid, n.label, shape=shape)
        for child in n.children:
            cid = recurse(child)
            graph.edge(nid, cid)
        return nid

    recurse(node)
    return graph


def visualize_tree(node, output_path: str = 'tree', format: str = 'png') -> str:
    """
    Create a Graphviz rendering of the tree.
    Returns the path to the rendered file.
    """
    return build_graph(node, format).render(output_path, cleanup=True)


class ParseTracer:
    """
    Instrument a RegexTreeParser to record nonterminal entry, success and
    failure. The parser's methods are wrapped on the instance, so recursive
    calls made through `self` are traced too.
    """

    TRACED = {"re": "RE", "re_prime": "RE'"}

    def __init__(self):
        self.trace = []
        self._instrumented = []

    def instrument(self, parser):
        if parser in self._instrumented:
            return
        for method_name, label in self.TRACED.items():
            setattr(parser, method_name,
                    self._wrap(getattr(parser, method_name), label))
        self._instrumented.append(parser)

    def _wrap(self, orig, label):
        def wrapped(pos, parent):
            self.trace.append(f"ENTER {label} pos={pos}")
            end = orig(pos, parent)
            if end is None:
                self.trace.append(f"FAIL {label} pos={pos}")
            else:
                self.trace.append(f"MATCH {label} {pos}->{end}")
            return end
        return wrapped

    def restore(self) -> None:
        """
        Restore the parsers' own methods.
        """
        for parser in self._instrumented:
            for method_name in self.TRACED:
                # drop the instance attribute, the class method shows through
                delattr(parser, method_name)
        self._instrumented.clear()

    def get_trace(self) -> list:
        return self.trace
