# parse tree storage for the RE derivation parser.
# Every node created during a parse belongs to one ParseTree, which does the
# bookkeeping needed to undo failed alternatives and to account for every node
# it ever handed out.

MAX_LABEL_LENGTH = 15  # Max characters in a node label.
MAX_CHILDREN = 4       # Longest right-hand side: ( RE ) RE'
ROOT_LABEL = "Root"


class CapacityExceeded(ValueError):
    # Raised instead of truncating a label or dropping a child.
    pass


class Node:
    # A labeled vertex owning an ordered list of children.
    def __init__(self, label):
        if len(label) > MAX_LABEL_LENGTH:
            raise CapacityExceeded(
                f"label {label!r} exceeds {MAX_LABEL_LENGTH} characters")
        self.label = label
        self.children = []
        self.freed = False

    def is_leaf(self):
        return not self.children

    def __repr__(self):
        if self.is_leaf():
            return f"Node({self.label!r})"
        return f"Node({self.label!r}, {self.children!r})"


class ParseTree:
    """
    Owner of the nodes built while parsing one input.

    Nodes are created, attached and freed only through the tree so that
    `live_count` stays exact: a failed parse leaves only the root alive,
    and `release()` brings the count back to zero.
    """

    def __init__(self, root_label: str = ROOT_LABEL):
        self.live_count = 0
        self.failure = None
        self.root = self.create(root_label)

    def create(self, label: str) -> Node:
        node = Node(label)
        self.live_count += 1
        return node

    def attach(self, parent: Node, child: Node) -> None:
        if len(parent.children) >= MAX_CHILDREN:
            raise CapacityExceeded(
                f"node {parent.label!r} already holds {MAX_CHILDREN} children")
        parent.children.append(child)

    def free_subtree(self, node) -> None:
        # Explicit stack: star chains make trees as deep as the input is long.
        pending = [node]
        while pending:
            node = pending.pop()
            if node is None or node.freed:
                continue
            pending.extend(node.children)
            node.children = []
            node.freed = True
            self.live_count -= 1

    # Backtracking: release the last n children added by a failed alternative.
    def free_last_children(self, parent: Node, n: int) -> None:
        if n > len(parent.children):
            raise ValueError(
                f"cannot free {n} children of {parent.label!r}, "
                f"only {len(parent.children)} attached")
        for _ in range(n):
            self.free_subtree(parent.children.pop())

    def free_all_children(self, parent: Node) -> None:
        self.free_last_children(parent, len(parent.children))

    def release(self) -> None:
        self.free_subtree(self.root)


def leaves(node):
    # Leaf labels read left to right: the text the derivation spells out.
    if node.is_leaf():
        return [node.label]
    out = []
    for child in node.children:
        out.extend(leaves(child))
    return out


def same_shape(a, b):
    # Structural equality: same labels, same shape, regardless of identity.
    if a.label != b.label or len(a.children) != len(b.children):
        return False
    return all(same_shape(x, y) for x, y in zip(a.children, b.children))
