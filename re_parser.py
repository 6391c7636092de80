# Recursive-descent parser for a small regular expression grammar.
# It does not match anything against a text: it turns the pattern itself into
# a derivation tree that follows the grammar's productions.
#
# Regular expression grammar ('#' is the empty content):
#   RE  ::= # | symbol | RE + RE | RE RE | RE * | ( RE )
#
# Left recursion removed:
#   RE  ::= # RE' | symbol RE' | ( RE ) RE' | ( RE ) | # | symbol
#   RE' ::= + RE RE' | + RE | * RE' | RE RE' | RE | *
#
# Alternatives are tried in the order listed in the tables below and the first
# one that succeeds wins (ordered choice, no further exploration). Each
# alternative grows the shared tree as it goes; when it fails half way the
# nodes it added are freed before the next alternative is tried.

import sys
import string
from contextlib import contextmanager
from enum import Enum, auto

from parse_tree import ParseTree

EPSILON = "#"
SYMBOL_CHARS = frozenset(string.ascii_letters + string.digits + "_")
FRAMES_PER_CHAR = 8  # stack frames one consumed character may nest
BASE_FRAMES = 1000


@contextmanager
def recursion_room(length):
    # Nesting grows with the input, so the interpreter limit has to follow it.
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, FRAMES_PER_CHAR * length + BASE_FRAMES))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


# --- CHARACTER CLASSES ---

def is_epsilon(c):
    return c == EPSILON


def is_symbol(c):
    return c in SYMBOL_CHARS


def is_lpar(c):
    return c == "("


def is_rpar(c):
    return c == ")"


def is_star(c):
    return c == "*"


def is_plus(c):
    return c == "+"


def is_terminal(c):
    return is_epsilon(c) or is_symbol(c) or c in "()*+"


# --- GRAMMAR TABLES ---
# Each alternative is a sequence of matcher method names on RegexTreeParser.

RE_ALTERNATIVES = (
    ("epsilon", "re_prime"),
    ("symbol", "re_prime"),
    ("lpar", "re", "rpar", "re_prime"),
    ("lpar", "re", "rpar"),
    ("epsilon",),
    ("symbol",),
)

RE_PRIME_ALTERNATIVES = (
    ("plus", "re", "re_prime"),
    ("plus", "re"),
    ("star", "re_prime"),
    ("re", "re_prime"),
    ("re",),
    ("star",),
)


# --- FAILURES ---

class FailureKind(Enum):
    LEXICAL_REJECT = auto()          # no terminal matches at a position
    GRAMMAR_EXHAUSTED = auto()       # every alternative of a nonterminal failed
    INCOMPLETE_CONSUMPTION = auto()  # RE matched but input is left over


class ParseFailure:
    def __init__(self, kind: FailureKind, position: int):
        self.kind = kind
        self.position = position

    def __repr__(self):
        return f"{self.kind.name}@{self.position}"


class RegexSyntaxError(ValueError):
    def __init__(self, kind: FailureKind, index: int):
        super().__init__(f"{kind.name.lower().replace('_', ' ')} at index {index}")
        self.kind = kind
        self.index = index


# --- PARSER ---

class RegexTreeParser:
    # Holds the text and the tree of a single parse. Matchers take an explicit
    # position and destination node and return the next position, or None.
    def __init__(self, text):
        self.text = text
        self.tree = ParseTree()
        self.farthest = 0  # farthest position a terminal rejected

    ##
    def parse(self):
        root = self.tree.root
        with recursion_room(len(self.text)):
            end = self.re(0, root)
        if end is None:
            kind = FailureKind.GRAMMAR_EXHAUSTED
            if self.farthest < len(self.text) and \
                    not is_terminal(self.text[self.farthest]):
                kind = FailureKind.LEXICAL_REJECT
            self.tree.failure = ParseFailure(kind, self.farthest)
            return False
        if end != len(self.text):
            # RE succeeded on a prefix; its subtree is already attached.
            self.tree.free_last_children(root, 1)
            self.tree.failure = ParseFailure(
                FailureKind.INCOMPLETE_CONSUMPTION, end)
            return False
        return True

    # --- TERMINALS ---

    def _terminal(self, accepts, pos, parent):
        if pos < len(self.text) and accepts(self.text[pos]):
            self.tree.attach(parent, self.tree.create(self.text[pos]))
            return pos + 1
        self.farthest = max(self.farthest, pos)
        return None

    def epsilon(self, pos, parent):
        return self._terminal(is_epsilon, pos, parent)

    def symbol(self, pos, parent):
        return self._terminal(is_symbol, pos, parent)

    def lpar(self, pos, parent):
        return self._terminal(is_lpar, pos, parent)

    def rpar(self, pos, parent):
        return self._terminal(is_rpar, pos, parent)

    def star(self, pos, parent):
        return self._terminal(is_star, pos, parent)

    def plus(self, pos, parent):
        return self._terminal(is_plus, pos, parent)

    # --- NONTERMINALS ---

    def re(self, pos, parent):
        return self._nonterminal("RE", RE_ALTERNATIVES, pos, parent)

    def re_prime(self, pos, parent):
        return self._nonterminal("RE'", RE_PRIME_ALTERNATIVES, pos, parent)

    def _nonterminal(self, label, alternatives, pos, parent):
        # The node goes in first so that sub-matches have somewhere to attach.
        node = self.tree.create(label)
        self.tree.attach(parent, node)
        for steps in alternatives:
            end = self._attempt(steps, pos, node)
            if end is not None:
                return end
        # Exhausted: take our own node back out of the caller.
        self.tree.free_last_children(parent, 1)
        return None

    def _attempt(self, steps, pos, node):
        # A failed nonterminal step has already removed its own node, so only
        # the steps that succeeded before it are left to undo.
        for matched, step in enumerate(steps):
            next_pos = getattr(self, step)(pos, node)
            if next_pos is None:
                self.tree.free_last_children(node, matched)
                return None
            pos = next_pos
        return pos


def parse(text):
    """
    Parse `text` into a derivation tree.

    Returns (ok, tree). On success tree.root has a single RE child; on failure
    it has none and tree.failure says why.
    """
    parser = RegexTreeParser(text)
    ok = parser.parse()
    return ok, parser.tree


def parse_or_raise(text):
    ok, tree = parse(text)
    if not ok:
        failure = tree.failure
        tree.release()
        raise RegexSyntaxError(failure.kind, failure.position)
    return tree
