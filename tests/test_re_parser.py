import io
import sys

import pytest

from parse_tree import CapacityExceeded, ParseTree, leaves, same_shape
from re_parser import (FailureKind, RegexSyntaxError, RegexTreeParser,
                       parse, parse_or_raise)
from tree_tracer import tree_save


def dump(node):
    out = io.StringIO()
    tree_save(node, out, 0)
    return out.getvalue()


def count_nodes(node):
    return 1 + sum(count_nodes(child) for child in node.children)


# (pattern, accepted)
PATTERNS = [
    ("a", True),
    ("#", True),
    ("ab", True),
    ("a+b", True),
    ("a+b*", True),
    ("(ab)*", True),
    ("a*", True),
    ("a**", True),
    ("(a)", True),
    ("((a))", True),
    ("#+a", True),
    ("a+b+c", True),
    ("(a+b)*c", True),
    ("_1", True),
    ("Z9", True),
    ("", False),
    ("(a", False),
    ("a)", False),
    (")", False),
    ("+", False),
    ("*", False),
    ("()", False),
    ("a+", False),
    ("a b", False),
    ("?", False),
    ("é", False),
]


@pytest.mark.parametrize("pattern, accepted", PATTERNS)
def test_accept_reject(pattern, accepted):
    ok, tree = parse(pattern)
    assert ok is accepted
    if accepted:
        assert len(tree.root.children) == 1
        assert tree.root.children[0].label == "RE"
        assert tree.failure is None
    else:
        assert tree.root.children == []
        assert tree.failure is not None


@pytest.mark.parametrize(
    "pattern", [p for p, accepted in PATTERNS if accepted])
def test_leaves_spell_the_input(pattern):
    ok, tree = parse(pattern)
    assert ok
    assert "".join(leaves(tree.root)) == pattern


def test_single_symbol():
    ok, tree = parse("a")
    assert ok
    assert dump(tree.root.children[0]) == "RE\n-a\n"


def test_empty_marker():
    ok, tree = parse("#")
    assert ok
    assert dump(tree.root.children[0]) == "RE\n-#\n"


def test_concatenation_tree():
    ok, tree = parse("ab")
    assert ok
    assert dump(tree.root.children[0]) == "RE\n-a\n-RE'\n--RE\n---b\n"


def test_union_prefers_plus_re_without_continuation():
    ok, tree = parse("a+b")
    assert ok
    assert dump(tree.root.children[0]) == (
        "RE\n"
        "-a\n"
        "-RE'\n"
        "--+\n"
        "--RE\n"
        "---b\n"
    )


def test_union_with_closure():
    ok, tree = parse("a+b*")
    assert ok
    assert dump(tree.root.children[0]) == (
        "RE\n"
        "-a\n"
        "-RE'\n"
        "--+\n"
        "--RE\n"
        "---b\n"
        "---RE'\n"
        "----*\n"
    )


def test_group_with_closure_uses_four_children():
    ok, tree = parse("(ab)*")
    assert ok
    top = tree.root.children[0]
    assert [c.label for c in top.children] == ["(", "RE", ")", "RE'"]
    assert dump(top) == (
        "RE\n"
        "-(\n"
        "-RE\n"
        "--a\n"
        "--RE'\n"
        "---RE\n"
        "----b\n"
        "-)\n"
        "-RE'\n"
        "--*\n"
    )


def test_bare_group_falls_back_to_fourth_alternative():
    ok, tree = parse("(a)")
    assert ok
    assert [c.label for c in tree.root.children[0].children] == ["(", "RE", ")"]


def test_trailing_input_frees_committed_subtree():
    ok, tree = parse("a)")
    assert not ok
    assert tree.root.children == []
    assert tree.live_count == 1
    assert tree.failure.kind is FailureKind.INCOMPLETE_CONSUMPTION
    assert tree.failure.position == 1


@pytest.mark.parametrize("pattern, kind, position", [
    ("", FailureKind.GRAMMAR_EXHAUSTED, 0),
    ("(a", FailureKind.GRAMMAR_EXHAUSTED, 2),
    ("?", FailureKind.LEXICAL_REJECT, 0),
    ("a+", FailureKind.INCOMPLETE_CONSUMPTION, 1),
    ("a b", FailureKind.INCOMPLETE_CONSUMPTION, 1),
])
def test_failure_diagnostics(pattern, kind, position):
    ok, tree = parse(pattern)
    assert not ok
    assert tree.failure.kind is kind
    assert tree.failure.position == position


@pytest.mark.parametrize("pattern, accepted", PATTERNS)
def test_no_nodes_leak(pattern, accepted):
    ok, tree = parse(pattern)
    assert tree.live_count == count_nodes(tree.root)
    if not ok:
        assert tree.live_count == 1
    tree.release()
    assert tree.live_count == 0


def test_parsing_twice_gives_the_same_shape():
    _, first = parse("(a+b)*c")
    _, second = parse("(a+b)*c")
    assert first.root is not second.root
    assert same_shape(first.root, second.root)


def test_failed_matchers_leave_position_and_tree_alone():
    parser = RegexTreeParser("a")
    node = parser.tree.create("RE")
    for matcher in (parser.epsilon, parser.lpar, parser.rpar,
                    parser.star, parser.plus):
        assert matcher(0, node) is None
    assert parser.symbol(1, node) is None
    assert node.children == []


def test_terminal_appends_one_leaf():
    parser = RegexTreeParser("+")
    node = parser.tree.create("RE'")
    assert parser.plus(0, node) == 1
    assert [c.label for c in node.children] == ["+"]


def test_symbol_class_is_ascii_only():
    for c in "aZ09_":
        parser = RegexTreeParser(c)
        assert parser.symbol(0, parser.tree.root) == 1
    for c in "-. é":
        parser = RegexTreeParser(c)
        assert parser.symbol(0, parser.tree.root) is None


def test_exhausted_nonterminal_removes_its_own_node():
    parser = RegexTreeParser(")")
    assert parser.re(0, parser.tree.root) is None
    assert parser.tree.root.children == []
    assert parser.tree.live_count == 1


def test_full_parent_surfaces_capacity_error():
    parser = RegexTreeParser("a")
    parent = parser.tree.create("RE")
    for label in "wxyz":
        parser.tree.attach(parent, parser.tree.create(label))
    with pytest.raises(CapacityExceeded):
        parser.symbol(0, parent)


def test_parse_or_raise():
    tree = parse_or_raise("a+b")
    assert isinstance(tree, ParseTree)
    with pytest.raises(RegexSyntaxError) as excinfo:
        parse_or_raise("a)")
    assert excinfo.value.kind is FailureKind.INCOMPLETE_CONSUMPTION
    assert excinfo.value.index == 1
    assert "at index 1" in str(excinfo.value)


def test_long_star_chain_parses_without_hitting_the_stack_limit():
    limit = sys.getrecursionlimit()
    ok, tree = parse("a" + "*" * 1000)
    assert ok
    assert sys.getrecursionlimit() == limit
    # Root, RE, a, then one RE' and one * per star
    assert tree.live_count == 3 + 2 * 1000
    tree.release()
    assert tree.live_count == 0
