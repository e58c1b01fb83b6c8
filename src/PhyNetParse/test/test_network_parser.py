import pytest
from collections import Counter
from io import StringIO

import networkx as nx
from Bio import Phylo

from PhyNetParse.NetworkParser import *
from PhyNetParse.Newick import (NewickParserError, EmptyInputError,
                                StatementBoundaryError, SubtreeWrapperError,
                                BranchLengthError)


#######################
#### TEST STRINGS #####
#######################

# Unique labels and an explicit length on every edge
FULLY_SPECIFIED = [
    "(((One:0.2,Two:0.3)X:0.3,(Three:0.5,Four:0.3)Y:0.2)Z:0.3,Five:0.7)R:0.0;",
    "((A:1,B:2)C:3,(D:4,(E:5,F:6)G:7)H:8)I;",
    "(Human:0.1,(Chimp:0.2,(Gorilla:0.3,Orangutan:0.4)Great:0.05)Apes:0.6)Root;",
]

MIXED = "(A,B);\n<(C,X#H1);(D,X#H1);>\n((E,F)G,H);"


def _caterpillar(taxa : int) -> str:
    """
    ((..(T0,T1),T2)..,Tn-1); nested taxa - 1 groups deep.
    """
    newick = "T0"
    for index in range(1, taxa):
        newick = f"({newick},T{index})"
    return newick + ";"


def _biopython_triples(newick : str) -> Counter:
    """
    (parent, child, length) triples of a newick string, read by Biopython.
    """
    tree = Phylo.read(StringIO(newick), "newick")
    triples = Counter()
    for clade in tree.find_clades():
        for child in clade.clades:
            triples[(clade.name, child.name, child.branch_length)] += 1
    return triples


#########################
#### ENTRY POINTS #######
#########################

@pytest.mark.parametrize("newick", FULLY_SPECIFIED)
def test_reconstruction_matches_biopython(newick):
    net = parse_enewick(newick)
    assert Counter(net.edge_triples()) == _biopython_triples(newick)

def test_parse_forest_enewick_one_network_per_statement():
    networks = parse_forest_enewick(MIXED)
    assert len(networks) == 3
    assert [len(net) for net in networks] == [3, 5, 5]

    forest = networks[1]
    assert forest.in_degree(forest.has_node_named("X#H1")) == 2
    assert networks[2].has_node_named("G") is not None

def test_parse_statement_dispatches_forests():
    assert len(parse_statement("<(A,B);(A,C);>")) == 5
    assert len(parse_statement("(A,B);")) == 3

def test_reticulate_network_exports_to_networkx():
    net = parse_enewick("((A,(B)X#H1)R1,(C,X#H1)R2);")
    graph = net.to_networkx()
    assert graph.number_of_nodes() == 7
    assert graph.number_of_edges() == 7
    assert graph.in_degree(3) == 2
    assert graph.nodes[3]["label"] == "X#H1"
    assert nx.is_directed_acyclic_graph(graph)

def test_missing_terminator_is_fatal():
    with pytest.raises(NewickParserError):
        parse_forest_enewick("(A,B")

def test_empty_input():
    with pytest.raises(EmptyInputError):
        ENewickParser("")
    with pytest.raises(EmptyInputError):
        parse_forest_enewick("[just a comment]")

def test_deeply_nested_tree():
    net = parse_enewick(_caterpillar(1500))
    assert len(net) == 2 * 1500 - 1
    assert len(net.get_leaves()) == 1500
    assert net.root().label == "0HTU"
    # Pre-order ids: each internal node's first child is the next id
    assert [child.id for child in net.get_children(0)] == [1, 2 * 1500 - 2]
    assert net.get_node(1500 - 1).label == "T0"

def test_deeply_nested_tree_in_a_batch():
    parser = ENewickParser("(A,B);" + _caterpillar(1500),
                           validate_input = False, on_error = "collect")
    assert [result.ok() for result in parser.get_results()] == [True, True]
    assert len(parser.get_network(1).get_leaves()) == 1500

def test_angle_brackets_in_labels():
    networks = parse_forest_enewick("<(A>B,C);(D,A>B);>(E<1,F)R<2;")
    assert len(networks) == 2
    forest = networks[0]
    assert forest.in_degree(forest.has_node_named("A>B")) == 2
    assert networks[1].root().label == "R<2"
    assert networks[1].has_node_named("E<1") is not None

def test_comment_with_structural_characters():
    networks = parse_forest_enewick("(A[a;b,(c)],B);(C,D);")
    assert len(networks) == 2
    assert [node.label for node in networks[0].get_nodes()] == \
        ["0HTU", "A", "B"]

########################
#### ERROR POLICIES ####
########################

BAD_MIDDLE = "(A,B);(C:x,D);(E,F);"

def test_raise_policy_stops_at_first_error():
    with pytest.raises(BranchLengthError):
        ENewickParser(BAD_MIDDLE, validate_input = False)

def test_skip_policy_drops_bad_statement():
    with pytest.warns(UserWarning, match = "Skipping statement 1"):
        parser = ENewickParser(BAD_MIDDLE, validate_input = False,
                               on_error = "skip")
    networks = parser.get_all_networks()
    assert len(networks) == 2
    assert networks[1].has_node_named("E") is not None

def test_collect_policy_keeps_typed_errors():
    parser = ENewickParser(BAD_MIDDLE, validate_input = False,
                           on_error = ErrorPolicy.COLLECT)
    results = parser.get_results()
    assert [result.ok() for result in results] == [True, False, True]
    assert results[1].network is None
    assert results[1].text == "(C:x,D);"

    errors = parser.get_errors()
    assert len(errors) == 1
    assert isinstance(errors[0], BranchLengthError)
    assert "x" in errors[0].message

    assert parser.get_network(1).has_node_named("F") is not None

def test_failing_forest_member_fails_the_forest():
    parser = ENewickParser("<(A,B);(C:x,D);>(E,F);", validate_input = False,
                           on_error = "collect")
    assert len(parser.get_all_networks()) == 1
    assert isinstance(parser.get_errors()[0], BranchLengthError)
    assert parser.get_results()[0].index == 0

def test_boundary_errors_abort_under_every_policy():
    with pytest.raises(StatementBoundaryError):
        ENewickParser("(A,B);X", validate_input = False, on_error = "collect")
    with pytest.raises(SubtreeWrapperError):
        ENewickParser("(A,B);(C", validate_input = False, on_error = "skip")

def test_unknown_policy():
    with pytest.raises(NetworkParserError):
        ENewickParser("(A,B);", on_error = "ignore")

def test_get_network_out_of_range():
    parser = ENewickParser("(A,B);", validate_input = False)
    assert len(parser.get_network(0)) == 3
    with pytest.raises(NetworkParserError):
        parser.get_network(5)

#######################
#### VALIDATION #######
#######################

def test_validation_summary_is_printed(capsys):
    parser = ENewickParser("(A:1,B:2,C:3);", print_validation_summary = True)
    assert "eNewick validation of <string> : VALID" in capsys.readouterr().out
    assert parser.get_validation_summary().is_valid

def test_validation_can_be_turned_off():
    parser = ENewickParser("(A,B);", validate_input = False)
    assert parser.get_validation_summary() is None

def test_invalid_input_warns_before_raising():
    with pytest.warns(UserWarning, match = "failed validation"):
        with pytest.raises(SubtreeWrapperError):
            ENewickParser("(A,B));")
