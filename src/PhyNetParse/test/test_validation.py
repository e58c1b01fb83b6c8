import pytest
from PhyNetParse.Validation import *


def test_valid_tree_stats():
    summary = ENewickValidator().validate("(A:1,B:2,C:3);")
    assert summary.is_valid
    assert summary.errors == []
    stats = summary.summary_stats
    assert stats["Number of Statements"] == 1
    assert stats["Number of Forests"] == 0
    assert stats["Number of eNewick Statements"] == 1
    assert stats["Number of Labels"] == 3
    assert stats["Has Branch Lengths"]
    assert stats["Number of Taxa"] == 3
    assert stats["Internal Nodes"] == 1

def test_forest_stats():
    summary = ENewickValidator().validate("<(C,X#H1);(D,X#H1);>(A,B,E);")
    assert summary.is_valid
    stats = summary.summary_stats
    assert stats["Number of Statements"] == 2
    assert stats["Number of Forests"] == 1
    assert stats["Number of eNewick Statements"] == 3
    assert stats["Reticulation Labels"] == ["X#H1"]
    assert not stats["Has Branch Lengths"]

def test_small_input_warns():
    summary = ENewickValidator().validate("(A,B);")
    assert summary.is_valid
    assert "Input has fewer than 3 taxa" in summary.warnings

def test_empty_input():
    summary = ENewickValidator().validate("   ")
    assert not summary.is_valid
    assert summary.errors == ["Input is empty"]

def test_unclosed_group():
    summary = ENewickValidator().validate("(A,B")
    assert not summary.is_valid
    assert "1 unclosed '('" in summary.errors

def test_unmatched_close():
    summary = ENewickValidator().validate("(A,B));")
    assert not summary.is_valid
    assert "Unmatched ')'" in summary.errors

def test_unterminated_comment():
    with pytest.warns(UserWarning, match = "Unterminated comment"):
        summary = ENewickValidator().validate("(A,B);[oops")
    assert "Unterminated comment" in summary.warnings
    assert not summary.is_valid

def test_comments_do_not_count_as_brackets():
    summary = ENewickValidator().validate("(A[(],B,C);")
    assert summary.is_valid

def test_one_line_per_statement():
    summary = ENewickValidator().validate(
        "(A,B,C);<(C,X#H1);(D,X#H1);>((E,X#H2),X#H2);")
    assert summary.statements == [
        "#0 tree, 3 labels : (A,B,C);",
        "#1 forest of 2 statements, 3 labels : <(C,X#H1);(D,X#H1);>",
        "#2 network, 2 labels : ((E,X#H2),X#H2);",
    ]

def test_broken_forest_is_named_by_position():
    summary = ENewickValidator().validate("(A,B,C);<>")
    assert not summary.is_valid
    assert summary.errors[0].startswith("Statement 1:")
    assert len(summary.statements) == 1

def test_angle_brackets_inside_groups_are_labels():
    summary = ENewickValidator().validate("<(A>B,C);(D,A>B);>(E<1,F,G);")
    assert summary.is_valid
    assert summary.summary_stats["Number of Labels"] == 6

def test_report_format():
    summary = ENewickValidator().validate("(A,B,C);", source = "trees.txt")
    lines = str(summary).splitlines()
    assert lines[0] == "eNewick validation of trees.txt : VALID"
    assert lines[1] == "1 statements, 0 errors, 0 warnings"
    assert "    #0 tree, 3 labels : (A,B,C);" in lines
    assert "Statistics:" in lines
    assert "Errors:" not in lines

def test_validate_text_prints_on_request(capsys):
    validate_text("(A,B,C);", print_summary = False)
    assert capsys.readouterr().out == ""
    summary = validate_text("(A,B", print_summary = True)
    out = capsys.readouterr().out
    assert "eNewick validation of <string> : INVALID" in out
    assert "Errors:" in out
    assert not summary.is_valid
