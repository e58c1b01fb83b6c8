#! /usr/bin/env python
# -*- coding: utf-8 -*-

##############################################################################
##  -- PhyNetParse --
##  Parsing of Newick, Extended Newick and Forest Extended Newick text
##
##  Copyright 2025 Mark Kessler, Luay Nakhleh.
##  All rights reserved.
##
##  See "LICENSE.txt" for terms and conditions of usage.
##
##  If you use this work or any portion thereof in published work,
##  please cite it as:
##
##     Mark Kessler, Luay Nakhleh. 2025.
##
##############################################################################

"""
Last Stable Edit : 10/18/26
First Included in Version : 1.0.0
Approved for Release Date : Yes.

Text level helpers for (Extended) Newick strings. Nothing in this module
builds nodes or edges; it strips comments, splits a file's worth of text into
statements, splits forests into their member statements, and pulls labels,
branch lengths and child lists out of individual fragments.

All scanning is depth aware: a separator only counts when it is not nested
inside a parenthesized group.
"""

from __future__ import annotations
import re
from warnings import warn

##########################
#### EXCEPTION CLASSES ###
##########################

class NewickParserError(Exception):
    """
    Error class for any exceptions relating to failing to parse a newick string
    into a Network object.
    """
    def __init__(self, message : str = "Error parsing a newick string") -> None:
        """
        Initialize a new error message

        Args:
            message (str, optional): The error message. Defaults to "Error
                                     parsing a newick string".
        Returns:
            N/A
        """
        self.message = message
        super().__init__(self.message)

class EmptyInputError(NewickParserError):
    """
    Raised when there is nothing to parse.
    """
    def __init__(self, message : str = "Empty input string") -> None:
        super().__init__(message)

class StatementBoundaryError(NewickParserError):
    """
    Raised when a top level statement starts with something other than '<' or
    '('.
    """
    def __init__(self, message : str = "Statement does not begin with '<' \
or '('") -> None:
        super().__init__(message)

class ForestWrapperError(NewickParserError):
    """
    Raised when a Forest Extended Newick block is not properly wrapped in
    '<' and '>'.
    """
    def __init__(self, message : str = "Malformed forest block") -> None:
        super().__init__(message)

class SubtreeWrapperError(NewickParserError):
    """
    Raised when a subtree is not properly wrapped in '(' and ')', or when
    parentheses do not balance.
    """
    def __init__(self, message : str = "Malformed subtree") -> None:
        super().__init__(message)

class BranchLengthError(NewickParserError):
    """
    Raised when a branch length field is not a number.
    """
    def __init__(self, message : str = "Branch length is not a number") -> None:
        super().__init__(message)

class EmptyFragmentError(NewickParserError):
    """
    Raised when a statement, forest or child list entry is empty.
    """
    def __init__(self, message : str = "Empty newick fragment") -> None:
        super().__init__(message)

#########################
#### MODULE CONSTANTS ###
#########################

HTU_SUFFIX : str = "HTU"

# Optionally signed decimal, with an optional exponent
_NUMERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# name#H1, name#R2, name#LGT3 (Cardona et al. 2008)
_RETIC_TAG = re.compile(r"#(LGT|H|R)(\d+)$")

_EVENT_NAMES : dict[str, str] = {"H" : "Hybridization",
                                 "R" : "Recombination",
                                 "LGT" : "Lateral Gene Transfer"}

_STRUCTURAL = {"(", ")", ","}

##########################
#### HELPER FUNCTIONS ####
##########################

def _excerpt(text : str, limit : int = 60) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."

def matching_close(text : str, start : int,
                   open_char : str = "(", close_char : str = ")") -> int:
    """
    Given the index of an opening character, find the index of the character
    that closes it, counting nesting depth along the way.

    Args:
        text (str): Text to scan.
        start (int): Index of an open_char in text.
        open_char (str, optional): Opening character. Defaults to "(".
        close_char (str, optional): Closing character. Defaults to ")".
    Returns:
        int: The index of the matching close_char, or -1 if it never closes.
    """
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return index
    return -1

def split_top_level(text : str, separator : str) -> list[str]:
    """
    Split text on a separator, but only where the separator is not nested
    inside parentheses.

    Raises:
        SubtreeWrapperError: if a ')' closes a group that was never opened.
    Args:
        text (str): Text to split.
        separator (str): A single character.
    Returns:
        list[str]: The pieces, in order. Empty pieces are kept.
    """
    pieces : list[str] = []
    depth = 0
    last = 0
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise SubtreeWrapperError(f"Unbalanced ')' in : \
{_excerpt(text)}")
        elif char == separator and depth == 0:
            pieces.append(text[last:index])
            last = index + 1
    pieces.append(text[last:])
    return pieces

#########################
#### COMMENT STRIPPER ###
#########################

def strip_comments(text : str) -> str:
    """
    Remove every "[...]" span, left to right. Comments do not nest. If a '['
    is never closed, everything from that '[' on is kept as is.

    Args:
        text (str): Raw newick text.
    Returns:
        str: The text without comments.
    """
    kept : list[str] = []
    pos = 0
    while pos < len(text):
        open_at = text.find("[", pos)
        if open_at == -1:
            kept.append(text[pos:])
            break
        close_at = text.find("]", open_at + 1)
        if close_at == -1:
            warn(f"Unterminated comment left in place: \
{_excerpt(text[open_at:])}")
            kept.append(text[pos:])
            break
        kept.append(text[pos:open_at])
        pos = close_at + 1

    return "".join(kept)

##########################
#### STATEMENT SPLITTING #
##########################

def divide_statements(text : str) -> list[str]:
    """
    Split file level text into its top level statements. A statement is
    either a forest block, "<...>", or a tree/network, "(...);". Whitespace
    between statements is ignored.

    Raises:
        EmptyInputError: If there are no statements at all.
        StatementBoundaryError: If a statement begins with any other character.
        ForestWrapperError: If a '<' is never closed.
        SubtreeWrapperError: If a tree statement is never terminated.
    Args:
        text (str): Comment free newick text.
    Returns:
        list[str]: The statements, in input order.
    """
    statements : list[str] = []
    pos = 0

    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue

        if text[pos] == "<":
            end = _forest_end(text, pos)
        elif text[pos] == "(":
            end = _statement_end(text, pos)
        else:
            raise StatementBoundaryError(f"Statement must begin with '<' or \
'(' : {_excerpt(text[pos:])}")

        statements.append(text[pos:end + 1])
        pos = end + 1

    if len(statements) == 0:
        raise EmptyInputError("No newick statements found in input")

    return statements

def _statement_end(text : str, start : int) -> int:
    """
    Find the ';' that terminates the tree statement beginning at 'start'.
    """
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise SubtreeWrapperError(f"Unbalanced ')' in statement : \
{_excerpt(text[start:index + 1])}")
        elif char == ";":
            if depth != 0:
                raise SubtreeWrapperError(f"Statement terminated inside an \
open group : {_excerpt(text[start:index + 1])}")
            return index
    raise SubtreeWrapperError(f"Statement is not terminated by ';' : \
{_excerpt(text[start:])}")

def _forest_end(text : str, start : int) -> int:
    """
    Find the '>' that closes the forest block beginning at 'start'. Angle
    brackets inside a parenthesized group belong to labels and are skipped,
    so only a '>' at parenthesis depth 0 closes the block.
    """
    depth = 0
    for index in range(start + 1, len(text)):
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ForestWrapperError(f"Unbalanced ')' in forest block : \
{_excerpt(text[start:index + 1])}")
        elif char == "<" and depth == 0:
            raise ForestWrapperError(f"Forest blocks do not nest : \
{_excerpt(text[start:index + 1])}")
        elif char == ">" and depth == 0:
            return index
    raise ForestWrapperError(f"Forest block is never closed with '>' : \
{_excerpt(text[start:])}")

def split_forest(forest : str) -> list[str]:
    """
    Break a Forest Extended Newick block, "<EN1;EN2;...>", into its member
    eNewick statements, each ending in ';'.

    Raises:
        ForestWrapperError: If the block is not wrapped in '<' and '>'.
        EmptyFragmentError: If the block contains no statements.
    Args:
        forest (str): A single forest block.
    Returns:
        list[str]: eNewick statements, in order.
    """
    forest = forest.strip()
    if not forest.startswith("<") or not forest.endswith(">"):
        raise ForestWrapperError(f"Invalid Forest Extended Newick \
representation, must begin with '<' and end with '>' : {_excerpt(forest)}")

    parts = [part.strip() for part in split_top_level(forest[1:-1], ";")]
    statements = [part + ";" for part in parts if part != ""]

    if len(statements) == 0:
        raise EmptyFragmentError(f"Forest contains no statements : {forest}")

    return statements

##########################
#### FRAGMENT HELPERS ####
##########################

def _tail(text : str) -> str:
    """
    Everything after the last ')' (the whole text if there is none).
    """
    return text[text.rfind(")") + 1:]

def branch_length(text : str) -> float:
    """
    Extract the branch length that follows the final ')' of a fragment. If
    there is no ':' (or nothing after it), the branch length is 1.

    Raises:
        BranchLengthError: If the branch length is not a number.
    Args:
        text (str): A subtree or leaf fragment, without the ';'.
    Returns:
        float: the branch length.
    """
    tail = _tail(text)
    if ":" not in tail:
        return 1.0

    numeral = tail[tail.rfind(":") + 1:].strip()
    if numeral == "":
        return 1.0
    if _NUMERAL.match(numeral) is None:
        raise BranchLengthError(f"Branch length '{numeral}' is not a number \
in : {_excerpt(text)}")
    return float(numeral)

def explicit_label(text : str) -> str | None:
    """
    The label written after the final ')' and before any ':', or None if no
    usable label was written.

    Args:
        text (str): A subtree or leaf fragment.
    Returns:
        str | None: the label, if one is present.
    """
    label = _tail(text).split(":", maxsplit = 1)[0].strip()
    if label == "" or "," in label:
        return None
    return label

def htu_label(node_id : int) -> str:
    """
    Make up a label for an unlabeled node.

    Args:
        node_id (int): the id of the node.
    Returns:
        str: "<node_id>HTU"
    """
    return f"{node_id}{HTU_SUFFIX}"

def subtree_body(text : str) -> tuple[str, str | None, float]:
    """
    Break a subtree fragment "(...)label:length" into its parts.

    Raises:
        SubtreeWrapperError: If the fragment is not a single parenthesized
                             group followed by an optional label and length.
        BranchLengthError: If the branch length is not a number.
    Args:
        text (str): A subtree fragment.
    Returns:
        tuple[str, str | None, float]: the group text "(...)", the written
                                       label (None if there is none) and the
                                       branch length.
    """
    text = text.strip()
    if not text.startswith("("):
        raise SubtreeWrapperError(f"Subtree must begin with '(' : \
{_excerpt(text)}")

    close = matching_close(text, 0)
    if close == -1:
        raise SubtreeWrapperError(f"Subtree is never closed with ')' : \
{_excerpt(text)}")

    rest = text[close + 1:]
    if any(char in _STRUCTURAL for char in rest):
        raise SubtreeWrapperError(f"Unexpected text after subtree group : \
{_excerpt(text)}")

    return text[:close + 1], explicit_label(text), branch_length(text)

def children(group : str) -> list[str]:
    """
    Split a group "(a,b,...)" into its child fragments.

    Raises:
        SubtreeWrapperError: If group does not begin with '(' and end with ')'.
        EmptyFragmentError: If any child is empty.
    Args:
        group (str): a parenthesized group, as returned by subtree_body.
    Returns:
        list[str]: The child fragments, stripped of whitespace.
    """
    group = group.strip()
    if not group.startswith("(") or not group.endswith(")"):
        raise SubtreeWrapperError(f"Invalid Extended Newick component, must \
begin with '(' and end with ')' : {_excerpt(group)}")

    kids = [kid.strip() for kid in split_top_level(group[1:-1], ",")]
    for kid in kids:
        if kid == "":
            raise EmptyFragmentError(f"Empty child in : {_excerpt(group)}")
    return kids

def reticulation_tag(label : str) -> tuple[str, int] | None:
    """
    Decode an Extended Newick reticulation tag from a label.

    IE: "X#H1" returns ("Hybridization", 1)
    IE: "#LGT21" returns ("Lateral Gene Transfer", 21)

    Args:
        label (str): A node label.
    Returns:
        tuple[str, int] | None: the event type and index, or None if the
                                label carries no well formed tag.
    """
    match = _RETIC_TAG.search(label)
    if match is None:
        return None
    return _EVENT_NAMES[match.group(1)], int(match.group(2))

def get_labels(newick_str : str) -> set[str]:
    """
    Given a newick string, gather all unique labels present in the string.

    Args:
        newick_str (str): a comment free newick string.
    Returns:
        set[str]: a set of unique labels
    """
    label_set : set[str] = set()
    cur_label = ""
    depth = 0

    for char in newick_str:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1

        # Angle brackets only wrap forests at depth 0, elsewhere they are text
        if char in {")", "(", ",", ";"} or (char in "<>" and depth == 0):
            label = cur_label.split(":", maxsplit = 1)[0].strip()
            if len(label) > 0:
                label_set.add(label)
            cur_label = ""
        else:
            cur_label += char

    label = cur_label.split(":", maxsplit = 1)[0].strip()
    if len(label) > 0:
        label_set.add(label)

    return label_set
