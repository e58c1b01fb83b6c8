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
Approved for Release : Yes. Fully Documented and Tested.

Pre-parse validation for Newick / eNewick / Forest eNewick text. Validation
never raises; it reports what it finds in a ValidationSummary so that a
caller can look at a whole input before committing to a parse.
"""

from __future__ import annotations
from io import StringIO
from typing import Any, Dict, List

from Bio import Phylo

from .Newick import (NewickParserError, strip_comments, divide_statements,
                     split_forest, get_labels, reticulation_tag, _excerpt)


######################
#### Summary Class ###
######################

class ValidationSummary:
    """
    The findings of one validation run. Errors make the input invalid,
    warnings do not. Each top level statement gets a one line description,
    and statistics cover the input as a whole.
    """

    def __init__(self, source : str = "<string>") -> None:
        self.source : str = source
        self.is_valid : bool = True
        self.errors : List[str] = []
        self.warnings : List[str] = []
        self.statements : List[str] = []
        self.summary_stats : Dict[str, Any] = {}

    def add_error(self, error : str) -> None:
        """Record an error; the input is no longer valid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning : str) -> None:
        self.warnings.append(warning)

    def add_stat(self, key : str, value : Any) -> None:
        self.summary_stats[key] = value

    def add_statement(self, index : int, kind : str, text : str,
                      label_count : int) -> None:
        """
        Describe one top level statement.

        Args:
            index (int): position of the statement in the input.
            kind (str): "tree", "network" or "forest of N statements".
            text (str): the statement.
            label_count (int): number of distinct labels it writes.
        """
        self.statements.append(f"#{index} {kind}, {label_count} labels : \
{_excerpt(text, 40)}")

    def __str__(self) -> str:
        status = "VALID" if self.is_valid else "INVALID"
        lines = [f"eNewick validation of {self.source} : {status}",
                 f"{len(self.statements)} statements, {len(self.errors)} \
errors, {len(self.warnings)} warnings"]

        for title, entries in (("Statements", self.statements),
                               ("Errors", self.errors),
                               ("Warnings", self.warnings)):
            if len(entries) != 0:
                lines.append(f"{title}:")
                lines.extend(f"    {entry}" for entry in entries)

        if len(self.summary_stats) != 0:
            lines.append("Statistics:")
            width = max(len(key) for key in self.summary_stats)
            lines.extend(f"    {key.ljust(width)} = {value}"
                         for key, value in self.summary_stats.items())

        return "\n".join(lines)


###########################
#### eNewick Validator ####
###########################

class ENewickValidator:
    """
    Validator for Newick, Extended Newick and Forest Extended Newick text.
    """

    _PAIRS = {"(" : ")", "<" : ">", "[" : "]"}
    _CLOSERS = {")" : "(", ">" : "<", "]" : "["}

    def validate(self, text : str,
                 source : str = "<string>") -> ValidationSummary:
        """
        Validate newick text.

        Args:
            text (str): the whole input.
            source (str, optional): a name for the input, used in the report.
                                    Defaults to "<string>".
        Returns:
            ValidationSummary: Validation results and summary
        """
        summary = ValidationSummary(source)

        if text.strip() == "":
            summary.add_error("Input is empty")
            return summary

        self._check_balance(text, summary)

        clean = strip_comments(text)
        try:
            statements = divide_statements(clean)
        except NewickParserError as err:
            summary.add_error(f"Could not split input into statements: \
{err.message}")
            return summary

        self._analyze_statements(statements, summary)
        return summary

    def _check_balance(self, text : str, summary : ValidationSummary) -> None:
        """
        Count each bracket pair. Comments are skipped, and '<' / '>' inside a
        parenthesized group are label text rather than forest brackets.
        """
        in_comment = False
        depth = {opener : 0 for opener in self._PAIRS}

        for char in text:
            if in_comment:
                if char == "]":
                    in_comment = False
                    depth["["] -= 1
                continue
            if char in "<>" and depth["("] > 0:
                continue
            if char == "[":
                in_comment = True
                depth["["] += 1
            elif char in self._PAIRS:
                depth[char] += 1
            elif char in self._CLOSERS:
                opener = self._CLOSERS[char]
                depth[opener] -= 1
                if depth[opener] < 0:
                    summary.add_error(f"Unmatched '{char}'")
                    depth[opener] = 0

        for opener, count in depth.items():
            if count > 0:
                if opener == "[":
                    summary.add_warning("Unterminated comment")
                else:
                    summary.add_error(f"{count} unclosed '{opener}'")

    def _analyze_statements(self, statements : List[str],
                            summary : ValidationSummary) -> None:
        """Describe each statement and gather statistics over all of them."""
        forests = [stmt for stmt in statements if stmt.startswith("<")]
        summary.add_stat("Number of Statements", len(statements))
        summary.add_stat("Number of Forests", len(forests))

        trees : List[str] = []
        for index, stmt in enumerate(statements):
            stmt_labels = get_labels(stmt)
            if stmt.startswith("<"):
                try:
                    members = split_forest(stmt)
                except NewickParserError as err:
                    summary.add_error(f"Statement {index}: {err.message}")
                    continue
                trees.extend(members)
                kind = f"forest of {len(members)} statements"
            else:
                trees.append(stmt)
                kind = "network" if any(reticulation_tag(label) is not None
                                        for label in stmt_labels) else "tree"
            summary.add_statement(index, kind, stmt, len(stmt_labels))

        labels = set().union(*[get_labels(tree) for tree in trees]) \
            if trees else set()
        tagged = sorted(label for label in labels
                        if reticulation_tag(label) is not None)

        summary.add_stat("Number of eNewick Statements", len(trees))
        summary.add_stat("Number of Labels", len(labels))
        summary.add_stat("Reticulation Labels", tagged)
        summary.add_stat("Has Branch Lengths",
                         all(":" in tree for tree in trees))

        self._read_with_biopython(trees, summary)

    def _read_with_biopython(self, trees : List[str],
                             summary : ValidationSummary) -> None:
        """
        Cross check each statement against Biopython's Newick reader.
        Biopython does not know about repeated labels, so it sees a network
        as a tree with repeated taxa; that is fine for counting.
        """
        taxa = set()
        internal_nodes = 0

        for index, tree_str in enumerate(trees):
            # Deep trees can exceed Biopython's recursive traversal
            try:
                tree = Phylo.read(StringIO(tree_str), "newick")
                clades = list(tree.find_clades())
            except Exception as err:
                summary.add_warning(f"Biopython could not read eNewick \
statement {index}: {type(err).__name__}: {err}")
                continue

            for clade in clades:
                if clade.is_terminal():
                    if clade.name:
                        taxa.add(clade.name)
                else:
                    internal_nodes += 1

        summary.add_stat("Number of Taxa", len(taxa))
        summary.add_stat("Internal Nodes", internal_nodes)

        if 0 < len(taxa) < 3:
            summary.add_warning("Input has fewer than 3 taxa")


def validate_text(text : str, print_summary : bool = True) -> ValidationSummary:
    """
    Validate newick text and optionally print the summary.

    Args:
        text (str): the input.
        print_summary (bool, optional): print the report. Defaults to True.
    Returns:
        ValidationSummary: the results.
    """
    summary = ENewickValidator().validate(text)
    if print_summary:
        print(summary)
    return summary
