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

Entry points that turn Newick, Extended Newick, and Forest Extended Newick
text into Networks. The text has already been read by the caller.

Forest Extended Newick is a series of eNewick statements inside '<' and '>'
whose nodes may be shared by label:

    <(A,(B)X#H1);(C,X#H1);>

Each top level statement of the input becomes one Network. A forest becomes
a single Network, built by merging its members.
"""

from __future__ import annotations
from enum import Enum
from warnings import warn

from .Merge import merge_networks
from .Network import Network
from .NetworkBuilder import build_network
from .Newick import (NewickParserError, EmptyInputError, strip_comments,
                     divide_statements, split_forest)
from .Validation import ENewickValidator, ValidationSummary


#####################
#### Error Class ####
#####################

class NetworkParserError(Exception):
    """
    Error that is raised whenever the parser is misconfigured or asked for a
    network it does not have.
    """
    def __init__(self, message : str = "Something went wrong \
parsing a network") -> None:
        """
        Initialize the error with a message.

        Args:
            message (str, optional): Custom error message. Defaults to
                                     "Something went wrong parsing a network".
        """
        self.message = message
        super().__init__(self.message)

######################
#### Error Policy ####
######################

class ErrorPolicy(Enum):
    """
    What to do when a top level statement fails to parse.
    """
    # Stop at the first failing statement
    RAISE = "raise"
    # Drop failing statements, with a warning
    SKIP = "skip"
    # Keep a StatementResult for every statement, failed or not
    COLLECT = "collect"

class StatementResult:
    """
    The outcome of parsing one top level statement: a network, or the error
    that stopped it.
    """

    def __init__(self, index : int, text : str,
                 network : Network = None,
                 error : NewickParserError = None) -> None:
        self.index : int = index
        self.text : str = text
        self.network : Network = network
        self.error : NewickParserError = error

    def ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        status = "ok" if self.ok() else type(self.error).__name__
        return f"StatementResult({self.index}, {status})"

##########################
#### eNewick Parser ######
##########################

class ENewickParser:
    """
    Parses a blob of (Forest) (Extended) Newick text into Networks.
    """

    def __init__(self,
                 text : str,
                 validate_input : bool = True,
                 print_validation_summary : bool = False,
                 on_error : ErrorPolicy | str = ErrorPolicy.RAISE) -> None:
        """
        Initialize the parser, and parse.

        Raises:
            NetworkParserError: If on_error is not a known policy.
            NewickParserError: Under ErrorPolicy.RAISE, for the first
                               malformed statement. Under every policy, if
                               the statements themselves cannot be located.
        Args:
            text (str): The whole input.
            validate_input (bool, optional): Run an ENewickValidator over the
                                             input first. Defaults to True.
            print_validation_summary (bool, optional): Print the validation
                                                       report. Defaults to
                                                       False.
            on_error (ErrorPolicy | str, optional): What to do with a
                                                    malformed statement.
                                                    Defaults to RAISE.
        """
        try:
            self.policy : ErrorPolicy = ErrorPolicy(on_error)
        except ValueError:
            raise NetworkParserError(f"Unknown error policy '{on_error}', \
expected one of {[policy.value for policy in ErrorPolicy]}") from None

        self.text : str = text
        self.validation_summary : ValidationSummary = None
        self.results : list[StatementResult] = []

        if validate_input and text is not None and text.strip() != "":
            self.validation_summary = ENewickValidator().validate(text)
            if print_validation_summary:
                print(self.validation_summary)
            elif not self.validation_summary.is_valid:
                warn(f"Input failed validation: \
{'; '.join(self.validation_summary.errors)}")

        self.parse()

    def parse(self) -> None:
        """
        Split the input into top level statements and parse each one.
        """
        if self.text is None or self.text.strip() == "":
            raise EmptyInputError("Empty input string, nothing to parse")

        statements = divide_statements(strip_comments(self.text))

        for index, statement in enumerate(statements):
            try:
                network = parse_statement(statement)
            except NewickParserError as err:
                if self.policy is ErrorPolicy.RAISE:
                    raise
                if self.policy is ErrorPolicy.SKIP:
                    warn(f"Skipping statement {index}: {err.message}")
                self.results.append(StatementResult(index, statement,
                                                    error = err))
                continue

            self.results.append(StatementResult(index, statement, network))

    def get_network(self, index : int) -> Network:
        """
        Retrieves the network at index 'index' among the successfully parsed
        networks.

        Args:
            index (int): index
        Returns:
            Network: a parsed Network
        """
        networks = self.get_all_networks()
        if not -len(networks) <= index < len(networks):
            raise NetworkParserError(f"No network at index {index}, only \
{len(networks)} parsed")
        return networks[index]

    def get_all_networks(self) -> list[Network]:
        """
        Returns:
            list[Network] : the parsed networks, in input order.
        """
        return [result.network for result in self.results if result.ok()]

    def get_results(self) -> list[StatementResult]:
        """
        Returns:
            list[StatementResult]: one result per statement that was attempted.
        """
        return list(self.results)

    def get_errors(self) -> list[NewickParserError]:
        """
        Returns:
            list[NewickParserError]: the errors of the failed statements.
        """
        return [result.error for result in self.results if not result.ok()]

    def get_validation_summary(self) -> ValidationSummary:
        """
        Get the validation summary from the input validation.

        Returns:
            ValidationSummary: The validation results, or None if validation
                               was skipped
        """
        return self.validation_summary

###########################
#### Module Functions #####
###########################

def parse_statement(statement : str) -> Network:
    """
    Parse one comment free top level statement, either a forest block or a
    tree/network.

    Args:
        statement (str): "<...>" or "(...);"
    Returns:
        Network: the statement's network.
    """
    if statement.lstrip().startswith("<"):
        return parse_forest(statement)
    return build_network(statement)

def parse_forest(block : str) -> Network:
    """
    Parse a single Forest Extended Newick block into one merged Network.

    Args:
        block (str): "<EN1;EN2;...>"
    Returns:
        Network: the merged network.
    """
    members = [build_network(stmt) for stmt in split_forest(block)]
    return merge_networks(members)

def parse_enewick(statement : str) -> Network:
    """
    Parse one (Extended) Newick statement, comments allowed.

    Args:
        statement (str): "(...);"
    Returns:
        Network: the statement's network.
    """
    return build_network(strip_comments(statement))

def parse_forest_enewick(text : str, **options) -> list[Network]:
    """
    Parse a whole input of concatenated statements into one Network per
    statement, in input order.

    Args:
        text (str): the input.
        **options: keyword arguments for ENewickParser.
    Returns:
        list[Network]: the parsed networks.
    """
    options.setdefault("validate_input", False)
    return ENewickParser(text, **options).get_all_networks()
