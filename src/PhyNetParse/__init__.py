#! /usr/bin/env python
# -*- coding: utf-8 -*-

##############################################################################
##  -- PhyNetParse --
##  Parsing of Newick, Extended Newick and Forest Extended Newick text
##
##  Copyright 2025 Mark Kessler, Luay Nakhleh.
##  All rights reserved.
##############################################################################

"""
PhyNetParse - Newick, Extended Newick and Forest Extended Newick parsing

Turns phylogenetic tree and network text into directed graphs.
"""

# Core data structures
from .Network import Network, Node, Edge, NetworkError

# Text level helpers and errors
from .Newick import (NewickParserError, EmptyInputError,
                     StatementBoundaryError, ForestWrapperError,
                     SubtreeWrapperError, BranchLengthError,
                     EmptyFragmentError, strip_comments, divide_statements,
                     split_forest)

# Building and merging
from .NetworkBuilder import (NetworkBuilder, NewNode, ExistingNodeReference,
                             build_network)
from .Merge import ForestMerger, MergeError, merge_networks

# Parsing entry points
from .NetworkParser import (ENewickParser, ErrorPolicy, StatementResult,
                            NetworkParserError, parse_enewick, parse_forest,
                            parse_forest_enewick, parse_statement)

# Validation
from .Validation import ENewickValidator, ValidationSummary, validate_text

__version__ = "1.0.0"
