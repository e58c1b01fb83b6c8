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

Builds a single Extended Newick statement into a Network.

The statement is walked top down, left to right. Every node gets its id at
the moment it is first seen, so ids follow pre-order. A label that shows up
again later in the statement refers back to the node created for its first
occurrence instead of creating a new one; this is how a network node with
several parents is written in eNewick:

    ((A,(B)X#H1)R1,(C,X#H1)R2);

Each step of the walk records an entry: either a NewNode (a node that did
not exist yet, plus the edge to it from its parent) or an
ExistingNodeReference (an edge to a node that already exists). Assembly
keeps every NewNode's node and every entry's edge.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union
from warnings import warn

from .Network import Node, Edge, Network
from .Newick import (SubtreeWrapperError, EmptyFragmentError, branch_length,
                     explicit_label, htu_label, subtree_body, children,
                     reticulation_tag)

#######################
#### BUILD ENTRIES ####
#######################

@dataclass(frozen = True)
class NewNode:
    """
    A node created by this step, and the edge from its parent (None for the
    root).
    """
    node : Node
    edge : Edge | None

@dataclass(frozen = True)
class ExistingNodeReference:
    """
    A back reference to the canonical node with id canonical_id, and the edge
    from the current parent to it (None if no edge is built).
    """
    canonical_id : int
    label : str
    edge : Edge | None

Entry = Union[NewNode, ExistingNodeReference]

##########################
#### NETWORK BUILDER #####
##########################

class NetworkBuilder:
    """
    Owns the growing node table and entry list for one statement. Use each
    builder for exactly one statement.
    """

    def __init__(self) -> None:
        # Node table. A node's id is its index in this list.
        self.nodes : list[Node] = []

        # Label to canonical id. First occurrence wins.
        self.label_index : dict[str, int] = {}

        # Flat, creation ordered record of the walk
        self.entries : list[Entry] = []

        # (parent id, child id) pairs of every edge built so far
        self.edge_keys : set[tuple[int, int]] = set()

        self.root_branch_length : float = None

    ###########################
    #### IDENTITY RESOLVER ####
    ###########################

    def find_existing(self, label : str) -> Node | None:
        """
        Look up the canonical node for a label.

        Args:
            label (str): A node label.
        Returns:
            Node | None: The earliest created node with that label, if any.
        """
        node_id = self.label_index.get(label)
        if node_id is None:
            return None
        return self.nodes[node_id]

    def _create(self, label : str | None) -> Node:
        """
        Add a new node to the table. A label of None gets an "<id>HTU" label
        and is never registered for back references.
        """
        node_id = len(self.nodes)

        if label is None:
            node = Node(node_id, htu_label(node_id), synthesized = True)
        else:
            attr = {}
            tag = reticulation_tag(label)
            if tag is not None:
                attr["eventType"], attr["index"] = tag
            node = Node(node_id, label, attr = attr)
            self.label_index[label] = node_id

        self.nodes.append(node)
        return node

    def _edge(self,
              parent_id : int | None,
              parent_is_reference : bool,
              child_id : int,
              weight : float) -> Edge | None:
        """
        Make the edge from parent to child. An edge written beneath a
        back referenced node that repeats an edge already built between the
        same two nodes is dropped.
        """
        if parent_id is None:
            return None

        key = (parent_id, child_id)
        if parent_is_reference and key in self.edge_keys:
            warn(f"Edge {self.nodes[parent_id].label} -> \
{self.nodes[child_id].label} is described more than once, keeping the first")
            return None

        self.edge_keys.add(key)
        return Edge(parent_id, child_id, weight)

    def resolve(self,
                parent_id : int | None,
                parent_is_reference : bool,
                label : str | None,
                weight : float) -> tuple[int, bool]:
        """
        Resolve one node occurrence, record its entry, and report the id that
        children of this occurrence should hang from.

        Args:
            parent_id (int | None): The canonical id of the parent, or None for
                                    the root.
            parent_is_reference (bool): True if the parent occurrence was a
                                        back reference.
            label (str | None): The written label, or None if there was none.
            weight (float): Length of the edge from the parent.
        Returns:
            tuple[int, bool]: The canonical id of this node, and whether this
                              occurrence was a back reference.
        """
        existing = None if label is None else self.find_existing(label)

        if existing is None:
            node = self._create(label)
            edge = self._edge(parent_id, parent_is_reference, node.id, weight)
            self.entries.append(NewNode(node, edge))
            return node.id, False

        edge = self._edge(parent_id, parent_is_reference, existing.id, weight)
        self.entries.append(ExistingNodeReference(existing.id,
                                                  existing.label,
                                                  edge))
        return existing.id, True

    #######################
    #### LEAF RESOLVER ####
    #######################

    def resolve_leaf(self,
                     parent_id : int | None,
                     parent_is_reference : bool,
                     fragment : str) -> list[Entry]:
        """
        Parse a terminal fragment. This is either a plain leaf, "A:0.3", or a
        network leaf written as "(A:0.2)X#H1:0.3", which is the leaf A hanging
        from the network node X#H1. The leaf and its parent are resolved
        independently, so either may be new or a back reference.

        Raises:
            SubtreeWrapperError: If the fragment is neither shape.
            BranchLengthError: If a branch length is not a number.
        Args:
            parent_id (int | None): Canonical id of the enclosing node.
            parent_is_reference (bool): True if the enclosing occurrence was a
                                        back reference.
            fragment (str): A fragment without any ','.
        Returns:
            list[Entry]: The entries this fragment added, in order.
        """
        start = len(self.entries)

        if "(" not in fragment and ")" not in fragment:
            self.resolve(parent_id, parent_is_reference,
                         explicit_label(fragment), branch_length(fragment))
            return self.entries[start:]

        if not self.is_network_leaf(fragment):
            raise SubtreeWrapperError(f"Not a leaf or network leaf : \
{fragment}")

        close = fragment.index(")")
        leaf_text = fragment[1:close]

        mid_id, mid_is_ref = self.resolve(parent_id, parent_is_reference,
                                          explicit_label(fragment),
                                          branch_length(fragment))
        self.resolve(mid_id, mid_is_ref,
                     explicit_label(leaf_text), branch_length(leaf_text))

        return self.entries[start:]

    @staticmethod
    def is_network_leaf(fragment : str) -> bool:
        """
        Check for the "(leaf)parent:length" shape: one group holding a single
        label and nothing nested.
        """
        if not fragment.startswith("("):
            return False
        close = fragment.find(")")
        if close == -1:
            return False
        inner = fragment[1:close]
        rest = fragment[close + 1:]
        if "(" in inner or "," in inner or inner.strip() == "":
            return False
        return not ("(" in rest or ")" in rest or "," in rest)

    ##############################
    #### RECURSIVE DESCENT ######
    ##############################

    def parse_subtree(self,
                      parent_id : int | None,
                      parent_is_reference : bool,
                      fragment : str) -> list[Entry]:
        """
        Walk one subtree fragment, pre-order, left to right. Later siblings
        see every node that earlier siblings created. The walk keeps its own
        stack of pending fragments, so nesting depth is not bounded by the
        interpreter's recursion limit.

        Raises:
            EmptyFragmentError: If the fragment is empty.
            SubtreeWrapperError: If the fragment is not a well formed subtree.
            BranchLengthError: If a branch length is not a number.
        Args:
            parent_id (int | None): Canonical id of the parent, None for the
                                    root.
            parent_is_reference (bool): True if the parent occurrence was a
                                        back reference.
            fragment (str): The subtree text, without ';'.
        Returns:
            list[Entry]: The entries this subtree added, in creation order.
        """
        start = len(self.entries)

        # (parent id, parent is a back reference, fragment)
        pending = [(parent_id, parent_is_reference, fragment)]

        while len(pending) != 0:
            parent_id, parent_is_reference, fragment = pending.pop()
            fragment = fragment.strip()
            if fragment == "":
                raise EmptyFragmentError("Empty subtree")

            if not fragment.startswith("(") or self.is_network_leaf(fragment):
                self.resolve_leaf(parent_id, parent_is_reference, fragment)
                continue

            group, label, weight = subtree_body(fragment)
            node_id, is_ref = self.resolve(parent_id, parent_is_reference,
                                           label, weight)

            # Reversed, so the leftmost child is popped first
            pending.extend((node_id, is_ref, kid)
                           for kid in reversed(children(group)))

        return self.entries[start:]

    def build(self, statement : str) -> Network:
        """
        Parse one tree/network statement, "(...)label:length;", into a
        Network.

        Raises:
            SubtreeWrapperError: If the statement does not begin with '(' and
                                 end with ';', or holds more than one
                                 statement.
            EmptyFragmentError: If the statement or a child is empty.
            BranchLengthError: If a branch length is not a number.
        Args:
            statement (str): A comment free eNewick statement.
        Returns:
            Network: The assembled network.
        """
        if len(self.entries) != 0:
            raise SubtreeWrapperError("A NetworkBuilder can only build one \
statement")

        text = statement.strip()
        if not text.startswith("(") or not text.endswith(";"):
            raise SubtreeWrapperError(f"Invalid Extended Newick statement, \
must begin with '(' and end with ';' : {text}")

        body = text[:-1].strip()
        if ";" in body:
            raise SubtreeWrapperError(f"More than one statement, or a \
statement terminated inside an open group : {text}")

        # The root length never becomes an edge
        self.root_branch_length = branch_length(body)
        self.parse_subtree(None, False, body)

        return self.assemble()

    ########################
    #### GRAPH ASSEMBLER ###
    ########################

    def assemble(self) -> Network:
        """
        Build the Network from the recorded entries: the nodes of all NewNode
        entries and the edges of all entries.

        Returns:
            Network: the statement's network.
        """
        nodes : list[Node] = []
        edges : list[Edge] = []

        for entry in self.entries:
            if isinstance(entry, NewNode):
                nodes.append(entry.node)
            if entry.edge is not None:
                edges.append(entry.edge)

        net = Network(nodes, edges)
        net.put_item("root_branch_length", self.root_branch_length)
        return net

    def get_entries(self) -> list[Entry]:
        return list(self.entries)

def build_network(statement : str) -> Network:
    """
    Parse one comment free eNewick statement into a Network.

    Args:
        statement (str): "(...)label:length;"
    Returns:
        Network: the statement's network.
    """
    return NetworkBuilder().build(statement)
