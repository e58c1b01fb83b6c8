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

Merging of the member networks of a Forest Extended Newick block.

Each member statement is built on its own, with ids starting at 0. Members
refer to a shared network node by writing the same label, so merging:

1) shifts every member's ids past the ids of the members before it,
2) groups the nodes of all members by label,
3) keeps the earliest node of each group and points every edge at it,
4) renumbers the surviving nodes to 0..n-1, in order.

No degree checks happen here; a fused node may well end up with several
parents.
"""

from __future__ import annotations
from collections import defaultdict
from warnings import warn
import numpy as np

from .Network import Node, Edge, Network


class MergeError(Exception):
    """
    Exception raised when the networks handed to the merger are unusable.
    """
    def __init__(self, message : str = "Error merging forest networks."):
        self.message = message
        super().__init__(self.message)


class ForestMerger:
    """
    Fuses the independently built networks of one forest into a single
    network with one id space.
    """

    def __init__(self, networks : list[Network]) -> None:
        """
        Args:
            networks (list[Network]): The member networks, in statement order.
        Raises:
            MergeError: If there are no networks to merge.
        """
        if len(networks) == 0:
            raise MergeError("There are no networks to merge")
        self.networks : list[Network] = list(networks)

    def offsets(self) -> list[int]:
        """
        The id offset of each member: the total node count of all members
        before it.

        Returns:
            list[int]: one offset per member network.
        """
        sizes = np.array([len(net) for net in self.networks], dtype = int)
        return [int(offset) for offset in np.cumsum(sizes) - sizes]

    def reindex(self) -> list[Network]:
        """
        Shift every member onto its own id range. Synthesized labels are
        regenerated from the shifted ids, so unlabeled nodes of different
        members never share a label.

        Returns:
            list[Network]: reindexed copies, in statement order.
        """
        shifted : list[Network] = []

        for net, offset in zip(self.networks, self.offsets()):
            # Member ids need not be dense, so remap through a table
            id_map = {node.id : index + offset
                      for index, node in enumerate(net.get_nodes())}
            nodes = [node.duplicate(id_map[node.id])
                     for node in net.get_nodes()]
            edges = [edge.duplicate(id_map[edge.src], id_map[edge.dest])
                     for edge in net.get_edges()]
            shifted.append(Network(nodes, edges))

        return shifted

    @staticmethod
    def shared_labels(networks : list[Network]) -> dict[str, list[Node]]:
        """
        Group the written labels that occur in two or more members.

        Args:
            networks (list[Network]): reindexed members.
        Returns:
            dict[str, list[Node]]: label to its nodes, earliest first.
        """
        groups : dict[str, list[Node]] = defaultdict(list)
        for net in networks:
            for node in net.get_nodes():
                if not node.synthesized:
                    groups[node.label].append(node)

        return {label : sorted(nodes, key = lambda node: node.id)
                for label, nodes in groups.items() if len(nodes) > 1}

    def merge(self) -> Network:
        """
        Merge the member networks.

        Returns:
            Network: one network with dense ids 0..n-1.
        """
        members = self.reindex()

        redirect : dict[int, int] = {}
        for nodes in self.shared_labels(members).values():
            canonical = nodes[0]
            for duplicate in nodes[1:]:
                redirect[duplicate.id] = canonical.id

        survivors : list[Node] = [node for net in members
                                  for node in net.get_nodes()
                                  if node.id not in redirect]
        compact = {node.id : index for index, node in enumerate(survivors)}

        def final_id(node_id : int) -> int:
            return compact[redirect.get(node_id, node_id)]

        edges : list[Edge] = []
        built : set[tuple[int, int]] = set()
        for net in members:
            for edge in net.get_edges():
                key = (final_id(edge.src), final_id(edge.dest))
                # Same rule as within a statement: a fused duplicate may not
                # repeat an edge its canonical node already has
                if edge.src in redirect and key in built:
                    warn(f"Edge {net.get_node(edge.src).label} -> \
{net.get_node(edge.dest).label} is described in more than one forest member, \
keeping the first")
                    continue
                built.add(key)
                edges.append(edge.duplicate(*key))

        merged = Network([node.duplicate(compact[node.id])
                          for node in survivors], edges)
        merged.put_item("root_branch_lengths",
                        [net.get_item("root_branch_length")
                         for net in self.networks])
        merged.put_item("member_count", len(self.networks))
        return merged


def merge_networks(networks : list[Network]) -> Network:
    """
    Merge the member networks of one forest.

    Args:
        networks (list[Network]): member networks, in statement order.
    Returns:
        Network: the merged network.
    """
    return ForestMerger(networks).merge()
