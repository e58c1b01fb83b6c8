"""
Last Edit : 10/18/26
First Included in Version : 1.0.0
Docs   - [x]
Tests  - [x]
Design - [x]
"""

from __future__ import annotations
from collections import defaultdict
from typing import Any, Iterable
import networkx as nx

from .Newick import htu_label


#############################
#### EXCEPTION SPECIFICS ####
#############################

class NetworkError(Exception):
    """
    This exception is raised when a network is malformed,
    or if a network operation fails.
    """
    def __init__(self, message = "Error with a Graph Instance"):
        self.message = message
        super().__init__(self.message)

##########################
#### NODES AND EDGES #####
##########################

class Node:
    """
    A node of a parsed network. Nodes are identified by an integer id that is
    unique within the network that owns them, and carry a text label.
    """

    def __init__(self,
                 node_id : int,
                 name : str,
                 synthesized : bool = False,
                 attr : dict = None) -> None:
        """
        Initialize a node with an id, a label, and an attribute mapping.

        Args:
            node_id (int): A non-negative id.
            name (str): The node label.
            synthesized (bool, optional): True if the label was made up by the
                                          parser ("<id>HTU") rather than
                                          written in the text. Defaults to
                                          False.
            attr (dict, optional): Any other values, such as the reticulation
                                   event type and index. Defaults to an empty
                                   dictionary.
        """
        if node_id < 0:
            raise NetworkError(f"Node ids must be non-negative, got \
{node_id}")

        self.id : int = node_id
        self.label : str = name
        self.synthesized : bool = synthesized
        self.attributes : dict[str, Any] = {} if attr is None else dict(attr)

    def get_name(self) -> str:
        """
        Returns the name of the node

        Returns:
            str: Node label.
        """
        return self.label

    def is_reticulation(self) -> bool:
        """
        Whether the label carries an Extended Newick reticulation tag
        ("#H1", "#R2", "#LGT3").

        Returns:
            bool: True if the node was tagged as a reticulation.
        """
        return "eventType" in self.attributes

    def attribute_value(self, key : Any) -> object:
        """
        If key is a key in the attributes mapping, then its value will be
        returned. Otherwise, returns None.

        Args:
           key (Any): A lookup key.
        Returns:
            object: The value of key, if key is present.
        """
        return self.attributes.get(key)

    def duplicate(self, node_id : int = None) -> Node:
        """
        Copy this node, optionally under a new id. A synthesized label follows
        the id it was made from.

        Args:
            node_id (int, optional): The id of the copy. Defaults to this
                                     node's id.
        Returns:
            Node: The copy.
        """
        if node_id is None:
            node_id = self.id
        label = htu_label(node_id) if self.synthesized else self.label
        return Node(node_id, label, self.synthesized, self.attributes)

    def __repr__(self) -> str:
        return f"Node({self.id}, {self.label!r})"

class Edge:
    """
    A directed, weighted edge from a parent node id to a child node id.
    """

    def __init__(self, source : int, destination : int,
                 weight : float = 1.0) -> None:
        """
        Args:
            source (int): Parent node id.
            destination (int): Child node id.
            weight (float, optional): Branch length. Defaults to 1.
        """
        self.src : int = source
        self.dest : int = destination
        self.weight : float = weight

    def get_length(self) -> float:
        """
        Returns:
            float: branch length.
        """
        return self.weight

    def as_tuple(self) -> tuple[int, int, float]:
        """
        Returns:
            tuple[int, int, float]: (parent id, child id, weight)
        """
        return (self.src, self.dest, self.weight)

    def duplicate(self, new_src : int = None, new_dest : int = None) -> Edge:
        """
        Copy this edge, optionally pointing at different endpoints.

        Returns:
            Edge: the copy.
        """
        src = self.src if new_src is None else new_src
        dest = self.dest if new_dest is None else new_dest
        return Edge(src, dest, self.weight)

    def __repr__(self) -> str:
        return f"Edge({self.src}, {self.dest}, {self.weight})"

#########################
#### NETWORK CLASSES ####
#########################

class Network():
    """
    A directed graph of Nodes and Edges, as produced by the parser.

    Allowances:
    1) Nodes may have in-degree > 1 (network/reticulation nodes).
    2) Parallel edges between the same two nodes are kept.
    3) Nothing here checks for cycles or bounds degrees.

    Every edge endpoint must name a node that is already in the network.
    """

    def __init__(self,
                 nodes : Iterable[Node] = None,
                 edges : Iterable[Edge] = None) -> None:
        """
        Initialize a Network, optionally with nodes and edges.

        Args:
            nodes (Iterable[Node], optional): Nodes. Defaults to none.
            edges (Iterable[Edge], optional): Edges between those nodes.
                                              Defaults to none.
        """
        self.nodes : dict[int, Node] = {}
        self.edges : list[Edge] = []
        self.node_names : dict[str, Node] = {}
        self.in_map : dict[int, list[Edge]] = defaultdict(list)
        self.out_map : dict[int, list[Edge]] = defaultdict(list)

        # Blob storage for anything that you want to associate with
        # this network. Just give it a string key!
        self.items : dict[str, object] = {}

        if nodes is not None:
            self.add_nodes(*nodes)
        if edges is not None:
            self.add_edges(*edges)

    def add_nodes(self, *nodes : Node) -> None:
        """
        Add nodes to the network. The first node added under a given label is
        the one has_node_named returns.

        Raises:
            NetworkError: If a node id is already in use.
        Args:
            *nodes (Node): any number of nodes.
        """
        for node in nodes:
            if node.id in self.nodes:
                raise NetworkError(f"Node id {node.id} is already in use by \
{self.nodes[node.id]}")
            self.nodes[node.id] = node
            self.node_names.setdefault(node.label, node)

    def add_edges(self, *edges : Edge) -> None:
        """
        Add edges to the network.

        Raises:
            NetworkError: If an edge names a node id that is not in the network.
        Args:
            *edges (Edge): any number of edges.
        """
        for edge in edges:
            if edge.src not in self.nodes or edge.dest not in self.nodes:
                raise NetworkError(f"{edge} refers to a node that is not in \
the network")
            self.edges.append(edge)
            self.out_map[edge.src].append(edge)
            self.in_map[edge.dest].append(edge)

    def get_node(self, node_id : int) -> Node:
        """
        Raises:
            NetworkError: If there is no node with that id.
        Args:
            node_id (int): a node id.
        Returns:
            Node: The node with that id.
        """
        try:
            return self.nodes[node_id]
        except KeyError:
            raise NetworkError(f"No node with id {node_id}") from None

    def get_nodes(self) -> list[Node]:
        """
        Returns:
            list[Node]: All nodes, in increasing id order.
        """
        return [self.nodes[node_id] for node_id in sorted(self.nodes)]

    def get_edges(self) -> list[Edge]:
        """
        Returns:
            list[Edge]: All edges, in the order they were added.
        """
        return list(self.edges)

    def get_item(self, key : str) -> object:
        return self.items.get(key)

    def put_item(self, key : str, item : object) -> None:
        self.items[key] = item

    def has_node_named(self, name : str) -> Node | None:
        """
        Check whether the network has a node with a certain label.

        Args:
            name (str): A label.
        Returns:
            Node | None: The node with that label, or None.
        """
        return self.node_names.get(name)

    def in_degree(self, node : Node | int) -> int:
        return len(self.in_map[_id_of(node)])

    def out_degree(self, node : Node | int) -> int:
        return len(self.out_map[_id_of(node)])

    def in_edges(self, node : Node | int) -> list[Edge]:
        return list(self.in_map[_id_of(node)])

    def out_edges(self, node : Node | int) -> list[Edge]:
        return list(self.out_map[_id_of(node)])

    def get_parents(self, node : Node | int) -> list[Node]:
        """
        Args:
            node (Node | int): A node, or its id.
        Returns:
            list[Node]: One entry per in-edge, so a parent joined by parallel
                        edges is listed more than once.
        """
        return [self.nodes[edge.src] for edge in self.in_map[_id_of(node)]]

    def get_children(self, node : Node | int) -> list[Node]:
        """
        Args:
            node (Node | int): A node, or its id.
        Returns:
            list[Node]: One entry per out-edge, in the order the edges were
                        added.
        """
        return [self.nodes[edge.dest] for edge in self.out_map[_id_of(node)]]

    def roots(self) -> list[Node]:
        """
        Returns:
            list[Node]: Every node with in-degree 0.
        """
        return [node for node in self.get_nodes() if self.in_degree(node) == 0]

    def root(self) -> Node:
        """
        Raises:
            NetworkError: If the network does not have exactly one root.
        Returns:
            Node: the root of a singly rooted network.
        """
        roots = self.roots()
        if len(roots) != 1:
            raise NetworkError(f"Expected one root, found {len(roots)}")
        return roots[0]

    def get_leaves(self) -> list[Node]:
        """
        Returns:
            list[Node]: Every node with out-degree 0.
        """
        return [node for node in self.get_nodes()
                if self.out_degree(node) == 0]

    def get_reticulations(self) -> list[Node]:
        """
        Returns:
            list[Node]: Every node with in-degree greater than 1.
        """
        return [node for node in self.get_nodes()
                if self.in_degree(node) > 1]

    def edge_triples(self) -> list[tuple[str, str, float]]:
        """
        Walk the network depth first from each root, and report every edge as
        a (parent label, child label, weight) triple. Each edge is reported
        exactly once, even when its child can be reached more than once.

        Returns:
            list[tuple[str, str, float]]: the triples, in traversal order.
        """
        triples : list[tuple[str, str, float]] = []
        expanded : set[int] = set()

        for root in self.roots():
            stack = [root.id]
            while len(stack) != 0:
                cur = stack.pop()
                if cur in expanded:
                    continue
                expanded.add(cur)
                for edge in self.out_map[cur]:
                    triples.append((self.nodes[edge.src].label,
                                    self.nodes[edge.dest].label,
                                    edge.weight))
                stack.extend(reversed([edge.dest
                                       for edge in self.out_map[cur]]))

        return triples

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Export to networkx. Nodes are keyed by id and carry a "label"
        attribute, edges carry a "weight" attribute.

        Returns:
            nx.MultiDiGraph: the exported graph.
        """
        nx_network = nx.MultiDiGraph()
        nx_network.add_nodes_from([(node.id, {"label" : node.label})
                                   for node in self.get_nodes()])
        nx_network.add_edges_from([(edge.src, edge.dest,
                                    {"weight" : edge.weight})
                                   for edge in self.edges])
        return nx_network

    def __len__(self) -> int:
        return len(self.nodes)

def _id_of(node : Node | int) -> int:
    if isinstance(node, Node):
        return node.id
    return node
