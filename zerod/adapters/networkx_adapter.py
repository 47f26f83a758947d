"""
NetworkX adapter for model topology.

Blocks become graph nodes and model Nodes become directed edges from the
upstream to the downstream block, carrying the node name and its DOFs.
"""

from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from ..model import Model


def to_networkx(model: "Model") -> nx.DiGraph:
    """
    Convert a model to a directed block graph.

    Parameters
    ----------
    model : Model
        Model to convert; DOF attributes are None before finalization

    Returns
    -------
    nx.DiGraph
        Graph with one node per block (attributes ``block_type`` and
        ``block_class``) and one edge per connection (attributes ``name``,
        ``pres_dof`` and ``flow_dof``)
    """
    graph = nx.DiGraph(name=model.name)
    for block in model.blocks:
        graph.add_node(
            block.name,
            block_type=block.block_type,
            block_class=block.block_class.value,
        )
    for node in model.nodes:
        for upstream in node.inlet_eles:
            for downstream in node.outlet_eles:
                graph.add_edge(
                    upstream.name,
                    downstream.name,
                    name=node.name,
                    pres_dof=node.pres_dof,
                    flow_dof=node.flow_dof,
                )
    return graph


__all__ = ["to_networkx"]
