"""
Network topology for the FabricSim visualization.

This module names the abstract nodes that take part in a transaction flow
(organizations, their peers, the ordering service, and optionally chaincode and
ledger nodes) and the static connections between them. It carries no state
about flows; the flow controller asks it for node identifiers when it builds
the directed edges of each phase.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any


class NodeKind(Enum):
    """Kinds of nodes drawn by the external graph view"""
    ORGANIZATION = "organization"
    PEER = "peer"
    ORDERER = "orderer"
    CHAINCODE = "chaincode"
    LEDGER = "ledger"


@dataclass(frozen=True)
class NetworkNode:
    """A node in the network diagram"""
    node_id: str
    kind: NodeKind
    label: str
    organization: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass(frozen=True)
class DirectedEdge:
    """A directed message exchange between two nodes"""
    id: str
    source: str
    target: str
    kind: str
    animated: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class NetworkTopology:
    """
    Naming scheme and static layout of the simulated network.

    Peers of an organization are named "<org>-peer<i>"; chaincode and ledger
    nodes are "chaincode-<org>" and "ledger-<org>". Names are derived rather
    than looked up, so any participant identifier can submit a transaction.
    """

    def __init__(self, organizations: list[str] | None = None, peers_per_org: int = 2,
                 orderer_id: str = "orderer1", show_chaincode: bool = True,
                 show_ledger: bool = True):
        self.organizations = list(organizations) if organizations else ["org1", "org2"]
        self.peers_per_org = peers_per_org
        self.orderer_id = orderer_id
        self.show_chaincode = show_chaincode
        self.show_ledger = show_ledger

    @classmethod
    def from_settings(cls, settings) -> "NetworkTopology":
        return cls(
            organizations=settings.DEFAULT_ORGANIZATIONS,
            peers_per_org=settings.PEERS_PER_ORG,
            orderer_id=settings.ORDERER_ID,
            show_chaincode=settings.SHOW_CHAINCODE_FLOW,
            show_ledger=settings.SHOW_LEDGER,
        )

    def peers_of(self, organization: str) -> list[str]:
        return [f"{organization}-peer{i}" for i in range(self.peers_per_org)]

    @staticmethod
    def chaincode_node(organization: str) -> str:
        return f"chaincode-{organization}"

    @staticmethod
    def ledger_node(organization: str) -> str:
        return f"ledger-{organization}"

    def nodes(self) -> list[NetworkNode]:
        """All nodes of the diagram, organizations first."""
        result = []
        for index, org in enumerate(self.organizations, start=1):
            result.append(NetworkNode(org, NodeKind.ORGANIZATION, f"Organization {index}"))
        for index, org in enumerate(self.organizations, start=1):
            for peer_index, peer in enumerate(self.peers_of(org)):
                result.append(NetworkNode(peer, NodeKind.PEER, f"Peer {peer_index}", org))
        result.append(NetworkNode(self.orderer_id, NodeKind.ORDERER, "Orderer"))
        if self.show_chaincode:
            for org in self.organizations:
                result.append(NetworkNode(self.chaincode_node(org), NodeKind.CHAINCODE, "Chaincode", org))
        if self.show_ledger:
            for org in self.organizations:
                result.append(NetworkNode(self.ledger_node(org), NodeKind.LEDGER, "Ledger", org))
        return result

    def connections(self) -> list[DirectedEdge]:
        """Static edges: organization to peers, peers to chaincode and ledger."""
        edges = []
        for org in self.organizations:
            for peer in self.peers_of(org):
                edges.append(DirectedEdge(f"{peer}-connection", org, peer, "connection", animated=False))
        if self.show_chaincode:
            for org in self.organizations:
                for peer in self.peers_of(org):
                    edges.append(DirectedEdge(f"{peer}-chaincode", peer, self.chaincode_node(org),
                                              "connection", animated=False))
        if self.show_ledger:
            for org in self.organizations:
                for peer in self.peers_of(org):
                    edges.append(DirectedEdge(f"{peer}-ledger", peer, self.ledger_node(org),
                                              "connection", animated=False))
        return edges
