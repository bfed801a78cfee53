"""
Pydantic models for the Elasticsearch cluster state snapshot.

The snapshot is produced by the cluster observer from the ``_cluster/state``
API and replaced wholesale on every refresh. Only the subset needed to reason
about node topology and shard placement is modelled.
"""
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from esoperator.exceptions import MalformedClusterStateError


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Node(_Frozen):
    """A node of the Elasticsearch cluster."""

    name: str
    ephemeral_id: str = ""
    transport_address: str = ""
    attributes: Dict[str, str] = Field(default_factory=dict)


class AllocationId(_Frozen):
    id: str


class Shard(_Frozen):
    """
    One copy of a shard as listed in the routing table.

    ``node`` is None while the copy is unassigned. While the copy is being
    moved, ``relocating_node`` holds the destination node id.
    """

    state: str
    primary: bool
    node: Optional[str] = None
    relocating_node: Optional[str] = None
    shard: int
    index: str
    allocation_id: Optional[AllocationId] = None

    def is_on(self, node_id: str) -> bool:
        return node_id in (self.node, self.relocating_node)


class IndexRoutingTable(_Frozen):
    shards: Dict[str, List[Shard]] = Field(default_factory=dict)


class RoutingTable(_Frozen):
    indices: Dict[str, IndexRoutingTable] = Field(default_factory=dict)


class ClusterState(_Frozen):
    """Point-in-time view of the cluster nodes and shard routing table."""

    cluster_name: str = ""
    cluster_uuid: Optional[str] = None
    version: int = 0
    state_uuid: str = ""
    master_node: Optional[str] = None
    nodes: Dict[str, Node] = Field(default_factory=dict)
    routing_table: RoutingTable = Field(default_factory=RoutingTable)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "ClusterState":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise MalformedClusterStateError(
                "invalid cluster state document",
                details={"errors": e.errors(include_url=False)},
            ) from e

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusterState":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedClusterStateError(
                "invalid cluster state document",
                details={"errors": e.errors(include_url=False)},
            ) from e

    @classmethod
    def parse(cls, obj: Any) -> "ClusterState":
        """
        Normalise any accepted snapshot form into a ClusterState.

        Raises:
            MalformedClusterStateError: if the snapshot is missing or invalid
        """
        if isinstance(obj, ClusterState):
            return obj
        if obj is None:
            raise MalformedClusterStateError("no cluster state observed")
        if isinstance(obj, (str, bytes)):
            return cls.from_json(obj)
        if isinstance(obj, dict):
            return cls.from_dict(obj)
        raise MalformedClusterStateError(
            f"unsupported cluster state type {type(obj).__name__}"
        )

    def node_id_by_name(self, name: str) -> Optional[str]:
        for node_id, node in self.nodes.items():
            if node.name == name:
                return node_id
        return None

    def iter_shards(self) -> Iterator[Shard]:
        """Yield every shard copy across every index and ordinal."""
        for index in self.routing_table.indices.values():
            for copies in index.shards.values():
                yield from copies

    def shards_on_node(self, node_id: str) -> List[Shard]:
        """Shard copies hosted by, or relocating to, the given node."""
        return [shard for shard in self.iter_shards() if shard.is_on(node_id)]

    def holds_data(self, node_id: str) -> bool:
        return any(shard.is_on(node_id) for shard in self.iter_shards())


class ObservedState(BaseModel):
    """Output of the cluster observer; ``cluster_state`` is None until first poll."""

    model_config = ConfigDict(frozen=True)

    cluster_state: Optional[ClusterState] = None
