"""Events emitted when a resolver node changes state."""

from pydantic import AwareDatetime, BaseModel, ConfigDict

from geomesh_core.models.enums import NodeStatus
from geomesh_core.models.identifiers import NodeId


class NodeStatusChangedEvent(BaseModel):
    """Published when reconciliation flips a node's stored active flag."""

    model_config = ConfigDict(frozen=True)

    node_id: NodeId
    old_status: NodeStatus
    new_status: NodeStatus
    timestamp: AwareDatetime
