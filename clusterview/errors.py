"""Exceptions raised by the layout engine."""


class LayoutError(Exception):
    """Base class for layout engine failures."""


class UnresolvedEndpoint(LayoutError, KeyError):
    """A raw relation references an entity id that is not in the graph."""

    def __init__(self, relation_index: int, endpoint: str, node_id):
        self.relation_index = relation_index
        self.endpoint = endpoint
        self.node_id = node_id
        super().__init__(
            f"relation #{relation_index}: {endpoint} {node_id!r} is not a known entity"
        )

    def __str__(self) -> str:
        return self.args[0]


class DuplicateEntity(LayoutError, ValueError):
    """Two raw entities share the same id."""


class DanglingLinkReference(LayoutError, KeyError):
    """A view link points at a node that is not part of the view graph."""

    def __init__(self, link_id: str, node_id: str):
        self.link_id = link_id
        self.node_id = node_id
        super().__init__(f"link {link_id!r} references missing node {node_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class GroupIdCollision(LayoutError, ValueError):
    """A collapsed group's key equals the id of a visible entity."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"collapsed group {key!r} clashes with a visible entity id")
