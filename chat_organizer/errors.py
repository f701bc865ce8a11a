"""
Exception hierarchy for the chat organizer
"""


class OrganizerError(Exception):
    """Base class for every error raised by the organizer."""


class ConfigError(OrganizerError, ValueError):
    """Invalid configuration value."""


class CapabilityError(OrganizerError):
    """An external capability (embedding or label generation) failed."""


class EmbeddingError(CapabilityError):
    """Embedding call failed, timed out, or returned a malformed vector."""


class LabelError(CapabilityError):
    """Label generation failed or returned an unusable response."""


class TreeError(OrganizerError):
    """The topic tree was asked to do something that breaks its invariants."""


class NodeNotFoundError(TreeError, KeyError):
    """A mutation named a node identifier that is not in the tree."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node not found: {self.node_id}"


class DuplicatePlacementError(TreeError):
    """A passage index is already attached to a different node."""

    def __init__(self, prompt_index: int, existing_node_id: str, node_id: str):
        super().__init__(
            f"Prompt {prompt_index} is already placed in {existing_node_id}, "
            f"cannot also place it in {node_id}"
        )
        self.prompt_index = prompt_index
        self.existing_node_id = existing_node_id
        self.node_id = node_id
