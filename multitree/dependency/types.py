from dataclasses import dataclass
from typing import Any, Optional, Tuple

# A handle is the index of a node slot in the storage arena.
Handle = int
# A link is a possibly missing handle (no parent, no child, or the end position).
Link = Optional[Handle]


@dataclass
class KVPair:
    """A key-value pair with named access."""
    key: Any
    value: Any

    def to_tuple(self) -> Tuple[Any, Any]:
        """Convert to a tuple (key, value)."""
        return self.key, self.value
