"""Language adapters — node."""

from craft.adapters.languages.node import NodeAdapter

__all__ = ["NodeAdapter"]
