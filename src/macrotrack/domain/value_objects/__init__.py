"""Domain value objects."""

from macrotrack.domain.value_objects.token import Token

__all__ = ["Token"]
