"""Result rendering"""

from querywait.infrastructure.output.renderer import ResultRenderer

__all__ = ["ResultRenderer"]
