"""Output backends for survey flow graphs (DOT)."""

from .dot_generator import DotMode, generate_dot, save_dot_file

__all__ = ["DotMode", "generate_dot", "save_dot_file"]
