"""Pure request handlers: text and settings in, LSP types out."""
from .completion import get_completions
from .diagnostics import SOURCE, get_diagnostics
from .hover import get_hover

__all__ = ['SOURCE', 'get_completions', 'get_diagnostics', 'get_hover']
