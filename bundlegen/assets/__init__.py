"""Non-script asset builders: stylesheets, fonts and favicons."""

from .favicon import FAVICON_DATA_FILENAME, FaviconGenerator, MarkupBlock
from .fonts import FontCopier
from .styles import StyleCompiler

__all__ = [
    "FAVICON_DATA_FILENAME",
    "FaviconGenerator",
    "FontCopier",
    "MarkupBlock",
    "StyleCompiler",
]
