"""Metadata for padwatch."""

__all__ = [
    "__title__",
    "__version__",
    "__description__",
    "__credits__",
    "__requires_python__",
]

__title__ = "padwatch"
__version__ = "0.1.0"
__description__ = (
    "Monitor a cloud of markdown pads for changes and report them once they settle."
)
__credits__ = [
    {"name": "padwatch contributors", "email": "padwatch@users.noreply.github.com"}
]
__requires_python__ = ">=3.9"
