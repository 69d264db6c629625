"""Line-editing primitives: undo history, validation, key decoding and terminal rendering."""

__version__ = "0.1.0"

__all__ = ["dummy", "escapes", "layout", "posix", "render", "undo", "validate"]