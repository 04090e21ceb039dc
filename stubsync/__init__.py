"""stubsync - keep frontmatter stubs and inline ^stub-* anchors in sync."""

__version__ = "0.3.0"
