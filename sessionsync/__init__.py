"""Mirror live coding-agent sessions into a Markdown note vault."""

__version__ = "0.1.0"
