"""glfind - fast fuzzy finder over a locally cached GitLab project catalog."""

__version__ = "0.1.0"
