"""Project catalog types."""

from glfind.projects.models import Project, ProjectFilter, ProjectPage

__all__ = ["Project", "ProjectFilter", "ProjectPage"]
