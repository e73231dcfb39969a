"""UI."""

from plugin_repo.ui.reporter import Reporter

__all__ = ["Reporter"]
