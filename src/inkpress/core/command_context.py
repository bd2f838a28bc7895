"""
Command context for shared initialization across CLI commands.

Provides a unified way to locate the site, load and validate its
configuration, and resolve the configured build directories.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .config import ConfigManager


logger = logging.getLogger(__name__)


class BuildContext:
    """Encapsulates shared initialization logic for site commands.

    Example:
        ```python
        with BuildContext(site_dir) as ctx:
            content_dir = ctx.resolve_path('content_dir')
            size = ctx.get_page_size('post')
        ```
    """

    def __init__(self, site_dir: Optional[str] = None, config_path: Optional[str] = None):
        """Initialize the context with a validated configuration.

        Args:
            site_dir: Site directory (None = $INKPRESS_SITE_DIR or cwd)
            config_path: Explicit site.yaml path, overrides *site_dir*

        Raises:
            ValueError: If configuration is invalid
        """
        self.config_manager = ConfigManager(config_path, site_dir=site_dir)

        if not self.config_manager.validate_config():
            raise ValueError(
                f"Invalid configuration in {self.config_manager.config_path}. "
                "Run 'inkpress status' for details."
            )

        self.config: Dict[str, Any] = self.config_manager.load_config()
        self.site_dir = Path(self.config_manager.base_dir)

        logger.debug(f"BuildContext initialized with config from {self.config_manager.config_path}")

    @property
    def site(self) -> Dict[str, Any]:
        return self.config['site']

    @property
    def options(self) -> Dict[str, Any]:
        return self.config['config']

    @property
    def build_options(self) -> Dict[str, Any]:
        return self.config['build']

    def get_page_size(self, kind: str) -> int:
        """Return the configured page size for 'recent', 'archive', 'post' or 'feed'."""
        return self.config_manager.get_page_size(kind)

    def resolve_path(self, key: str) -> Path:
        """Resolve a `build` directory option (content_dir, output_dir...) against the site dir."""
        return self.config_manager.resolve_path(key)

    def safe_output_dir(self) -> Path:
        """Return the output directory, refusing one that overlaps the site sources."""
        return self.config_manager.safe_output_dir()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit; nothing is held open between commands."""
        return None
