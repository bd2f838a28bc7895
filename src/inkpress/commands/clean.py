"""
Clean command implementation.
Removes the generated output directory.
"""

import logging
import shutil
from typing import Optional

from ..core.config import ConfigManager

logger = logging.getLogger(__name__)


def run(site_dir: Optional[str] = None) -> bool:
    """Remove the configured output directory; returns False when there was nothing to remove.

    Raises:
        ValueError: If the output directory overlaps the site's sources
    """
    config_manager = ConfigManager(site_dir=site_dir)
    output_dir = config_manager.safe_output_dir()

    if not output_dir.exists():
        logger.info("Nothing to clean: %s does not exist", output_dir)
        return False

    shutil.rmtree(output_dir)
    logger.info("Removed %s", output_dir)
    return True
