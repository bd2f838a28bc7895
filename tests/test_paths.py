"""Tests for site directory resolution helpers."""

from __future__ import annotations

import os
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

# Ensure the repository's src/ directory is importable without installation.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from inkpress.core.paths import (  # noqa: E402
    get_site_dir,
    get_system_path,
    resolve_site_file,
    resolve_site_path,
)


class SiteDirEnvironmentOverrideTests(unittest.TestCase):
    """Verify that INKPRESS_SITE_DIR overrides the site dir."""

    def test_get_site_dir_honors_environment_override(self) -> None:
        """get_site_dir should return the directory specified by the env var."""
        with TemporaryDirectory() as tmp:
            override = Path(tmp) / "my-blog"
            with mock.patch.dict(os.environ, {"INKPRESS_SITE_DIR": str(override)}, clear=False):
                site_dir = get_site_dir()
        self.assertEqual(site_dir, override.resolve())

    def test_blank_override_falls_back_to_cwd(self) -> None:
        with mock.patch.dict(os.environ, {"INKPRESS_SITE_DIR": "   "}, clear=False):
            self.assertEqual(get_site_dir(), Path.cwd().resolve())

    def test_resolve_site_path_creates_parent_when_asked(self) -> None:
        with TemporaryDirectory() as tmp:
            target = resolve_site_path("dist", "blog", "index.html", site_dir=tmp, ensure_parent=True)
            self.assertTrue(target.parent.is_dir(), "parent directory was not created")
            self.assertEqual(target, Path(tmp).resolve() / "dist" / "blog" / "index.html")

    def test_resolve_site_file_keeps_absolute_paths(self) -> None:
        with TemporaryDirectory() as tmp:
            absolute = Path(tmp) / "elsewhere" / "out"
            self.assertEqual(resolve_site_file(str(absolute), site_dir="/unused"), absolute)

    def test_system_assets_are_bundled(self) -> None:
        self.assertTrue(get_system_path("config", "site.yaml").exists())
        self.assertTrue(get_system_path("templates", "layout.html").exists())


if __name__ == "__main__":
    unittest.main()
