"""Configuration management for the YAML site config."""

import copy
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .paths import get_site_dir, get_system_path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "site.yaml"
_TEMPLATE_CONFIG = get_system_path("config", CONFIG_FILENAME)

PAGE_SIZE_KEYS = {
    'recent': 'recent_blog_size',
    'archive': 'archive_page_size',
    'post': 'post_page_size',
    'feed': 'feed_page_size',
}

COMMENT_TYPES = ('waline', 'giscus')
LINK_TARGETS = ('_self', '_blank')

DEFAULT_CONFIG: Dict[str, Any] = {
    'site': {
        'title': 'My Blog',
        'favicon': '/favicon.svg',
        'description': '',
        'author': 'Anonymous',
        'avatar': '/avatar.png',
        'url': 'https://example.com',
        'motto': '',
        'recent_blog_size': 5,
        'archive_page_size': 25,
        'post_page_size': 10,
        'feed_page_size': 20,
        'beian': '',
    },
    'config': {
        'busuanzi': False,
        'lang': 'en',
        'code_folding_start_lines': 16,
        'ga': False,
    },
    'categories': [],
    'info_links': [],
    'donate': {
        'enable': False,
        'tip': '',
        'wechat_qr_code': '',
        'alipay_qr_code': '',
        'paypal_url': '',
    },
    'friendship_links': [],
    'comment': {
        'enable': False,
        'type': 'giscus',
        'waline_config': {},
        'giscus_config': {},
    },
    'build': {
        'content_dir': 'content',
        'output_dir': 'dist',
        'public_dir': 'public',
        'templates_dir': 'templates',
        'drafts': False,
    },
}

_DEFAULT_CONFIG_TEMPLATE = """# Auto-generated default configuration for inkpress
site:
  title: "My Blog"
  author: "Anonymous"
  url: "https://example.com"

categories:
  - name: "Blog"
    icon_class: "ri-draft-line"
    href: "/blog/1/"
"""


def _write_template(path: Path, content: str) -> None:
    """Write templated YAML content to disk with a trailing newline."""
    path.write_text(content.strip() + "\n", encoding="utf-8")


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Merge *overrides* onto a copy of *defaults*; nested dicts merge, everything else replaces."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class ConfigManager:
    """Manages loading and validation of the site configuration file."""

    def __init__(self, config_path: Optional[str] = None, site_dir: Optional[str] = None):
        """Initialize the manager and ensure a baseline site.yaml exists."""
        if config_path:
            path = Path(config_path).expanduser()
        else:
            base = Path(site_dir).expanduser() if site_dir else get_site_dir()
            path = base / CONFIG_FILENAME
        if not path.is_absolute():
            path = path.resolve()
        self.config_path = str(path)
        self.base_dir = str(path.parent)
        self._config = None
        self._ensure_default_config()

    def load_config(self) -> Dict[str, Any]:
        """Load the site configuration merged over the built-in defaults."""
        if self._config is None:
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    raw = yaml.safe_load(f) or {}
                logger.info("Loaded configuration from %s", self.config_path)
            except Exception as e:
                logger.error("Failed to load config from %s: %s", self.config_path, e)
                raise
            if not isinstance(raw, dict):
                raise ValueError(f"Top level of {self.config_path} must be a mapping")
            self._config = _merge(DEFAULT_CONFIG, raw)

        return self._config

    def _ensure_default_config(self) -> None:
        """Create the default configuration file if it is missing."""
        config_file = Path(self.config_path)
        if config_file.exists():
            return
        config_file.parent.mkdir(parents=True, exist_ok=True)

        if _TEMPLATE_CONFIG.exists():
            try:
                shutil.copyfile(_TEMPLATE_CONFIG, config_file)
                logger.info("Created default %s at %s", CONFIG_FILENAME, config_file)
                return
            except OSError as exc:
                logger.warning("Failed to copy template config: %s", exc)

        _write_template(config_file, _DEFAULT_CONFIG_TEMPLATE)
        logger.info("Created fallback default %s at %s", CONFIG_FILENAME, config_file)

    def get_site(self) -> Dict[str, Any]:
        """Return the `site` section (title, author, url, page sizes...)."""
        return self.load_config()['site']

    def get_options(self) -> Dict[str, Any]:
        """Return the `config` section (language, analytics, code folding)."""
        return self.load_config()['config']

    def get_navigation(self) -> List[Dict[str, Any]]:
        """Return the navigation entries shown in the header."""
        return self.load_config().get('categories') or []

    def get_info_links(self) -> List[Dict[str, Any]]:
        return self.load_config().get('info_links') or []

    def get_comment(self) -> Dict[str, Any]:
        return self.load_config()['comment']

    def get_build_options(self) -> Dict[str, Any]:
        return self.load_config()['build']

    def get_page_size(self, kind: str) -> int:
        """Return the configured page size for 'recent', 'archive', 'post' or 'feed'."""
        if kind not in PAGE_SIZE_KEYS:
            raise ValueError(f"Unknown page size kind '{kind}'")
        return self.get_site()[PAGE_SIZE_KEYS[kind]]

    def resolve_path(self, key: str) -> Path:
        """Resolve a `build` directory option against the site directory."""
        candidate = Path(self.get_build_options()[key]).expanduser()
        if candidate.is_absolute():
            return candidate
        return Path(self.base_dir) / candidate

    def safe_output_dir(self) -> Path:
        """Return the output directory after checking it is safe to overwrite or delete.

        Raises:
            ValueError: If the output directory is, contains, or lies inside the
                site directory's sources (site dir, content, public, templates)
        """
        output_dir = self.resolve_path('output_dir')
        resolved = output_dir.resolve()

        site_dir = Path(self.base_dir).resolve()
        if resolved == site_dir or resolved in site_dir.parents:
            raise ValueError(f"Refusing to use {output_dir} as output: it contains the site directory {site_dir}")

        for key in ('content_dir', 'public_dir', 'templates_dir'):
            protected = self.resolve_path(key).resolve()
            if resolved == protected or resolved in protected.parents or protected in resolved.parents:
                raise ValueError(f"Refusing to use {output_dir} as output: it overlaps build.{key} ({protected})")
        return output_dir

    def validate_config(self) -> bool:
        """Validate the configuration file."""
        try:
            config = self.load_config()

            site = config['site']
            for key in ('title', 'author', 'url'):
                value = site.get(key)
                if not isinstance(value, str) or not value.strip():
                    logger.error(f"site.{key} must be a non-empty string")
                    return False

            for key in PAGE_SIZE_KEYS.values():
                if not _is_positive_int(site.get(key)):
                    logger.error(f"site.{key} must be a positive integer")
                    return False

            options = config['config']
            if not isinstance(options.get('lang'), str):
                logger.error("config.lang must be a string")
                return False
            ga = options.get('ga')
            if ga is not False and ga is not None and not isinstance(ga, str):
                logger.error("config.ga must be false or a tracking id string")
                return False
            folding = options.get('code_folding_start_lines')
            if not isinstance(folding, int) or isinstance(folding, bool) or folding < 0:
                logger.error("config.code_folding_start_lines must be a non-negative integer")
                return False

            navigation = config.get('categories') or []
            if not isinstance(navigation, list):
                logger.error("'categories' must be a list of navigation entries")
                return False
            for entry in navigation:
                if not self._validate_nav_entry(entry):
                    return False

            for link in config.get('info_links') or []:
                if not isinstance(link, dict) or not link.get('outlink'):
                    logger.error(f"info_links entry {link!r} needs an 'outlink'")
                    return False

            comment = config['comment']
            if comment.get('enable') and comment.get('type') not in COMMENT_TYPES:
                logger.error(f"comment.type must be one of {', '.join(COMMENT_TYPES)}")
                return False

            logger.info("Configuration validation passed")
            return True

        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            return False

    def _validate_nav_entry(self, entry: Any) -> bool:
        if not isinstance(entry, dict):
            logger.error(f"Navigation entry {entry!r} must be a mapping")
            return False
        children = entry.get('children')
        if not entry.get('name') or (not entry.get('href') and not children):
            logger.error(f"Navigation entry {entry!r} needs 'name' and 'href'")
            return False
        target = entry.get('target')
        if target is not None and target not in LINK_TARGETS:
            logger.error(f"Navigation entry '{entry['name']}' has invalid target '{target}'")
            return False
        for child in children or []:
            if not self._validate_nav_entry(child):
                return False
        return True


__all__ = [
    "ConfigManager",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
]
