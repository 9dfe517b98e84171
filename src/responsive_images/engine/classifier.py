"""Eligibility gate deciding whether a request path is handled at all."""

from __future__ import annotations

import os
import posixpath
import re
from pathlib import Path
from typing import Iterable

import structlog

from ..config import ResponsiveImagesSettings
from ..domain.models import RequestContext, WatchRule
from ..exceptions import NotEligibleError


logger = structlog.get_logger(__name__)

WILDCARD = "*"
WILDCARD_REGEX = "[^/].*"


def compile_watch_rule(pattern: str) -> WatchRule:
    """Translate a watched-directory pattern into an anchored regex.

    ``*`` stands for one path segment or more; every other character is
    matched literally.
    """

    body = WILDCARD_REGEX.join(re.escape(part) for part in pattern.split(WILDCARD))
    return WatchRule(pattern=pattern, regex=re.compile(body))


def compile_watch_rules(patterns: Iterable[str]) -> tuple[WatchRule, ...]:
    return tuple(compile_watch_rule(pattern) for pattern in patterns)


class RequestClassifier:
    """Matches request paths against watch rules and supported file types."""

    def __init__(self, settings: ResponsiveImagesSettings) -> None:
        self.rules = compile_watch_rules(settings.watched_directories)
        self.file_types = frozenset(settings.file_types)
        self.cache_suffix = settings.cache_suffix
        self.static_root = settings.static_root

    def classify(self, url_path: str) -> RequestContext:
        """Return the request context for an eligible path.

        Raises:
            NotEligibleError: If the path is not watched, the type is not
                supported or the origin file does not exist.
        """

        if not self.rules:
            raise NotEligibleError("no watched directories configured")

        directory, _, filename = url_path.rpartition("/")
        directory = directory or "/"
        base_name, extension = posixpath.splitext(filename)
        if not base_name or not extension:
            raise NotEligibleError(f"'{url_path}' does not name a file with an extension")

        if not any(rule.matches(directory) for rule in self.rules):
            raise NotEligibleError(f"directory '{directory}' is not watched")
        if any(segment.endswith(self.cache_suffix) for segment in directory.split("/")):
            raise NotEligibleError(f"directory '{directory}' is inside a cache tree")

        file_type = extension[1:].lower()
        if file_type not in self.file_types:
            raise NotEligibleError(f"file type '{file_type}' is not supported")

        origin_path = self.origin_path_for(url_path)
        if not origin_path.is_file():
            raise NotEligibleError(f"origin '{origin_path}' does not exist")

        logger.debug("images.classify.eligible", path=url_path, origin=str(origin_path))
        return RequestContext(
            url_path=url_path,
            origin_path=origin_path,
            base_name=base_name,
            extension=extension,
        )

    def origin_path_for(self, url_path: str) -> Path:
        """Map a URL path below the static root, refusing traversal."""

        candidate = Path(os.path.normpath(self.static_root / url_path.lstrip("/")))
        if not candidate.is_relative_to(self.static_root):
            raise NotEligibleError(f"'{url_path}' escapes the static root")
        return candidate


__all__ = ["RequestClassifier", "compile_watch_rule", "compile_watch_rules"]
