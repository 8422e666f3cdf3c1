"""
Project Registry
================
Resolves a project id to its ProjectConfig.

Lookup order:
    1. ``<projects_dir>/projects.yml`` entries (these shadow built-ins).
    2. Built-in projects (BUILTIN_PROJECTS: pid → factory(config)).

projects.yml format::

    projects:
      Lang:
        name: commons-lang
        repo: commons-lang.git            # relative to project_repos/ (or absolute)
        commit_db: commit-db              # relative to the project dir (default)
        post_checkout: mockito            # optional, key into HOOKS
        sanity_targets: [compile, test]   # optional
        layout:                           # optional, ordered
          - {marker: src/java, src: src/java, test: src/test}
"""
import os
import logging
from typing import Any, Callable, Dict, List

import yaml

from bugmine.core.config import PipelineConfig
from bugmine.core.constants import COMMIT_DB_FILE, PROJECTS_FILE
from bugmine.core.errors import ConfigError
from bugmine.models.layout import LayoutRule
from bugmine.projects import mockito
from bugmine.projects.project_config import (
    DEFAULT_SANITY_TARGETS,
    PostCheckoutHook,
    ProjectConfig,
)
from bugmine.executor.layout_detector import DEFAULT_LAYOUT_RULES

logger = logging.getLogger(__name__)

BUILTIN_PROJECTS: Dict[str, Callable[[PipelineConfig], ProjectConfig]] = {
    mockito.PID: mockito.create_project,
}

HOOKS: Dict[str, PostCheckoutHook] = {
    "mockito": mockito.post_checkout,
}

BUILD_ENVS: Dict[str, Callable[[str], Dict[str, str]]] = {
    "gradle_local_home": mockito.build_env,
}


def load_projects_file(config: PipelineConfig) -> Dict[str, Dict[str, Any]]:
    """Read projects.yml; an absent file means no declared projects."""
    path = os.path.join(config.projects_dir, PROJECTS_FILE)
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e

    projects = data.get("projects") if isinstance(data, dict) else None
    if not isinstance(projects, dict):
        raise ConfigError(f"{path}: expected a 'projects' mapping")
    return projects


def _layout_rules(pid: str, raw: Any) -> tuple:
    if raw is None:
        return DEFAULT_LAYOUT_RULES
    if not isinstance(raw, list) or not raw:
        raise ConfigError(f"{pid}: 'layout' must be a non-empty list")
    rules = []
    for item in raw:
        try:
            rules.append(LayoutRule(marker=item["marker"], src_dir=item["src"], test_dir=item["test"]))
        except (KeyError, TypeError) as e:
            raise ConfigError(f"{pid}: invalid layout rule {item!r}") from e
    return tuple(rules)


def _lookup(table: Dict[str, Any], key: Any, pid: str, what: str) -> Any:
    if key is None:
        return None
    if key not in table:
        raise ConfigError(f"{pid}: unknown {what} '{key}' (known: {sorted(table)})")
    return table[key]


def project_from_entry(pid: str, entry: Dict[str, Any], config: PipelineConfig) -> ProjectConfig:
    """Build a ProjectConfig from one projects.yml entry."""
    if not isinstance(entry, dict):
        raise ConfigError(f"{pid}: project entry must be a mapping")
    name = entry.get("name", pid.lower())
    repo = entry.get("repo", f"{name}.git")
    commit_db = entry.get("commit_db", COMMIT_DB_FILE)
    targets = entry.get("sanity_targets")

    return ProjectConfig(
        pid=pid,
        name=name,
        repo_path=os.path.join(config.repo_dir, repo),
        commit_db_path=os.path.join(config.project_dir(pid), commit_db),
        layout_rules=_layout_rules(pid, entry.get("layout")),
        post_checkout=_lookup(HOOKS, entry.get("post_checkout"), pid, "post_checkout hook"),
        build_env=_lookup(BUILD_ENVS, entry.get("build_env"), pid, "build_env"),
        sanity_targets=tuple(targets) if targets else DEFAULT_SANITY_TARGETS,
    )


def get_project(pid: str, config: PipelineConfig) -> ProjectConfig:
    """
    Resolve ``pid`` to a ProjectConfig.

    Raises
    ------
    ConfigError
        Unknown project id, or an invalid projects.yml entry.
    """
    declared = load_projects_file(config)
    if pid in declared:
        logger.info("Using project %s from %s", pid, PROJECTS_FILE)
        return project_from_entry(pid, declared[pid], config)
    factory = BUILTIN_PROJECTS.get(pid)
    if factory is None:
        known = sorted(set(BUILTIN_PROJECTS) | set(declared))
        raise ConfigError(f"Unknown project id '{pid}' (known: {known})")
    return factory(config)


def available_projects(config: PipelineConfig) -> List[str]:
    return sorted(set(BUILTIN_PROJECTS) | set(load_projects_file(config)))
