"""
Project Config
==============
Per-project configuration record. A tracked project is described by data
plus optional callables, never by subclassing:

    pid             — project id (e.g. "Mockito"), names the project directory
    name            — repository name (e.g. "mockito")
    repo_path       — local clone of the project repository (bare or not)
    commit_db_path  — the project's commit database
    layout_rules    — ordered layout-detection rules, first match wins
    post_checkout   — hook run after every checkout: hook(adapter, rev_id, work_dir)
    build_env       — extra environment for build commands: build_env(work_dir) -> dict
    sanity_targets  — build-file targets run by the sanity check
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from bugmine.executor.layout_detector import DEFAULT_LAYOUT_RULES
from bugmine.models.layout import LayoutRule

PostCheckoutHook = Callable[..., None]
BuildEnvFactory = Callable[[str], Dict[str, str]]

DEFAULT_SANITY_TARGETS: Tuple[str, ...] = ("test",)


@dataclass(frozen=True)
class ProjectConfig:
    pid: str
    name: str
    repo_path: str
    commit_db_path: str
    layout_rules: Tuple[LayoutRule, ...] = DEFAULT_LAYOUT_RULES
    post_checkout: Optional[PostCheckoutHook] = None
    build_env: Optional[BuildEnvFactory] = None
    sanity_targets: Tuple[str, ...] = DEFAULT_SANITY_TARGETS

    def env_for(self, work_dir: str) -> Dict[str, str]:
        """Environment overrides for build commands run in ``work_dir``."""
        if self.build_env is None:
            return {}
        return dict(self.build_env(work_dir))
