"""
Shared fixtures: a throw-away bug-mining work dir and real git repositories
built commit by commit in tmp_path.
"""
import os
import shutil
import subprocess

import pytest

from bugmine.core.config import PipelineConfig
from bugmine.projects.project_config import ProjectConfig

PID = "Demo"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(cwd, *args) -> str:
    res = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd, check=True, capture_output=True, text=True,
    )
    return res.stdout.strip()


class RepoBuilder:
    """Creates commits from {relative_path: content} maps; None deletes a file, bytes are written raw."""

    def __init__(self, path: str) -> None:
        self.path = path
        os.makedirs(path)
        git(path, "init", "-q")

    def commit(self, files: dict, message: str = "commit") -> str:
        for rel, content in files.items():
            full = os.path.join(self.path, rel)
            if content is None:
                if os.path.isdir(full):
                    shutil.rmtree(full)
                elif os.path.exists(full):
                    os.remove(full)
                continue
            os.makedirs(os.path.dirname(full), exist_ok=True)
            if isinstance(content, bytes):
                with open(full, "wb") as f:
                    f.write(content)
                continue
            with open(full, "w", encoding="utf-8") as f:
                f.write(content)
        git(self.path, "add", "-A")
        git(self.path, "commit", "-q", "--allow-empty", "-m", message)
        return git(self.path, "rev-parse", "HEAD")


@pytest.fixture
def work_dir(tmp_path):
    wd = tmp_path / "work"
    (wd / "project_repos").mkdir(parents=True)
    (wd / "framework" / "projects" / PID / "patches").mkdir(parents=True)
    return wd


@pytest.fixture
def config(work_dir, tmp_path):
    return PipelineConfig(
        work_dir=str(work_dir),
        lib_dir=str(tmp_path / "lib"),
        scratch_dir=str(tmp_path / "scratch"),
        fail_fast=True,
        keep_scratch=False,
        command_timeout=120,
        sanity_docker_image=None,
    )


@pytest.fixture
def repo(config):
    return RepoBuilder(os.path.join(config.repo_dir, "demo"))


@pytest.fixture
def commit_db_path(config):
    return os.path.join(config.project_dir(PID), "commit-db")


@pytest.fixture
def write_commit_db(commit_db_path):
    def _write(rows):
        with open(commit_db_path, "w", encoding="utf-8") as f:
            for bug_id, buggy, fixed in rows:
                f.write(f"{bug_id},{buggy},{fixed}\n")
        return commit_db_path
    return _write


@pytest.fixture
def project(config, commit_db_path):
    return ProjectConfig(
        pid=PID,
        name="demo",
        repo_path=os.path.join(config.repo_dir, "demo"),
        commit_db_path=commit_db_path,
    )
