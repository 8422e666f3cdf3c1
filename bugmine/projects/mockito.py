"""
Mockito
=======
Project configuration and post-checkout hook for mockito.

The hook runs after every checkout and:
    1. Patches Mockito's JUnit test runners for the bugs that need it.
    2. Points the Gradle wrapper at a local distribution.
    3. Disables the Gradle daemon.
    4. Adds the local Gradle dependency repository in front of jcenter().

Build commands get a per-workspace GRADLE_USER_HOME, since a shared
$HOME/.gradle breaks when several Gradle instances run at once.
"""
import glob
import os
import re
import logging
from typing import Dict

from bugmine.core.config import PipelineConfig
from bugmine.core.constants import COMMIT_DB_FILE, GRADLE_LOCAL_HOME_DIR
from bugmine.core.errors import CheckoutFailure
from bugmine.projects.project_config import ProjectConfig

logger = logging.getLogger(__name__)

PID = "Mockito"
NAME = "mockito"

RUNNER_PATCH_FILE = "mockito_test_runners.patch"

# Java .properties files are ISO-8859-1; latin-1 also round-trips any byte of build.gradle
PROPERTIES_ENCODING = "latin-1"

# TODO: match affected test runner files instead of hard-coding bug ids
RUNNER_PATCH_BUGS = frozenset({16, 17, 34, 35, 36, 37, 38})

GRADLE_2_DIST = "gradle-2.2.1-all.zip"
GRADLE_1_DIST = "gradle-1.12-bin.zip"

_DIST_URL_RE = re.compile(r"(distributionUrl=).*/(gradle-.*)")
_GRADLE_2_RE = re.compile(r"distributionUrl=.*/gradle-2.*")


def rewrite_distribution_url(line: str, dists_dir: str) -> str:
    """Rewrite a distributionUrl line to a local Gradle 2.x or 1.x archive."""
    dist = GRADLE_2_DIST if _GRADLE_2_RE.search(line) else GRADLE_1_DIST
    replacement = "distributionUrl=file\\:" + f"{dists_dir}/{dist}"
    return _DIST_URL_RE.sub(lambda m: replacement, line)


def _rewrite_wrapper_properties(prop_file: str, dists_dir: str) -> None:
    with open(prop_file, "r", encoding=PROPERTIES_ENCODING) as f:
        lines = f.readlines()
    with open(prop_file, "w", encoding=PROPERTIES_ENCODING) as f:
        f.writelines(rewrite_distribution_url(line, dists_dir) for line in lines)


def _disable_daemon(work_dir: str) -> None:
    props = os.path.join(work_dir, "gradle.properties")
    if not os.path.isfile(props):
        return
    with open(props, "r", encoding=PROPERTIES_ENCODING) as f:
        content = f.read()
    with open(props, "w", encoding=PROPERTIES_ENCODING) as f:
        f.write(content.replace("org.gradle.daemon=true", "org.gradle.daemon=false"))


def _enable_local_repository(work_dir: str, deps_dir: str) -> None:
    local_repo = f'maven {{ url "{deps_dir}" }}\n jcenter()\n'
    for build_file in glob.glob(os.path.join(work_dir, "**", "build.gradle"), recursive=True):
        with open(build_file, "r", encoding=PROPERTIES_ENCODING) as f:
            content = f.read()
        if "jcenter()" not in content:
            continue
        with open(build_file, "w", encoding=PROPERTIES_ENCODING) as f:
            f.write(content.replace("jcenter()", local_repo))


def post_checkout(adapter, rev_id: str, work_dir: str) -> None:
    """Fix test runners and make the Gradle build work offline."""
    config = adapter.config
    bug_id = adapter.lookup_vid(rev_id)

    if bug_id in RUNNER_PATCH_BUGS:
        patch_file = os.path.join(config.project_dir(PID), RUNNER_PATCH_FILE)
        if not os.path.isfile(patch_file):
            raise CheckoutFailure(f"Couldn't apply patch ({patch_file}): file not found")
        adapter.apply_patch(work_dir, patch_file)

    gradle_lib = os.path.join(config.build_systems_lib_dir, "gradle")
    prop_file = os.path.join(work_dir, "gradle", "wrapper", "gradle-wrapper.properties")
    if not os.path.isfile(prop_file):
        logger.debug("No Gradle wrapper in %s, skipping Gradle fixes", work_dir)
        return

    _rewrite_wrapper_properties(prop_file, os.path.join(gradle_lib, "dists"))
    _disable_daemon(work_dir)
    _enable_local_repository(work_dir, os.path.join(gradle_lib, "deps"))
    logger.info("Applied Mockito post-checkout fixes to %s", work_dir)


def build_env(work_dir: str) -> Dict[str, str]:
    return {"GRADLE_USER_HOME": os.path.join(work_dir, GRADLE_LOCAL_HOME_DIR)}


def create_project(config: PipelineConfig) -> ProjectConfig:
    return ProjectConfig(
        pid=PID,
        name=NAME,
        repo_path=os.path.join(config.repo_dir, f"{NAME}.git"),
        commit_db_path=os.path.join(config.project_dir(PID), COMMIT_DB_FILE),
        post_checkout=post_checkout,
        build_env=build_env,
    )
