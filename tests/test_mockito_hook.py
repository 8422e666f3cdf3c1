"""
Unit Tests — Mockito post-checkout hook
=======================================
"""
import os
import pytest
from unittest.mock import MagicMock

from bugmine.core.errors import CheckoutFailure
from bugmine.projects import mockito


@pytest.fixture
def adapter(config):
    vcs = MagicMock()
    vcs.config = config
    vcs.lookup_vid.return_value = 1
    return vcs


@pytest.fixture
def gradle_ws(tmp_path):
    ws = tmp_path / "ws"
    (ws / "gradle" / "wrapper").mkdir(parents=True)
    (ws / "gradle" / "wrapper" / "gradle-wrapper.properties").write_text(
        "distributionBase=GRADLE_USER_HOME\n"
        "distributionUrl=https\\://services.gradle.org/distributions/gradle-2.2.1-all.zip\n"
    )
    (ws / "gradle.properties").write_text("org.gradle.daemon=true\n")
    (ws / "build.gradle").write_text("repositories {\n  jcenter()\n}\n")
    (ws / "subproject").mkdir()
    (ws / "subproject" / "build.gradle").write_text("repositories { mavenCentral() }\n")
    return ws


class TestDistributionUrl:

    def test_gradle_2(self):
        line = "distributionUrl=https\\://services.gradle.org/distributions/gradle-2.2.1-all.zip\n"
        assert mockito.rewrite_distribution_url(line, "/lib/dists") == \
            "distributionUrl=file\\:/lib/dists/gradle-2.2.1-all.zip\n"

    def test_gradle_1(self):
        line = "distributionUrl=http\\://services.gradle.org/distributions/gradle-1.10-bin.zip"
        assert mockito.rewrite_distribution_url(line, "/lib/dists") == \
            "distributionUrl=file\\:/lib/dists/gradle-1.12-bin.zip"

    def test_other_lines_untouched(self):
        assert mockito.rewrite_distribution_url("zipStoreBase=GRADLE_USER_HOME\n", "/d") == \
            "zipStoreBase=GRADLE_USER_HOME\n"


class TestPostCheckout:

    def test_gradle_fixes(self, adapter, config, gradle_ws):
        mockito.post_checkout(adapter, "rev1", str(gradle_ws))

        gradle_lib = os.path.join(config.build_systems_lib_dir, "gradle")
        props = (gradle_ws / "gradle" / "wrapper" / "gradle-wrapper.properties").read_text()
        assert f"distributionUrl=file\\:{gradle_lib}/dists/gradle-2.2.1-all.zip" in props
        assert "distributionBase=GRADLE_USER_HOME" in props
        assert (gradle_ws / "gradle.properties").read_text() == "org.gradle.daemon=false\n"

        build = (gradle_ws / "build.gradle").read_text()
        assert f'maven {{ url "{gradle_lib}/deps" }}' in build
        assert "jcenter()" in build
        assert (gradle_ws / "subproject" / "build.gradle").read_text() == "repositories { mavenCentral() }\n"
        adapter.apply_patch.assert_not_called()

    def test_without_wrapper_does_nothing(self, adapter, tmp_path):
        ws = tmp_path / "plain"
        ws.mkdir()
        (ws / "build.gradle").write_text("repositories { jcenter() }\n")
        mockito.post_checkout(adapter, "rev1", str(ws))
        assert (ws / "build.gradle").read_text() == "repositories { jcenter() }\n"

    def test_runner_patch_for_affected_bugs(self, adapter, config, gradle_ws):
        adapter.lookup_vid.return_value = 16
        patch_file = os.path.join(config.project_dir(mockito.PID), mockito.RUNNER_PATCH_FILE)
        os.makedirs(os.path.dirname(patch_file), exist_ok=True)
        with open(patch_file, "w") as f:
            f.write("diff")

        mockito.post_checkout(adapter, "rev16", str(gradle_ws))
        adapter.apply_patch.assert_called_once_with(str(gradle_ws), patch_file)

    def test_runner_patch_missing(self, adapter, gradle_ws):
        adapter.lookup_vid.return_value = 34
        with pytest.raises(CheckoutFailure, match="file not found"):
            mockito.post_checkout(adapter, "rev34", str(gradle_ws))


class TestProject:

    def test_create_project(self, config):
        project = mockito.create_project(config)
        assert project.pid == "Mockito"
        assert project.repo_path == os.path.join(config.repo_dir, "mockito.git")
        assert project.commit_db_path == os.path.join(config.project_dir("Mockito"), "commit-db")
        assert project.post_checkout is mockito.post_checkout

    def test_gradle_home_per_workspace(self, config):
        project = mockito.create_project(config)
        assert project.env_for("/scratch/1/1b") == {
            "GRADLE_USER_HOME": "/scratch/1/1b/.gradle_local_home",
        }


class TestLatin1Files:

    WRAPPER = (
        b"# Auteur: Fran\xe7ois\n"
        b"distributionUrl=https\\://services.gradle.org/distributions/gradle-2.2.1-all.zip\n"
    )

    def test_non_utf8_properties(self, adapter, config, gradle_ws):
        (gradle_ws / "gradle" / "wrapper" / "gradle-wrapper.properties").write_bytes(self.WRAPPER)
        (gradle_ws / "gradle.properties").write_bytes(b"# \xa9 Mockito\norg.gradle.daemon=true\n")

        mockito.post_checkout(adapter, "rev1", str(gradle_ws))

        gradle_lib = os.path.join(config.build_systems_lib_dir, "gradle")
        props = (gradle_ws / "gradle" / "wrapper" / "gradle-wrapper.properties").read_bytes()
        assert props.startswith(b"# Auteur: Fran\xe7ois\n")
        assert f"distributionUrl=file\\:{gradle_lib}/dists/gradle-2.2.1-all.zip".encode() in props
        assert (gradle_ws / "gradle.properties").read_bytes() == b"# \xa9 Mockito\norg.gradle.daemon=false\n"

    def test_non_utf8_build_gradle(self, adapter, gradle_ws):
        (gradle_ws / "build.gradle").write_bytes(b"// \xe9t\xe9\nrepositories {\n  jcenter()\n}\n")
        mockito.post_checkout(adapter, "rev1", str(gradle_ws))
        build = (gradle_ws / "build.gradle").read_bytes()
        assert build.startswith(b"// \xe9t\xe9\n")
        assert b"maven { url" in build
