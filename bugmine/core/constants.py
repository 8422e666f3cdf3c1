"""
Constants
Centralised storage for file names, version tags, and artifact naming rules.
"""
BUGGY_TAG = "b"
FIXED_TAG = "f"

# Build descriptors
ANT_BUILD_FILE = "build.xml"
MAVEN_POM_FILE = "pom.xml"
MAVEN_ANT_BUILD_FILE = "maven-build.xml"
MAVEN_ANT_GLOB = "maven-build.*"
BUILD_FILE_PATCH = "build.xml.patch"

# Analyzer output
INCLUDES_FILE = "includes"
EXCLUDES_FILE = "excludes"

# Persisted artifacts
SRC_PATCH_SUFFIX = ".src.patch"
TEST_PATCH_SUFFIX = ".test.patch"
COMMIT_DB_FILE = "commit-db"
LAYOUT_FILE = "layouts.csv"
PROJECTS_FILE = "projects.yml"
RESULTS_FILE = "initialize-revisions.json"
FILESET_REPORT_FILE = "fileset-report.txt"

# Per-workspace Gradle home, keeps concurrent Gradle runs apart
GRADLE_LOCAL_HOME_DIR = ".gradle_local_home"

BUG_SELECTION_PATTERN = r"^(\d+)(:(\d+))?$"


def src_patch_name(bug_id: int) -> str:
    return f"{bug_id}{SRC_PATCH_SUFFIX}"


def test_patch_name(bug_id: int) -> str:
    return f"{bug_id}{TEST_PATCH_SUFFIX}"
