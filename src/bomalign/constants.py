"""Constants used in the project."""

from enum import Enum


class VariantAxes(Enum):
    """Known variant axes.

    Args:
        Enum (string): Axis tags.
    """

    TEST_RUNTIME = "test-runtime"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "BOMALIGN_LOG_LEVEL"
    ENV_CONFIG = "BOMALIGN_CONFIG"
    DEFAULT_CONFIG_PATHS = [
        "bomalign.yml",
        "bomalign.yaml",
        "~/.config/bomalign/bomalign.yml",
    ]

    LATEST_RELEASE = "latest.release"
    LATEST_INTEGRATION = "latest.integration"
    PLATFORM_ALIAS = "platform"
    DEFAULT_PLATFORM_GROUP = "org.openrewrite"
    DEFAULT_PLATFORM_NAME = "rewrite-bom"
    # Gradle's excludeVersionByRegex(".+", ".+", ".+-rc-?[0-9]*")
    PRERELEASE_VERSION_REGEX = ".+-rc-?[0-9]*"
    DEFAULT_REPOSITORY_URL = "https://repo1.maven.org/maven2/"
    MAVEN_METADATA_FILE = "maven-metadata.xml"
    SNAPSHOT_SUFFIX = "-SNAPSHOT"
    # Highest priority first
    DEFAULT_TEST_RUNTIME_PRIORITY = [
        "org.openrewrite:rewrite-java-25",
        "org.openrewrite:rewrite-java-21",
        "org.openrewrite:rewrite-java-17",
        "org.openrewrite:rewrite-java-11",
        "org.openrewrite:rewrite-java-8",
    ]

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    METADATA_CACHE_TTL_SEC = 600
