# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analysis property primitives, well-known keys and sensitive-data rules."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

_KEY_PATTERN = re.compile(r"^\w[\w\d\.-]*$")
_KEY_VALUE_PATTERN = re.compile(r"^(?P<key>\w[\w\d\.-]*)=(?P<value>[^\r\n]+)")


class SonarProperties:
    """Well-known analysis property keys."""

    PROJECT_KEY = "sonar.projectKey"
    PROJECT_NAME = "sonar.projectName"
    PROJECT_VERSION = "sonar.projectVersion"
    PROJECT_BASE_DIR = "sonar.projectBaseDir"
    ORGANIZATION = "sonar.organization"
    WORKING_DIRECTORY = "sonar.working.directory"
    MODULES = "sonar.modules"
    SOURCES = "sonar.sources"
    TESTS = "sonar.tests"
    SOURCE_ENCODING = "sonar.sourceEncoding"
    VERBOSE = "sonar.verbose"
    BRANCH = "sonar.branch"
    HOST_URL = "sonar.host.url"
    PULL_REQUEST_CACHE_BASE_PATH = "sonar.pullrequest.cache.basepath"

    CS_REPORT_PATHS = "sonar.cs.roslyn.reportFilePaths"
    VB_REPORT_PATHS = "sonar.vbnet.roslyn.reportFilePaths"
    CS_ANALYZER_OUT_PATHS = "sonar.cs.analyzer.projectOutPaths"
    VB_ANALYZER_OUT_PATHS = "sonar.vbnet.analyzer.projectOutPaths"
    CS_TELEMETRY_PATHS = "sonar.cs.scanner.telemetry"
    VB_TELEMETRY_PATHS = "sonar.vbnet.scanner.telemetry"

    LOGIN = "sonar.login"
    PASSWORD = "sonar.password"
    TOKEN = "sonar.token"
    CLIENT_CERT_PASSWORD = "sonar.clientcert.password"
    TRUSTSTORE_PASSWORD = "sonar.scanner.truststorePassword"
    JAVAX_TRUSTSTORE_PASSWORD = "javax.net.ssl.trustStorePassword"

    SENSITIVE_KEYS: tuple[str, ...] = (
        PASSWORD,
        LOGIN,
        TOKEN,
        CLIENT_CERT_PASSWORD,
        TRUSTSTORE_PASSWORD,
        JAVAX_TRUSTSTORE_PASSWORD,
    )
    SECURED_SUFFIX = ".secured"


@dataclass(frozen=True)
class Property:
    """Represent one analysis setting.

    Attributes:
        key: Property key, e.g. ``sonar.projectKey``.
        value: Raw string value.
    """

    key: str
    value: str

    @property
    def contains_sensitive_data(self) -> bool:
        return (
            is_secured_key(self.key)
            or contains_sensitive_data(self.key)
            or contains_sensitive_data(self.value)
        )

    def as_pair(self) -> str:
        return f"{self.key}={self.value}"

    @staticmethod
    def parse(text: str) -> "Property | None":
        """Parse a ``key=value`` argument.

        Args:
            text: Raw argument text.

        Returns:
            Parsed property, or ``None`` when the text is not a valid pair.
        """
        match = _KEY_VALUE_PATTERN.match(text)
        if match is None:
            return None
        return Property(key=match.group("key"), value=match.group("value"))


def is_valid_key(key: str) -> bool:
    """Check whether a string is an acceptable property key."""
    return bool(_KEY_PATTERN.match(key))


def is_secured_key(key: str | None) -> bool:
    """Check whether a property key is a server-side secured setting."""
    if not key:
        return False
    return key.casefold().endswith(SonarProperties.SECURED_SUFFIX)


def contains_sensitive_data(text: str | None) -> bool:
    """Check whether text names or embeds a credential setting.

    Args:
        text: Property key, value or full command-line argument.

    Returns:
        True for any known credential key (case-insensitive substring match).
        Secured keys are recognised by ``is_secured_key`` only.
    """
    if not text:
        return False
    folded = text.casefold()
    return any(key.casefold() in folded for key in SonarProperties.SENSITIVE_KEYS)


def find_property(properties: Iterable[Property], key: str) -> Property | None:
    """Return the first property with the given key (keys compare exactly)."""
    for item in properties:
        if item.key == key:
            return item
    return None
