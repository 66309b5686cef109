# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Helpers for the build-integration XML documents."""

import xml.etree.ElementTree as ET

from scanshim.properties import Property

NAMESPACE = "http://www.sonarsource.com/msbuild/integration/2015/1"


def namespace_prefix(root: ET.Element) -> str:
    """Return the ``{uri}`` tag prefix of a document root, or empty string."""
    if root.tag.startswith("{"):
        return root.tag.split("}")[0] + "}"
    return ""


def child_text(element: ET.Element, name: str, ns: str) -> str | None:
    child = element.find(f"{ns}{name}")
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def parse_bool(text: str | None) -> bool:
    return (text or "").strip().lower() == "true"


def read_property_list(element: ET.Element, name: str, ns: str) -> list[Property]:
    """Read ``<name><Property Name="key">value</Property>...</name>`` lists."""
    container = element.find(f"{ns}{name}")
    if container is None:
        return []
    return read_properties(container, ns)


def read_properties(container: ET.Element, ns: str) -> list[Property]:
    properties: list[Property] = []
    for item in container.findall(f"{ns}Property"):
        key = item.get("Name")
        if not key:
            continue
        properties.append(Property(key=key, value=item.text or ""))
    return properties


def add_text(parent: ET.Element, name: str, value: str | None) -> None:
    if value is None:
        return
    ET.SubElement(parent, name).text = value


def add_property_list(
    parent: ET.Element, name: str, properties: list[Property]
) -> None:
    container = ET.SubElement(parent, name)
    for item in properties:
        ET.SubElement(container, "Property", Name=item.key).text = item.value
