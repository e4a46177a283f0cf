"""Print every descriptor query and gauge, for DBAs reviewing what the exporter runs."""

import sys
from typing import Optional, TextIO

from mssql_exporter.domains.catalogs import DEFAULT_CATALOG
from mssql_exporter.domains.collection.types import MetricCatalog


def render_catalog(catalog: MetricCatalog = DEFAULT_CATALOG) -> str:
    """Render the catalog as a SQL script followed by a gauge summary comment."""
    lines: list[str] = []
    for descriptor in catalog.descriptors:
        for spec in descriptor.gauges:
            lines.append(f"-- {spec.name} {spec.help}")
        lines.append(f"{descriptor.query};")
        lines.append("")

    lines.append("/*")
    for descriptor in catalog.descriptors:
        for spec in descriptor.gauges:
            labels = "{" + ",".join(spec.labels) + "}" if spec.labels else ""
            lines.append(f"* {spec.name}{labels} {spec.help}")
    lines.append("*/")
    return "\n".join(lines) + "\n"


def main(stream: Optional[TextIO] = None) -> int:
    (stream or sys.stdout).write(render_catalog())
    return 0
