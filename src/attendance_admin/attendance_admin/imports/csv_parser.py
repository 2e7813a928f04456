from __future__ import annotations

from typing import Dict, List


def parse_csv_to_objects(csv_text: str) -> List[Dict[str, str]]:
    """Parse header + rows into one dict per row.

    Plain comma splitting: there is no quoting or escaping, so a value that
    contains a comma is split across columns. Short rows are padded with ``""``.
    Never raises; fewer than two lines yields ``[]``.
    """

    if not isinstance(csv_text, str):
        return []

    lines = csv_text.strip().split("\n")
    if len(lines) < 2:
        return []

    headers = [h.strip() for h in lines[0].split(",")]
    objects = []
    for line in lines[1:]:
        values = [v.strip() for v in line.split(",")]
        objects.append({header: values[i] if i < len(values) else "" for i, header in enumerate(headers)})
    return objects
