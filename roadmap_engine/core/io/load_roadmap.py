from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, NamedTuple

import yaml

from roadmap_engine.core.errors import RoadmapLoadError


SNAPSHOT_KEYS = (
    "schema_version",
    "organization_id",
    "milestones",
    "dependencies",
    "task_links",
    "assignments",
)


class _Format(NamedTuple):
    parse: Callable[[str], Any]
    parse_error_code: str
    parse_errors: tuple[type[Exception], ...]


_YAML = _Format(yaml.safe_load, "E_YAML_PARSE", (yaml.YAMLError,))
_JSON = _Format(json.loads, "E_JSON_PARSE", (ValueError,))

FORMATS_BY_SUFFIX: dict[str, _Format] = {".yaml": _YAML, ".yml": _YAML, ".json": _JSON}


def load_roadmap(path: str) -> dict[str, Any]:
    """Read a roadmap snapshot from a YAML or JSON file.

    The result holds every key in ``SNAPSHOT_KEYS`` (``None`` when the file
    omits it) plus ``__file__``. Values are passed through untouched;
    ``validate_roadmap`` decides whether they are well formed.
    """

    source = Path(path)

    def fail(code: str, message: str) -> RoadmapLoadError:
        return RoadmapLoadError(code=code, message=message, file=str(source))

    if not source.exists():
        raise fail("E_FILE_NOT_FOUND", "file does not exist")

    fmt = FORMATS_BY_SUFFIX.get(source.suffix.lower())
    if fmt is None:
        raise fail(
            "E_UNSUPPORTED_FORMAT",
            "supported formats are " + ", ".join(sorted(FORMATS_BY_SUFFIX)),
        )

    try:
        document = fmt.parse(source.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise fail("E_FILE_READ", str(e)) from e
    except fmt.parse_errors as e:
        raise fail(fmt.parse_error_code, str(e)) from e

    if not isinstance(document, dict):
        raise fail("E_INVALID_TOP_LEVEL", "a snapshot must be a mapping at the top level")

    snapshot = {key: document.get(key) for key in SNAPSHOT_KEYS}
    snapshot["__file__"] = str(source)
    return snapshot
