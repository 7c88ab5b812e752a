"""Error definitions for wadtool codecs."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_TRUNCATED_HEADER = "E_TRUNCATED_HEADER"
E_LENGTH_UNDERFLOW = "E_LENGTH_UNDERFLOW"
E_SUBTABLE_ORDER = "E_SUBTABLE_ORDER"
E_TOO_MANY_FILES = "E_TOO_MANY_FILES"
E_OVERLAP = "E_OVERLAP"
E_MANIFEST_FIELD = "E_MANIFEST_FIELD"
E_MANIFEST_KIND = "E_MANIFEST_KIND"
E_CONFIG_VALUE = "E_CONFIG_VALUE"


@dataclass
class WadToolError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class ArchiveFormatError(WadToolError):
    pass


class SectionLayoutError(WadToolError):
    pass


class LevelFormatError(WadToolError):
    pass


class ManifestError(WadToolError):
    pass


class ConfigError(WadToolError):
    pass


def truncated_header(
    label: str, wanted: int, got: int, cls: type[WadToolError] = WadToolError
) -> WadToolError:
    return cls(
        code=E_TRUNCATED_HEADER,
        message=f"Truncated header for {label}: wanted {wanted} bytes, got {got}",
        context={"label": label, "wanted": wanted, "got": got},
    )


def manifest_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ManifestError:
    return ManifestError(code=E_MANIFEST_FIELD, message=message, context=context)


__all__ = [
    "WadToolError",
    "ArchiveFormatError",
    "SectionLayoutError",
    "LevelFormatError",
    "ManifestError",
    "ConfigError",
    "truncated_header",
    "manifest_error",
    "E_TRUNCATED_HEADER",
    "E_LENGTH_UNDERFLOW",
    "E_SUBTABLE_ORDER",
    "E_TOO_MANY_FILES",
    "E_OVERLAP",
    "E_MANIFEST_FIELD",
    "E_MANIFEST_KIND",
    "E_CONFIG_VALUE",
]
