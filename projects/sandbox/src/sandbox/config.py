"""Configuration of where and how sandboxes are stored."""

import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from tomllib import load

from ddl import Resolution

DIAGRAM_ID = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class SandboxConfig:
    """Immutable sandbox settings.

    Defaults place sandboxes in ./sandboxes as sandbox-<diagram id>.db with the
    schema fingerprint stored in a _schema_hash table.
    """

    directory: Path = Path("sandboxes")
    prefix: str = "sandbox-"
    suffix: str = ".db"
    metadata_table: str = "_schema_hash"
    resolution: Resolution = "lenient"

    def sandbox_path(self, diagram_id: str) -> Path:
        """Return the sandbox file location for a diagram."""
        if not DIAGRAM_ID.fullmatch(diagram_id):
            msg = f"Invalid diagram id: {diagram_id!r}"
            raise ValueError(msg)
        return self.directory / f"{self.prefix}{diagram_id}{self.suffix}"


DEFAULT_CONFIG = SandboxConfig()


def load_config(config_location: Path, base: SandboxConfig = DEFAULT_CONFIG) -> SandboxConfig:
    """Load the [sandbox] table of a TOML file over the base configuration."""
    with config_location.open("rb") as f:
        settings = load(f).get("sandbox", {})

    known = {field.name for field in fields(SandboxConfig)}
    if unknown := settings.keys() - known:
        msg = f"Unknown sandbox settings: {', '.join(sorted(unknown))}"
        raise ValueError(msg)

    if "directory" in settings:
        directory = Path(settings["directory"])
        # Relative directories are resolved against the config file
        if not directory.is_absolute():
            directory = config_location.parent / directory
        settings["directory"] = directory

    resolution = settings.get("resolution", base.resolution)
    if resolution not in ("lenient", "strict"):
        msg = f"Unknown resolution policy: {resolution}"
        raise ValueError(msg)

    return replace(base, **settings)
