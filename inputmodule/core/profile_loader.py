"""Discovery profiles: which serial prefixes belong to which module type.

Profiles ship inside the package (``inputmodule/profiles``) and may be added
or overridden per user from ``$XDG_CONFIG_HOME/inputmodule/profiles`` and
``$XDG_DATA_HOME/inputmodule/profiles``. A user profile replaces a packaged
profile with the same id.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Hashable, Iterator
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from inputmodule.core.errors import ProfileLoadError, ProfileValidationError
from inputmodule.core.model import ModuleRule, ModuleType, Profile, TransportSettings

PROFILE_SUFFIXES = (".yaml", ".yml")
LOGGER = logging.getLogger(__name__)


class ProfileYamlLoader(yaml.SafeLoader):
    """Safe loader whose mappings refuse repeated keys."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Hashable] = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                continue
            if key in seen:
                raise ProfileValidationError(f"Duplicate key '{key}' at line {key_node.start_mark.line + 1}")
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, Profile]
    warnings: tuple[str, ...]


@lru_cache(maxsize=1)
def _schema_validator() -> Any:
    schema = json.loads(
        resources.files("inputmodule.schemas").joinpath("profile.schema.json").read_text(encoding="utf-8")
    )
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def user_profile_dirs() -> list[Path]:
    config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    data_home = Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    return [config_home / "inputmodule" / "profiles", data_home / "inputmodule" / "profiles"]


def _sources() -> Iterator[tuple[bool, Path | Traversable]]:
    """Yield ``(is_user, source)`` pairs, packaged profiles first."""
    packaged = resources.files("inputmodule.profiles")
    for item in sorted(packaged.iterdir(), key=lambda entry: entry.name):
        if item.name.endswith(PROFILE_SUFFIXES):
            yield False, item

    for directory in user_profile_dirs():
        if not directory.is_dir():
            continue
        for path in sorted(directory.iterdir()):
            if path.suffix in PROFILE_SUFFIXES:
                yield True, path


def parse_profile(text: str, source: Path | Traversable | str = "<string>") -> Profile:
    """Parse and validate one profile document."""
    try:
        doc = yaml.load(text, Loader=ProfileYamlLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"{source}: not valid YAML: {exc}") from exc
    if not isinstance(doc, dict):
        raise ProfileValidationError(f"{source}: a profile must be a mapping")

    try:
        _schema_validator().validate(doc)
    except ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise ProfileValidationError(f"{source}: {location}: {exc.message}") from exc

    vendor_prefix = doc["vendor_prefix"].strip().upper()
    rules = []
    for position, entry in enumerate(doc["modules"]):
        serial_prefix = entry["serial_prefix"].strip().upper()
        if not serial_prefix.startswith(vendor_prefix):
            raise ProfileValidationError(
                f"{source}: modules/{position}: serial prefix '{serial_prefix}' "
                f"must start with vendor prefix '{vendor_prefix}'"
            )
        rules.append(ModuleRule(module_type=ModuleType(entry["type"]), serial_prefix=serial_prefix))

    timeout = (doc.get("transport") or {}).get("read_timeout_s")
    return Profile(
        id=doc["id"],
        name=doc["name"],
        vendor_prefix=vendor_prefix,
        modules=tuple(rules),
        transport=TransportSettings(read_timeout_s=None if timeout is None else float(timeout)),
    )


def load_profiles() -> LoadedProfiles:
    profiles: dict[str, Profile] = {}
    packaged_ids: set[str] = set()
    warnings: list[str] = []

    for is_user, source in _sources():
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise ProfileLoadError(f"Could not read profile file {source}: {exc}") from exc
        profile = parse_profile(text, source)

        if not is_user:
            packaged_ids.add(profile.id)
        elif profile.id in packaged_ids:
            message = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(message)
            warnings.append(message)
        profiles[profile.id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
