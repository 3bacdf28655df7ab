"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

CONFIG_FILE_NAME = "buildtasks.toml"

DEFAULT_MATCH_PATTERN = r".*"
DEFAULT_IGNORE_PATTERN = r"IGNOREME"
DEFAULT_DIRECTORY_REFERENCE_ID = "INSTALLDIR"
DEFAULT_COMPONENT_GROUP_ID = "InstallerComponents"
DEFAULT_VERSION_REGEX = r"#+ \[([^\]]+)\]"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_DISTRIBUTION = "UNRELEASED"
DEFAULT_URGENCY = "low"
DEFAULT_MAINTAINER = "Anonymous <anonymous@example.com>"


@dataclass(slots=True, frozen=True)
class WixConfig:
    """Installer fragment generation settings."""

    match_pattern: str = DEFAULT_MATCH_PATTERN
    ignore_pattern: str = DEFAULT_IGNORE_PATTERN
    exclude: tuple[str, ...] = ()
    give_all_permissions: bool = False
    check_only: bool = False
    directory_reference_id: str = DEFAULT_DIRECTORY_REFERENCE_ID
    component_group_id: str = DEFAULT_COMPONENT_GROUP_ID
    installer_source_directory: Path | None = None


@dataclass(slots=True, frozen=True)
class ChangelogConfig:
    """Release-notes extraction and stamping settings."""

    version_regex: str = DEFAULT_VERSION_REGEX
    filter_entries: bool = False
    package_id: str | None = None
    append_text: str | None = None
    date_format: str = DEFAULT_DATE_FORMAT


@dataclass(slots=True, frozen=True)
class DebianConfig:
    """Debian changelog stanza settings."""

    distribution: str = DEFAULT_DISTRIBUTION
    urgency: str = DEFAULT_URGENCY
    maintainer: str = DEFAULT_MAINTAINER


@dataclass(slots=True, frozen=True)
class BuildTasksConfig:
    """Fully merged configuration."""

    project_root: Path
    wix: WixConfig
    changelog: ChangelogConfig
    debian: DebianConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        source_dir = self.wix.installer_source_directory
        return {
            "project_root": str(self.project_root),
            "wix": {
                "match_pattern": self.wix.match_pattern,
                "ignore_pattern": self.wix.ignore_pattern,
                "exclude": list(self.wix.exclude),
                "give_all_permissions": self.wix.give_all_permissions,
                "check_only": self.wix.check_only,
                "directory_reference_id": self.wix.directory_reference_id,
                "component_group_id": self.wix.component_group_id,
                "installer_source_directory": str(source_dir) if source_dir else None,
            },
            "changelog": {
                "version_regex": self.changelog.version_regex,
                "filter_entries": self.changelog.filter_entries,
                "package_id": self.changelog.package_id,
                "append_text": self.changelog.append_text,
                "date_format": self.changelog.date_format,
            },
            "debian": {
                "distribution": self.debian.distribution,
                "urgency": self.debian.urgency,
                "maintainer": self.debian.maintainer,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command-line overrides applied at highest precedence."""

    match_pattern: str | None = None
    ignore_pattern: str | None = None
    exclude: tuple[str, ...] | None = None
    give_all_permissions: bool | None = None
    check_only: bool | None = None
    directory_reference_id: str | None = None
    component_group_id: str | None = None
    installer_source_directory: Path | None = None
    version_regex: str | None = None
    filter_entries: bool | None = None
    package_id: str | None = None
    append_text: str | None = None
    date_format: str | None = None
    distribution: str | None = None
    urgency: str | None = None
    maintainer: str | None = None


def default_config(project_root: Path) -> BuildTasksConfig:
    """Build default config for a given project root."""
    return BuildTasksConfig(
        project_root=project_root.resolve(),
        wix=WixConfig(),
        changelog=ChangelogConfig(),
        debian=DebianConfig(),
    )


def load_config_file(project_root: Path) -> dict[str, object]:
    """Load optional buildtasks.toml from the project root."""
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_str(
    table: dict[str, object], section: str, field: str, default: str | None
) -> str | None:
    if field not in table:
        return default
    value = table[field]
    if not isinstance(value, str):
        raise ValueError(f"Config field '{section}.{field}' must be a string.")
    return value


def _optional_bool(table: dict[str, object], section: str, field: str, default: bool) -> bool:
    if field not in table:
        return default
    value = table[field]
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{section}.{field}' must be a boolean.")
    return value


def merge_config(
    base: BuildTasksConfig, file_payload: dict[str, object], overrides: CliOverrides
) -> BuildTasksConfig:
    """Merge defaults, config file, then command-line overrides."""
    wix_payload = _get_table(file_payload, "wix")
    changelog_payload = _get_table(file_payload, "changelog")
    debian_payload = _get_table(file_payload, "debian")

    exclude = base.wix.exclude
    if "exclude" in wix_payload:
        exclude = _tuple_of_strings(wix_payload["exclude"], "wix", "exclude")

    installer_source_directory = base.wix.installer_source_directory
    raw_source_dir = _optional_str(wix_payload, "wix", "installer_source_directory", None)
    if raw_source_dir is not None:
        installer_source_directory = (base.project_root / raw_source_dir).resolve()

    wix = WixConfig(
        match_pattern=_optional_str(wix_payload, "wix", "match_pattern", base.wix.match_pattern)
        or DEFAULT_MATCH_PATTERN,
        ignore_pattern=_optional_str(wix_payload, "wix", "ignore_pattern", base.wix.ignore_pattern)
        or DEFAULT_IGNORE_PATTERN,
        exclude=exclude,
        give_all_permissions=_optional_bool(
            wix_payload, "wix", "give_all_permissions", base.wix.give_all_permissions
        ),
        check_only=_optional_bool(wix_payload, "wix", "check_only", base.wix.check_only),
        directory_reference_id=_optional_str(
            wix_payload, "wix", "directory_reference_id", base.wix.directory_reference_id
        )
        or DEFAULT_DIRECTORY_REFERENCE_ID,
        component_group_id=_optional_str(
            wix_payload, "wix", "component_group_id", base.wix.component_group_id
        )
        or DEFAULT_COMPONENT_GROUP_ID,
        installer_source_directory=installer_source_directory,
    )
    changelog = ChangelogConfig(
        version_regex=_optional_str(
            changelog_payload, "changelog", "version_regex", base.changelog.version_regex
        )
        or DEFAULT_VERSION_REGEX,
        filter_entries=_optional_bool(
            changelog_payload, "changelog", "filter_entries", base.changelog.filter_entries
        ),
        package_id=_optional_str(
            changelog_payload, "changelog", "package_id", base.changelog.package_id
        ),
        append_text=_optional_str(
            changelog_payload, "changelog", "append_text", base.changelog.append_text
        ),
        date_format=_optional_str(
            changelog_payload, "changelog", "date_format", base.changelog.date_format
        )
        or DEFAULT_DATE_FORMAT,
    )
    debian = DebianConfig(
        distribution=_optional_str(
            debian_payload, "debian", "distribution", base.debian.distribution
        )
        or DEFAULT_DISTRIBUTION,
        urgency=_optional_str(debian_payload, "debian", "urgency", base.debian.urgency)
        or DEFAULT_URGENCY,
        maintainer=_optional_str(debian_payload, "debian", "maintainer", base.debian.maintainer)
        or DEFAULT_MAINTAINER,
    )
    merged = BuildTasksConfig(
        project_root=base.project_root,
        wix=wix,
        changelog=changelog,
        debian=debian,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: BuildTasksConfig, overrides: CliOverrides) -> BuildTasksConfig:
    """Apply command-line overrides at highest precedence, then validate."""
    wix = config.wix
    if overrides.match_pattern is not None:
        wix = replace(wix, match_pattern=overrides.match_pattern)
    if overrides.ignore_pattern is not None:
        wix = replace(wix, ignore_pattern=overrides.ignore_pattern)
    if overrides.exclude is not None:
        wix = replace(wix, exclude=wix.exclude + overrides.exclude)
    if overrides.give_all_permissions is not None:
        wix = replace(wix, give_all_permissions=overrides.give_all_permissions)
    if overrides.check_only is not None:
        wix = replace(wix, check_only=overrides.check_only)
    if overrides.directory_reference_id is not None:
        wix = replace(wix, directory_reference_id=overrides.directory_reference_id)
    if overrides.component_group_id is not None:
        wix = replace(wix, component_group_id=overrides.component_group_id)
    if overrides.installer_source_directory is not None:
        wix = replace(
            wix, installer_source_directory=overrides.installer_source_directory.resolve()
        )

    changelog = config.changelog
    if overrides.version_regex is not None:
        changelog = replace(changelog, version_regex=overrides.version_regex)
    if overrides.filter_entries is not None:
        changelog = replace(changelog, filter_entries=overrides.filter_entries)
    if overrides.package_id is not None:
        changelog = replace(changelog, package_id=overrides.package_id)
    if overrides.append_text is not None:
        changelog = replace(changelog, append_text=overrides.append_text)
    if overrides.date_format is not None:
        changelog = replace(changelog, date_format=overrides.date_format)

    debian = config.debian
    if overrides.distribution is not None:
        debian = replace(debian, distribution=overrides.distribution)
    if overrides.urgency is not None:
        debian = replace(debian, urgency=overrides.urgency)
    if overrides.maintainer is not None:
        debian = replace(debian, maintainer=overrides.maintainer)

    _require_regex(wix.match_pattern, "wix.match_pattern")
    _require_regex(wix.ignore_pattern, "wix.ignore_pattern")
    version_regex = _require_regex(changelog.version_regex, "changelog.version_regex")
    if version_regex.groups < 1:
        raise ValueError("Config field 'changelog.version_regex' must have a capturing group.")

    return BuildTasksConfig(
        project_root=config.project_root,
        wix=wix,
        changelog=changelog,
        debian=debian,
    )


def load_effective_config(
    project_root: Path, overrides: CliOverrides | None = None
) -> BuildTasksConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    resolved_root = project_root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _require_regex(pattern: str, name: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"Config field '{name}' is not a valid regular expression: {exc}") from exc
