"""Command-line entrypoint running one build task per invocation."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path

from sil_buildtasks.changelog import (
    ChangelogError,
    DebianEntry,
    ReleaseNotesOptions,
    prepend_debian_entry,
    release_notes_from_file,
    stamp_changelog_file,
    write_release_notes_html,
)
from sil_buildtasks.config import BuildTasksConfig, CliOverrides, load_effective_config
from sil_buildtasks.logging import BuildLog, JsonlEventLog
from sil_buildtasks.logging.events import IMPORTANCES
from sil_buildtasks.wix import FragmentBuilder, recreate_guid_stores

TaskRunner = Callable[[argparse.Namespace, BuildTasksConfig, BuildLog], bool]


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per task."""
    parser = argparse.ArgumentParser(prog="sil-buildtasks")
    parser.add_argument("--project-root", required=False, default=".")
    parser.add_argument("--log-file", required=False, default=None)
    parser.add_argument("--verbosity", choices=IMPORTANCES, default="normal")
    commands = parser.add_subparsers(dest="command", required=True)

    wix = commands.add_parser("wix", help="Generate an installer fragment for a directory tree.")
    wix.add_argument("root")
    wix.add_argument("output")
    wix.add_argument("--check-only", action="store_true", default=None)
    wix.add_argument("--give-all-permissions", action="store_true", default=None)
    wix.add_argument("--exclude", action="append", default=None)
    wix.add_argument("--match", dest="match_pattern", default=None)
    wix.add_argument("--ignore", dest="ignore_pattern", default=None)
    wix.add_argument("--installer-source-dir", default=None)
    wix.add_argument("--directory-ref-id", default=None)
    wix.add_argument("--component-group-id", default=None)

    recreate = commands.add_parser(
        "recreate-guids", help="Rebuild GUID sidecar files from an existing fragment."
    )
    recreate.add_argument("wxs")

    notes = commands.add_parser("release-notes", help="Print the latest release notes.")
    notes.add_argument("changelog")
    notes.add_argument("--filter-entries", action="store_true", default=None)
    notes.add_argument("--package-id", default=None)
    notes.add_argument("--version-regex", default=None)
    notes.add_argument("--append", dest="append_text", default=None)

    notes_html = commands.add_parser(
        "release-notes-html", help="Write the changelog as HTML release notes."
    )
    notes_html.add_argument("changelog")
    notes_html.add_argument("html_file")

    debian = commands.add_parser(
        "debian-entry", help="Prepend a stanza for the latest release to a Debian changelog."
    )
    debian.add_argument("changelog")
    debian.add_argument("debian_changelog")
    debian.add_argument("--version", dest="version_number", required=True)
    debian.add_argument("--package", required=True)
    debian.add_argument("--distribution", default=None)
    debian.add_argument("--urgency", default=None)
    debian.add_argument("--maintainer", default=None)

    stamp = commands.add_parser("stamp-changelog", help="Stamp the changelog with a version.")
    stamp.add_argument("changelog")
    stamp.add_argument("--version", dest="version_number", required=True)
    stamp.add_argument("--date-format", default=None)

    commands.add_parser("config", help="Print the effective configuration as JSON.")
    return parser


def _overrides_from_args(args: argparse.Namespace) -> CliOverrides:
    exclude = getattr(args, "exclude", None)
    source_dir = getattr(args, "installer_source_dir", None)
    return CliOverrides(
        match_pattern=getattr(args, "match_pattern", None),
        ignore_pattern=getattr(args, "ignore_pattern", None),
        exclude=tuple(exclude) if exclude is not None else None,
        give_all_permissions=getattr(args, "give_all_permissions", None),
        check_only=getattr(args, "check_only", None),
        directory_reference_id=getattr(args, "directory_ref_id", None),
        component_group_id=getattr(args, "component_group_id", None),
        installer_source_directory=Path(source_dir) if source_dir is not None else None,
        version_regex=getattr(args, "version_regex", None),
        filter_entries=getattr(args, "filter_entries", None),
        package_id=getattr(args, "package_id", None),
        append_text=getattr(args, "append_text", None),
        date_format=getattr(args, "date_format", None),
        distribution=getattr(args, "distribution", None),
        urgency=getattr(args, "urgency", None),
        maintainer=getattr(args, "maintainer", None),
    )


def _run_wix(args: argparse.Namespace, config: BuildTasksConfig, log: BuildLog) -> bool:
    builder = FragmentBuilder(Path(args.root), Path(args.output), config.wix, log)
    succeeded = builder.execute()
    log.message(f"Files changed: {builder.files_changed}", importance="low")
    return succeeded


def _run_recreate_guids(
    args: argparse.Namespace, config: BuildTasksConfig, log: BuildLog
) -> bool:
    written = recreate_guid_stores(Path(args.wxs), log)
    log.message(f"Wrote {len(written)} GUID file(s)", importance="high")
    return True


def _run_release_notes(
    args: argparse.Namespace, config: BuildTasksConfig, log: BuildLog
) -> bool:
    options = ReleaseNotesOptions(
        version_regex=config.changelog.version_regex,
        filter_entries=config.changelog.filter_entries,
        package_id=config.changelog.package_id,
        append_text=config.changelog.append_text,
    )
    sys.stdout.write(release_notes_from_file(Path(args.changelog), options))
    return True


def _run_release_notes_html(
    args: argparse.Namespace, config: BuildTasksConfig, log: BuildLog
) -> bool:
    target = Path(args.html_file)
    if write_release_notes_html(Path(args.changelog), target):
        log.message(f"Wrote release notes to {target}", importance="high")
    else:
        log.message(f"No releasenotes element in {target}; left unchanged")
    return True


def _run_debian_entry(
    args: argparse.Namespace, config: BuildTasksConfig, log: BuildLog
) -> bool:
    entry = DebianEntry(
        package=args.package,
        version=args.version_number,
        distribution=config.debian.distribution,
        urgency=config.debian.urgency,
        maintainer=config.debian.maintainer,
    )
    target = Path(args.debian_changelog)
    prepend_debian_entry(Path(args.changelog), target, entry)
    log.message(f"Added {entry.package} ({entry.version}) to {target}", importance="high")
    return True


def _run_stamp_changelog(
    args: argparse.Namespace, config: BuildTasksConfig, log: BuildLog
) -> bool:
    path = Path(args.changelog)
    stamped = stamp_changelog_file(path, args.version_number, config.changelog.date_format)
    log.message(f"Stamped {path}: {stamped[0]}", importance="low")
    return True


def _run_config(args: argparse.Namespace, config: BuildTasksConfig, log: BuildLog) -> bool:
    sys.stdout.write(json.dumps(config.to_public_dict(), indent=2, sort_keys=True))
    sys.stdout.write("\n")
    return True


COMMANDS: dict[str, TaskRunner] = {
    "wix": _run_wix,
    "recreate-guids": _run_recreate_guids,
    "release-notes": _run_release_notes,
    "release-notes-html": _run_release_notes_html,
    "debian-entry": _run_debian_entry,
    "stamp-changelog": _run_stamp_changelog,
    "config": _run_config,
}


def main(argv: list[str] | None = None) -> int:
    """Run one task; return 0 on success and 1 when the task logged errors."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    sink = JsonlEventLog(path=Path(args.log_file).resolve()) if args.log_file else None
    log = BuildLog(task=args.command, sink=sink, stream=sys.stderr, verbosity=args.verbosity)
    try:
        config = load_effective_config(Path(args.project_root), _overrides_from_args(args))
        succeeded = COMMANDS[args.command](args, config, log)
    except ChangelogError as exc:
        log.error(exc.reason)
        log.message(exc.hint, importance="low")
        return 1
    except (OSError, ValueError) as exc:
        log.error_from_exception(exc)
        return 1
    if not succeeded or log.has_logged_errors:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
