"""Command line front end: import a roster, build groups, print the result."""

import argparse
import json
import logging
import os
import sys

from .engine import run_grouping
from .models import GroupingConfig, GroupingMode, GroupingRequest, GroupingResult, IssueType
from .roster_io import export_result, import_roster
from .translations import available_languages, set_language, tr

logger = logging.getLogger(__name__)


def get_system_language() -> str:
    """Detect system language from environment."""
    # Check common locale environment variables
    for var in ('LC_ALL', 'LC_MESSAGES', 'LANG', 'LANGUAGE'):
        value = os.environ.get(var, '')
        if value.startswith('de'):
            return 'de'
    return 'en'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="learner-groups",
        description="Split a class roster into balanced groups.",
    )
    parser.add_argument("roster", help="Roster file (.json, .csv, .xlsx)")
    sizing = parser.add_mutually_exclusive_group()
    sizing.add_argument("--size", type=int, help="Target number of learners per group")
    sizing.add_argument("--count", type=int, help="Target number of groups")
    parser.add_argument("--no-balance", action="store_true",
                        help="Do not balance performance totals across groups")
    parser.add_argument("--lang", choices=[code for code, _ in available_languages()],
                        help="Language for messages and group labels")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--export", metavar="PATH", help="Write the assignment to a CSV/Excel/JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    return parser


def config_from_args(args: argparse.Namespace) -> GroupingConfig:
    if args.count is not None:
        return GroupingConfig(mode=GroupingMode.GROUP_COUNT, group_count=args.count,
                              balance_performance=not args.no_balance)
    return GroupingConfig(mode=GroupingMode.GROUP_SIZE, group_size=args.size,
                          balance_performance=not args.no_balance)


def format_result(result: GroupingResult) -> str:
    """Plain text rendering of a grouping."""
    lines = []
    for group in result.groups:
        lines.append(f"{group.label} ({len(group.members)})")
        for member in group.members:
            lines.append(f"  - {member.name} [{member.performance.value}]")

    if result.unassigned:
        lines.append(f"{tr('Unassigned')} ({len(result.unassigned)})")
        for learner in result.unassigned:
            lines.append(f"  - {learner.name}")

    if result.issues:
        lines.append(f"{tr('Issues')} ({len(result.issues)})")
        for issue in result.issues:
            kind = tr("Conflict") if issue.type == IssueType.CONFLICT else tr("Warning")
            lines.append(f"  {kind}: {issue.message}")

    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    lang = args.lang or os.environ.get("LEARNER_GROUPS_LANG") or get_system_language()
    set_language(lang)

    try:
        imported = import_roster(args.roster)
    except (OSError, ValueError) as error:
        print(f"{tr('Import failed:')} {error}", file=sys.stderr)
        return 1

    for warning in imported.warnings:
        logger.warning(warning)

    if not imported.data.learners:
        print(tr("No learners in roster."), file=sys.stderr)

    request = GroupingRequest(learners=imported.data.learners, config=config_from_args(args))
    result = run_grouping(request)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(format_result(result))

    if args.export:
        try:
            path = export_result(result, args.export)
        except (OSError, ValueError) as error:
            print(f"{tr('Export failed:')} {error}", file=sys.stderr)
            return 1
        print(f"{tr('Exported to:')} {path}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
