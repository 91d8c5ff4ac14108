"""manilint CLI - Command-line interface for linting and composing manifests.

This module provides the main CLI entrypoint, with one subcommand per
workflow: lint, order, compose, fix and baseline.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from manilint import __version__
from manilint.core.baseline import Baseline
from manilint.core.config import DEFAULT_CONFIG_PATH, get_config_list, get_config_value, load_config
from manilint.core.errors import ManifestParseError, OrderingError, PatchApplyError
from manilint.core.schema.violation import SEVERITY_RANK, Violation
from manilint.k8s.artifact import ManifestSet
from manilint.k8s.check_config import PROFILES, get_check_config
from manilint.k8s.checks import run_checks
from manilint.k8s.composer import compose
from manilint.k8s.fixer import fix, plan_fixes
from manilint.k8s.ordering import order_documents

logger = logging.getLogger(__name__)

DEFAULT_BASELINE_PATH = ".manilint-baseline.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manilint",
        description="manilint - Kubernetes manifest linter and composer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Lint every manifest below k8s/
  manilint lint k8s/

  # Fail on warnings too, machine-readable output
  manilint lint k8s/ --profile strict --format json

  # Only report findings that are not in the baseline
  manilint baseline k8s/
  manilint lint k8s/ --baseline .manilint-baseline.json

  # Print documents in apply order (or delete order)
  manilint order k8s/ --list
  manilint order k8s/ --reverse

  # Compose into one stream with a namespace and common labels
  manilint compose base/ extra.yaml --namespace shop --label team=payments --out all.yaml

  # Apply mechanical fixes (probes, requests, apiVersions)
  manilint fix k8s/ --out fixed/
  cat deploy.yaml | manilint fix - --dry-run

Note:
  Defaults are read from .manilint.json, e.g.
  {"lint": {"profile": "strict", "disable": ["probe.MISSING_LIVENESS"]}}
"""
    )
    parser.add_argument("--version", action="version", version=f"manilint {__version__}")
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "paths",
        nargs="+",
        help="Manifest files or directories (*.yaml, *.yml); '-' reads stdin"
    )
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    checked = argparse.ArgumentParser(add_help=False)
    checked.add_argument(
        "--profile",
        choices=sorted(PROFILES),
        help="Check profile (default: from config or 'default')"
    )
    checked.add_argument(
        "--disable",
        action="append",
        default=[],
        metavar="ID",
        help="Violation id or check name to skip (repeatable), e.g. probe.MISSING_LIVENESS"
    )

    # Lint command
    lint_parser = subparsers.add_parser(
        "lint",
        parents=[common, checked],
        help="Validate manifests"
    )
    lint_parser.add_argument(
        "--fail-on",
        choices=sorted(SEVERITY_RANK, key=SEVERITY_RANK.get),
        help="Lowest severity that fails the run (default: from profile)"
    )
    lint_parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )
    lint_parser.add_argument(
        "--baseline",
        help="Baseline file; violations recorded in it are not reported"
    )

    # Order command
    order_parser = subparsers.add_parser(
        "order",
        parents=[common],
        help="Print documents in dependency order"
    )
    order_parser.add_argument(
        "--reverse",
        action="store_true",
        help="Delete order instead of apply order"
    )
    order_parser.add_argument(
        "--list",
        action="store_true",
        help="Only list document references instead of emitting YAML"
    )
    order_parser.add_argument(
        "--out",
        help="Write output to file instead of stdout"
    )

    # Compose command
    compose_parser = subparsers.add_parser(
        "compose",
        parents=[common],
        help="Compose manifests into a single stream"
    )
    compose_parser.add_argument(
        "--namespace",
        help="Namespace for namespaced resources that do not set one"
    )
    compose_parser.add_argument(
        "--override-namespace",
        action="store_true",
        help="Also replace namespaces that are already set"
    )
    compose_parser.add_argument(
        "--label",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Label added to every object and pod template (repeatable)"
    )
    compose_parser.add_argument(
        "--annotation",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Annotation added to every object (repeatable)"
    )
    compose_parser.add_argument(
        "--no-order",
        action="store_true",
        help="Keep input order instead of dependency order"
    )
    compose_parser.add_argument(
        "--reverse",
        action="store_true",
        help="Emit delete order"
    )
    compose_parser.add_argument(
        "--annotate-source",
        action="store_true",
        help="Prefix each document with a '# Source:' comment"
    )
    compose_parser.add_argument(
        "--out",
        help="Write output to file instead of stdout"
    )

    # Fix command
    fix_parser = subparsers.add_parser(
        "fix",
        parents=[common, checked],
        help="Apply mechanical fixes"
    )
    target = fix_parser.add_mutually_exclusive_group()
    target.add_argument(
        "--out",
        help="Output directory for fixed manifests"
    )
    target.add_argument(
        "--in-place",
        action="store_true",
        help="Overwrite input files"
    )
    target.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned operations without writing anything"
    )
    fix_parser.add_argument(
        "--fail-on",
        choices=sorted(SEVERITY_RANK, key=SEVERITY_RANK.get),
        help="Lowest remaining severity that fails the run (default: from config or profile)"
    )
    fix_parser.add_argument(
        "--max-iters",
        type=int,
        default=None,
        help="Maximum fix rounds (default: from config or 3)"
    )

    # Baseline command
    baseline_parser = subparsers.add_parser(
        "baseline",
        parents=[common, checked],
        help="Record current violations as accepted"
    )
    baseline_parser.add_argument(
        "--file",
        help=f"Baseline file (default: from config or {DEFAULT_BASELINE_PATH})"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint for manilint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    config = load_config(args.config)

    commands = {
        "lint": cmd_lint,
        "order": cmd_order,
        "compose": cmd_compose,
        "fix": cmd_fix,
        "baseline": cmd_baseline,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args, config, parser)
    except (ManifestParseError, OrderingError, PatchApplyError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug("Command failed", exc_info=True)
        return 1


def _load(args) -> ManifestSet:
    manifests = ManifestSet.from_paths(args.paths)
    if not manifests.files:
        raise FileNotFoundError(f"No manifest files found in: {', '.join(args.paths)}")
    logger.info(f"Loaded {len(manifests.files)} file(s)")
    return manifests


def _profile(args, config: dict):
    name = args.profile or get_config_value(["lint", "profile"], default="default", config=config)
    return get_check_config(name)


def _disabled(args, config: dict) -> List[str]:
    return list(args.disable) + get_config_list(["lint", "disable"], config=config)


def _fail_on(args, config: dict, profile) -> str:
    fail_on = args.fail_on or get_config_value(["lint", "fail_on"], default=profile.fail_on, config=config)
    if fail_on not in SEVERITY_RANK:
        raise ValueError(f"Unknown severity for fail_on: {fail_on}")
    return fail_on


def _parse_pairs(values: List[str], option: str, parser: argparse.ArgumentParser) -> Dict[str, str]:
    pairs = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            parser.error(f"{option} expects KEY=VALUE, got {value!r}")
        pairs[key] = val
    return pairs


def _sort_key(v: Violation):
    return (v.source, v.line or 0, -SEVERITY_RANK.get(v.severity, 0), v.id)


def _write_or_print(text: str, out: Optional[str]) -> None:
    if out:
        Path(out).parent.mkdir(parents=True, exist_ok=True)
        Path(out).write_text(text, encoding="utf-8")
        print(f"Wrote {out}", file=sys.stderr)
    else:
        sys.stdout.write(text)


def format_violation(v: Violation) -> str:
    location = f"{v.source}:{v.line}" if v.line else v.source
    return f"{location}: {v.severity}: {v.id}: {v.message} [{v.resource}]"


def cmd_lint(args, config: dict, parser) -> int:
    """Handle lint command."""
    manifests = _load(args)
    profile = _profile(args, config)
    fail_on = _fail_on(args, config, profile)

    violations = run_checks(manifests, profile.get_checks(), _disabled(args, config))
    suppressed = 0
    if args.baseline:
        baseline = Baseline(args.baseline)
        remaining = baseline.filter(violations)
        suppressed = len(violations) - len(remaining)
        violations = remaining
    violations.sort(key=_sort_key)

    counts = {severity: 0 for severity in SEVERITY_RANK}
    for v in violations:
        counts[v.severity] = counts.get(v.severity, 0) + 1
    failed = any(v.is_at_least(fail_on) for v in violations)

    if args.format == "json":
        report = {
            "profile": profile.name,
            "fail_on": fail_on,
            "files": len(manifests.files),
            "documents": len(manifests.documents()),
            "summary": dict(counts, suppressed=suppressed),
            "passed": not failed,
            "violations": [v.to_dict() for v in violations],
        }
        print(json.dumps(report, indent=2, default=str))
    else:
        for v in violations:
            print(format_violation(v))
        summary = ", ".join(f"{counts[s]} {s}" for s in ("error", "warning", "info"))
        if suppressed:
            summary += f", {suppressed} suppressed by baseline"
        status = "FAILED" if failed else "OK"
        print(f"\n{status}: {len(manifests.files)} file(s) checked with profile '{profile.name}': {summary}")

    return 1 if failed else 0


def cmd_order(args, config: dict, parser) -> int:
    """Handle order command."""
    manifests = _load(args)
    if args.list:
        documents = order_documents(manifests.documents(), reverse=args.reverse)
        lines = [f"{doc.ref}\t{doc.location}" for doc in documents]
        _write_or_print("\n".join(lines) + "\n", args.out)
        return 0

    _write_or_print(compose(manifests, order=True, reverse=args.reverse), args.out)
    return 0


def cmd_compose(args, config: dict, parser) -> int:
    """Handle compose command."""
    manifests = _load(args)

    namespace = args.namespace or get_config_value(["compose", "namespace"], config=config)
    labels = dict(get_config_value(["compose", "labels"], default={}, config=config) or {})
    labels.update(_parse_pairs(args.label, "--label", parser))
    annotations = dict(get_config_value(["compose", "annotations"], default={}, config=config) or {})
    annotations.update(_parse_pairs(args.annotation, "--annotation", parser))

    output = compose(
        manifests,
        namespace=namespace,
        labels=labels,
        annotations=annotations,
        order=not args.no_order,
        reverse=args.reverse,
        annotate_source=args.annotate_source,
        override_namespace=args.override_namespace,
    )
    _write_or_print(output, args.out)
    return 0


def cmd_fix(args, config: dict, parser) -> int:
    """Handle fix command."""
    manifests = _load(args)
    profile = _profile(args, config)
    checks = profile.get_checks()
    disabled = _disabled(args, config)
    fail_on = _fail_on(args, config, profile)

    if args.dry_run:
        patch = plan_fixes(run_checks(manifests, checks, disabled))
        print(json.dumps(patch.to_dict(), indent=2, default=str))
        return 0

    if not args.out and not args.in_place:
        parser.error("fix requires --out DIR, --in-place or --dry-run")

    max_iters = args.max_iters
    if max_iters is None:
        max_iters = int(get_config_value(["fix", "max_iters"], default=3, config=config))

    fixed, metadata = fix(manifests, checks, disabled, max_iters=max_iters)

    print(f"Status: {metadata['status']}")
    print(f"Violations before: {metadata['initial']}")
    print(f"Operations applied: {len(metadata['applied'])}")
    for op in metadata["applied"]:
        target = op["args"].get("target") or {}
        name = target.get("name") or target.get("generateName")
        where = f" on {target.get('kind')}/{name}" if target else ""
        print(f"  - {op['op']}{where}")
    print(f"Remaining violations: {len(metadata['remaining'])}")
    for v in sorted(metadata["remaining"], key=_sort_key):
        print(f"  {format_violation(v)}")

    if metadata["applied"]:
        if args.in_place:
            for source, content in fixed.files.items():
                if content != manifests.files.get(source) and Path(source).is_file():
                    Path(source).write_text(content, encoding="utf-8")
                    print(f"Updated {source}")
        else:
            for path in fixed.write_to_dir(args.out):
                print(f"Wrote {path}")

    failed = any(v.is_at_least(fail_on) for v in metadata["remaining"])
    return 1 if failed else 0


def cmd_baseline(args, config: dict, parser) -> int:
    """Handle baseline command."""
    manifests = _load(args)
    profile = _profile(args, config)
    path = args.file or get_config_value(["baseline", "path"], default=DEFAULT_BASELINE_PATH, config=config)

    violations = run_checks(manifests, profile.get_checks(), _disabled(args, config))
    baseline = Baseline(path)
    added = baseline.record(violations)
    print(f"Baseline {path}: {len(baseline)} accepted violation(s), {added} new")
    return 0


if __name__ == "__main__":
    sys.exit(main())
