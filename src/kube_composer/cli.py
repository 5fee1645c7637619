"""Command line interface for kube-composer."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from rich.console import Console
from rich.table import Table

from .config import ConfigLoader, ConfigValidator, GlobalConfig, load_config_from_args
from .constants import DOCUMENT_SEPARATOR
from .models import ProjectSettings
from .serializer import check_parseable
from .snapshot import load_workspace, save_workspace
from .types import ComposerError, GenerationResult
from .validation import count_resources, validate_workspace
from .workspace import Workspace

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="kube-composer",
        description="Generate Kubernetes YAML bundles from a saved working set",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Render the working set as a YAML bundle")
    generate.add_argument("state", help="Working-set state file (JSON or YAML)")
    destination = generate.add_mutually_exclusive_group()
    destination.add_argument(
        "-o", "--output",
        help="File to write the bundle to (default: stdout)",
    )
    destination.add_argument(
        "--output-dir",
        help="Directory to write the bundle to, using the generated download filename",
    )
    generate.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the output file if it already exists",
    )
    generate.add_argument(
        "--validate",
        dest="validate",
        action="store_true",
        default=None,
        help="Parse the generated bundle with PyYAML before writing it",
    )
    generate.add_argument(
        "--no-validate",
        dest="validate",
        action="store_false",
        help="Skip the parse check of the generated bundle",
    )

    summary = subparsers.add_parser("summary", help="Show how many resources the working set produces")
    summary.add_argument("state", help="Working-set state file (JSON or YAML)")

    validate = subparsers.add_parser("validate", help="List incomplete fields in the working set")
    validate.add_argument("state", help="Working-set state file (JSON or YAML)")

    init = subparsers.add_parser("init", help="Create a fresh working-set state file")
    init.add_argument("state", help="State file to create (.json, .yaml or .yml)")
    init.add_argument("--project", help="Project name for the new working set")
    init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the state file if it already exists",
    )

    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    return args


def _report_errors(title: str, errors: Sequence[str]) -> None:
    print(title, file=sys.stderr)
    for error in errors:
        print(f"  - {error}", file=sys.stderr)


def write_bundle(text: str, path: Path, force: bool = False) -> GenerationResult:
    """Write a generated bundle to ``path``."""
    if path.exists() and not force:
        return GenerationResult(
            success=False,
            output_path=str(path),
            document_count=0,
            size_bytes=0,
            errors=[f"Output file already exists: {path} (use --force to overwrite)"],
        )

    if not text.endswith("\n"):
        text += "\n"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        return GenerationResult(
            success=False,
            output_path=str(path),
            document_count=0,
            size_bytes=0,
            errors=[f"Failed to write {path}: {e}"],
        )

    document_count = sum(1 for line in text.splitlines() if line == DOCUMENT_SEPARATOR) + 1
    logger.info("Wrote %d document(s) to %s", document_count, path)
    return GenerationResult(
        success=True,
        output_path=str(path),
        document_count=document_count,
        size_bytes=len(text.encode("utf-8")),
        errors=[],
    )


def cmd_generate(args: argparse.Namespace, global_config: GlobalConfig) -> int:
    config = load_config_from_args(args)
    if args.validate is None:
        config.validate_output = global_config.validate_output

    errors = ConfigValidator().validate_generate_config(config)
    if errors:
        _report_errors("Generate configuration validation errors:", errors)
        return 1

    workspace = load_workspace(config.state_file)
    text = workspace.generate()

    if config.validate_output:
        check_parseable(text)

    if config.output_dir:
        output: Optional[Path] = Path(config.output_dir).expanduser() / workspace.download_filename()
    elif config.output:
        output = Path(config.output).expanduser()
    else:
        output = None

    if output is None:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return 0

    result = write_bundle(text, output, force=config.force)
    if not result["success"]:
        _report_errors("Generation failed:", result["errors"])
        return 1

    print(f"Bundle written to {result['output_path']} "
          f"({result['document_count']} documents, {result['size_bytes']} bytes)")
    return 0


def cmd_summary(args: argparse.Namespace, global_config: GlobalConfig) -> int:
    workspace = load_workspace(args.state)
    counts = count_resources(workspace)

    table = Table(title=f"Project: {workspace.settings.name}")
    table.add_column("Resource", style="cyan")
    table.add_column("Count", justify="right")
    rows = [
        ("Deployments", "deployments"),
        ("DaemonSets", "daemonsets"),
        ("Services", "services"),
        ("Ingresses", "ingresses"),
        ("Namespaces", "namespaces"),
        ("ConfigMaps", "configmaps"),
        ("Secrets", "secrets"),
        ("Jobs", "jobs"),
        ("CronJobs", "cronjobs"),
        ("Containers", "containers"),
    ]
    for label, key in rows:
        table.add_row(label, str(counts[key]))
    table.add_row("Total resources", str(counts["total"]), style="bold")

    Console().print(table)
    return 0


def cmd_validate(args: argparse.Namespace, global_config: GlobalConfig) -> int:
    workspace = load_workspace(args.state)
    issues = validate_workspace(workspace)
    if issues:
        _report_errors("Configuration issues:", issues)
        return 1
    print("Configuration valid")
    return 0


def cmd_init(args: argparse.Namespace, global_config: GlobalConfig) -> int:
    settings = ProjectSettings(
        name=args.project or global_config.default_project_name,
        global_labels=dict(global_config.default_global_labels),
    )
    workspace = Workspace(settings=settings)
    path = save_workspace(workspace, args.state, force=args.force)
    print(f"Initialised working set for project {settings.name} at {path}")
    return 0


COMMANDS: Dict[str, Callable[[argparse.Namespace, GlobalConfig], int]] = {
    "generate": cmd_generate,
    "summary": cmd_summary,
    "validate": cmd_validate,
    "init": cmd_init,
}


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the CLI."""
    args = None
    try:
        args = parse_args(argv)

        # Load configuration
        global_config = ConfigLoader().load_config(config_file=args.config)

        global_errors = ConfigValidator().validate_global_config(global_config)
        if global_errors:
            _report_errors("Configuration validation errors:", global_errors)
            sys.exit(1)

        exit_code = COMMANDS[args.command](args, global_config)
        if exit_code:
            sys.exit(exit_code)

    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        sys.exit(130)

    except ComposerError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args is not None and args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
