#!/usr/bin/env python3
"""patchregen CLI - regenerate patch artifacts in a destination repository

Usage:
    python -m patchregen regenerate --config workflow.yaml --destination-repo DIR
        [--origin-repo DIR] [--workdir DIR] [--regen-target ID] [--regen-baseline ID]
        [--regen-import-baseline] [--source-ref REF] [--push-branch NAME] [--verbose]

Exit codes: 0 success, 2 validation failure, 1 any other failure.
"""

import argparse
import logging
import sys
import uuid
from typing import List, Optional

from .config import get_workdir
from .destinations.local_git import LocalGitDestination
from .exceptions import RegenError, ValidationError
from .logging_config import configure_logging
from .models import StagingRole
from .origins.local_git import GitOriginImportRunner
from .regenerate import Regenerator
from .staging import StagingAreaManager
from .workflow_config import load_workflow_config

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_VALIDATION = 2


def run_regenerate(args) -> int:
    """Run one regeneration from parsed arguments."""
    run_id = f"regen-{uuid.uuid4().hex[:8]}"
    configure_logging(run_id=run_id, verbose=args.verbose)

    try:
        workflow = load_workflow_config(args.config)
        workdir = get_workdir(args.workdir, run_id)
        logger.info(f"[CLI] Staging under {workdir}")

        destination = LocalGitDestination(args.destination_repo, push_branch=args.push_branch)

        runner = None
        if args.origin_repo:
            runner = GitOriginImportRunner(
                args.origin_repo,
                StagingAreaManager(workdir).path_for(StagingRole.PREVIOUS),
                destination,
                origin_files=workflow.origin_files.to_glob(),
                destination_prefix=workflow.destination_prefix,
            )

        request = workflow.to_request(
            workdir,
            regen_target=args.regen_target,
            regen_baseline=args.regen_baseline,
            source_ref=args.source_ref,
            force_import_baseline=args.regen_import_baseline,
            verbose=args.verbose,
        )
        result = Regenerator(destination, runner).regenerate(request)
    except ValidationError as e:
        logger.debug("Validation failure", exc_info=True)
        print(f"patchregen: {e}", file=sys.stderr)
        return EXIT_VALIDATION
    except RegenError as e:
        logger.error(f"[CLI] Regeneration failed: {e}", exc_info=True)
        print(f"patchregen: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(
        f"Regenerated {len(result.written_artifacts)} artifact(s) using the "
        f"{result.strategy.value} baseline; pushed {result.push_result}"
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patchregen",
        description="patchregen CLI - Regenerate patch artifacts after a code migration",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    regen_parser = subparsers.add_parser(
        "regenerate",
        help="Recompute autopatch files and/or the snapshot patch and push them",
    )
    regen_parser.add_argument("--config", required=True, help="Workflow YAML file")
    regen_parser.add_argument("--destination-repo", required=True, help="Destination git repository")
    regen_parser.add_argument("--origin-repo", help="Origin git repository (needed for the import baseline)")
    regen_parser.add_argument(
        "--workdir", help="Root for per-run staging directories (must be outside any git repository)"
    )
    regen_parser.add_argument("--regen-target", help="Destination revision holding the patched content")
    regen_parser.add_argument("--regen-baseline", help="Destination revision holding the previous patches")
    regen_parser.add_argument(
        "--regen-import-baseline",
        action="store_true",
        help="Rebuild the pristine tree by replaying the import instead of reversing patches",
    )
    regen_parser.add_argument("--source-ref", help="Origin reference to import (default HEAD)")
    regen_parser.add_argument("--push-branch", help="Branch receiving the result (default regen/<workflow>)")
    regen_parser.add_argument("--verbose", action="store_true", help="Log generated patches and debug output")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    if args.command == "regenerate":
        return run_regenerate(args)

    print(f"Unknown command: {args.command}")
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
