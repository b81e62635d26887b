"""Command-line entry point for the kh tool."""

from __future__ import annotations

import argparse
import os
import sys

from khstate.scaffold import DEFAULT_ENDPOINT, DEFAULT_MODULE, ScaffoldError, scaffold_terraform_project


def _add_init_options(parser):
    parser.add_argument("-n", "--name", required=True, help="Human-friendly project name (required)")
    parser.add_argument(
        "-e", "--env", required=True, help="Environment (e.g., dev, staging, prod) (required)"
    )
    parser.add_argument("-m", "--module", default=DEFAULT_MODULE, help="Module/component name")
    parser.add_argument("-d", "--dir", default=".", help="Base directory to scaffold into")
    parser.add_argument(
        "--endpoint",
        default="",
        help=f"KeyHarbour API endpoint (defaults to KH_ENDPOINT or {DEFAULT_ENDPOINT})",
    )
    parser.add_argument("--org", default="", help="KeyHarbour organization (defaults to KH_ORG)")
    parser.add_argument(
        "--kh-project", default="", help="KeyHarbour project (defaults to KH_PROJECT)"
    )
    parser.add_argument("-f", "--force", action="store_true", help="Overwrite existing files")
    parser.add_argument("--backend", default="http", help="Backend type: http|cloud")
    parser.add_argument(
        "--tfc-org",
        default="",
        help="Terraform Cloud organization (defaults to TF_CLOUD_ORGANIZATION)",
    )
    parser.add_argument(
        "--tfc-workspace",
        default="",
        help="Terraform Cloud workspace name (defaults to <name>-<module>-<env> or TF_WORKSPACE)",
    )
    parser.set_defaults(handler=_run_init)


def build_parser():
    """Build the argument parser for the ``kh`` command."""
    parser = argparse.ArgumentParser(prog="kh", description="KeyHarbour command-line tool.")
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    init = commands.add_parser("init", help="Initialize resources")
    init_commands = init.add_subparsers(dest="init_command", metavar="<command>")
    _add_init_options(
        init_commands.add_parser(
            "project",
            help="Scaffold a minimal Terraform project configured for KeyHarbour backend",
        )
    )

    tf = commands.add_parser("tf", help="Terraform helpers")
    tf_commands = tf.add_subparsers(dest="tf_command", metavar="<command>")
    _add_init_options(
        tf_commands.add_parser("init", help="Scaffold a Terraform project configured for KeyHarbour")
    )
    return parser


def _run_init(args):
    endpoint = args.endpoint or os.environ.get("KH_ENDPOINT") or DEFAULT_ENDPOINT
    tfc_org = args.tfc_org or os.environ.get("TF_CLOUD_ORGANIZATION", "")
    tfc_workspace = args.tfc_workspace or os.environ.get("TF_WORKSPACE", "")
    target = scaffold_terraform_project(
        args.dir,
        args.name,
        args.env,
        args.module,
        endpoint,
        args.force,
        args.backend,
        tfc_org,
        tfc_workspace,
    )
    print(f"Scaffolded Terraform project at {target}")
    return 0


def main(argv=None):
    """Run the command line and return the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0
    try:
        return handler(args)
    except (ScaffoldError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())