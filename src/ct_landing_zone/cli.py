#!/usr/bin/env python3
"""Control Tower Landing Zone - Main Entry Point.

Synthesizes the CloudFormation template for an AWS Control Tower landing
zone and its prerequisites from a YAML configuration file.
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from . import __version__
from .control_tower.orchestrator import LandingZoneAssembler
from .core.aws_client import AWSClientManager
from .core.config import Configuration, ConfigurationError
from .core.exceptions import LandingZoneError
from .core.graph import ResourceGraph
from .core.request import ProvisioningRequest
from .core.validator import RequestValidator, ValidationStatus

logger = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    ValidationStatus.PASSED: "✅",
    ValidationStatus.FAILED: "❌",
    ValidationStatus.WARNING: "⚠️",
    ValidationStatus.SKIPPED: "⏭️",
}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="ct-landing-zone",
        description="Control Tower landing zone template synthesizer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Auto-detect config.yaml, print YAML template
  %(prog)s config.yaml -o lz.yaml       # Write template to a file
  %(prog)s --format json                # Render JSON instead of YAML
  %(prog)s --validate-only              # Only validate the configuration
  %(prog)s --resolve-environment        # Use account/partition of current credentials
        """,
    )

    parser.add_argument(
        "config_file",
        nargs="?",
        help="Path to configuration file (default: auto-detect config.yaml)",
    )
    parser.add_argument(
        "-o", "--output", help="Write the template to this file instead of stdout"
    )
    parser.add_argument(
        "--format", choices=["yaml", "json"], default="yaml", help="Template format"
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Only validate the configuration, do not synthesize",
    )
    parser.add_argument(
        "--resolve-environment",
        action="store_true",
        help="Resolve account, region and partition from AWS credentials",
    )
    parser.add_argument(
        "--profile", help="AWS profile name to use with --resolve-environment"
    )
    parser.add_argument(
        "--region", help="AWS home region (overrides configuration file)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Control Tower Landing Zone v{__version__}",
    )

    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def report_validation(request: ProvisioningRequest) -> bool:
    """Run pre-flight validation and print the results to stderr.

    Returns:
        True if the request can be assembled
    """
    validator = RequestValidator(request)
    results = validator.validate_all()

    for result in results:
        status_symbol = STATUS_SYMBOLS.get(result.status, "❓")
        print(f"{status_symbol} {result.validator_name}: {result.message}", file=sys.stderr)

        if result.remediation_steps:
            print("   Remediation steps:", file=sys.stderr)
            for step in result.remediation_steps:
                print(f"   • {step}", file=sys.stderr)

    return validator.is_ready_for_synthesis(results)


def synthesize(request: ProvisioningRequest, graph: ResourceGraph, output_format: str) -> str:
    """Assemble the landing zone and render the template."""
    assembler = LandingZoneAssembler(request, graph)
    if output_format == "json":
        return assembler.graph.to_json() + "\n"
    return assembler.graph.to_yaml()


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    try:
        args = parse_arguments(argv)
        configure_logging(args.verbose)

        try:
            config = Configuration(args.config_file)
            if args.region:
                config.set_home_region(args.region)
            request = config.to_provisioning_request()
        except ConfigurationError as e:
            print(f"❌ Configuration error: {e}", file=sys.stderr)
            return 1

        print(f"📄 Using configuration file: {config.path}", file=sys.stderr)

        ready = report_validation(request)
        if args.validate_only:
            return 0 if ready else 1
        if not ready:
            print("❌ Cannot synthesize due to validation failures.", file=sys.stderr)
            return 1

        if args.resolve_environment:
            try:
                aws_client = AWSClientManager(
                    profile_name=args.profile or config.get_profile_name(),
                    region_name=config.get_home_region(),
                )
                environment = aws_client.resolve_environment()
            except (BotoCoreError, ClientError) as e:
                print(f"❌ AWS environment resolution failed: {e}", file=sys.stderr)
                return 1
        else:
            environment = config.get_environment()
        logger.debug(f"Synthesizing for {environment}")

        template = synthesize(request, ResourceGraph(environment), args.format)

        if args.output:
            try:
                Path(args.output).write_text(template, encoding="utf-8")
            except OSError as e:
                print(f"❌ Unable to write template: {e}", file=sys.stderr)
                return 1
            print(f"✅ Template written to {args.output}", file=sys.stderr)
        else:
            sys.stdout.write(template)

        return 0

    except KeyboardInterrupt:
        print("\n\n👋 Operation cancelled by user.", file=sys.stderr)
        return 130

    except LandingZoneError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
