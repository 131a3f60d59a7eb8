"""Listing Wizard - run a questionnaire flow in the terminal

Usage:
    python -m listing_wizard <flow> [options]

Examples:
    # Create an account, then a listing
    python -m listing_wizard onboarding
    python -m listing_wizard listing_creation

    # Fill in one section only, ignoring any saved draft
    python -m listing_wizard listing_creation --section financial_info --fresh
"""

import argparse
import logging
import os
import sys

import yaml

from .engine import ConfigurationError, RealActionRunner, SpecLoader, WizardEngine


def configure_logging(verbose: bool = False):
    """Configure logging for the wizard.

    Log records go to stderr so prompts and the final answers stay readable.

    Args:
        verbose: If True, log at DEBUG instead of WARNING
    """
    level = logging.DEBUG if verbose else logging.WARNING

    # Clear existing handlers
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def main(argv=None):
    loader = SpecLoader()
    parser = argparse.ArgumentParser(
        prog="listing_wizard",
        description="Answer the questions needed to create a real-estate listing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
While answering:
  back   return to the previous question
  exit   save a draft and leave; run the same command again to resume
        """,
    )
    parser.add_argument("flow", choices=loader.list_flows(), help="Flow to run")
    parser.add_argument("--section", choices=loader.list_sections(), help="Run a single section of the flow")
    parser.add_argument("--drafts-dir", help="Directory for saved drafts (default: $LISTING_WIZARD_DRAFTS_DIR or .drafts)")
    parser.add_argument("--fresh", action="store_true", help="Ignore saved drafts and start over")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")

    args = parser.parse_args(argv)
    if args.section:
        flow_sections = [target.section for target in loader.load_flow(args.flow).targets]
        if args.section not in flow_sections:
            parser.error(
                f"section '{args.section}' is not part of flow '{args.flow}' "
                f"(choose from: {', '.join(flow_sections)})"
            )
    verbose = args.verbose or bool(os.environ.get('LISTING_WIZARD_VERBOSE'))
    configure_logging(verbose)

    runner = RealActionRunner(drafts_dir=args.drafts_dir, verbose=verbose)
    engine = WizardEngine(runner)

    try:
        if args.section:
            answers = engine.execute_section(
                args.section, draft_id=f"{args.flow}.{args.section}", resume=not args.fresh
            )
        else:
            answers = engine.execute_flow(args.flow, resume=not args.fresh)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\nStopped. Answers up to the last completed question are saved as a draft.")
        return 1

    if answers is None:
        return 1

    print(yaml.safe_dump(answers, sort_keys=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
