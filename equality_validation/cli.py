"""
Publish the package configuration and translations into an application.

Usage examples:
    equality-validation-publish --base-path /srv/app
    equality-validation-publish --base-path /srv/app --tag equality-validation-lang --force
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from equality_validation.config.settings import ConfigurationError
from equality_validation.foundation import Application, publish
from equality_validation.provider import CONFIG_TAG, LANG_TAG, EqualityValidationServiceProvider

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Publish equality-validation configuration and language files."
    )
    parser.add_argument(
        "--base-path",
        default=".",
        help="Application root holding config/ and lang/ (default: current directory).",
    )
    parser.add_argument(
        "--tag",
        choices=(CONFIG_TAG, LANG_TAG),
        help="Publish only this resource group (default: all groups).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite files that already exist.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        app = Application(args.base_path, running_in_console=True)
        app.register(EqualityValidationServiceProvider)
        written: List[str] = publish(app, tag=args.tag, force=args.force)
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except OSError as e:
        logger.error(f"Failed to publish resources: {e}")
        return 1

    if not written:
        print("Nothing to publish (files already exist; use --force to overwrite).")
    for path in written:
        print(f"Published {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
