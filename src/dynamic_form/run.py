# run.py
# Entry point. Config and wiring only, no logic lives here.
#
#   dynamic-form show     form.json [--values values.json]
#   dynamic-form validate form.json values.json
#   dynamic-form submit   form.json values.json
#
# Exit codes: 0 ok, 1 invalid input or undecodable form, 2 configuration error.

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.logging import RichHandler

from dynamic_form import display
from dynamic_form.config import Settings
from dynamic_form.decoder import decode
from dynamic_form.errors import BackendConfigError, DecodeError, FormConfigError
from dynamic_form.models import Instance
from dynamic_form.registry import REGISTRY
from dynamic_form.submission import submit
from dynamic_form.validation import validate

logger = logging.getLogger("dynamic_form")


def _configure(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=display.console, show_path=False)],
    )
    loaded = REGISTRY.load_modules(settings.backend_modules)
    if loaded:
        logger.info("Registered backend modules: %s", ", ".join(loaded))


def _load_form(path: str) -> Instance:
    return decode(Path(path).read_bytes())


def _load_values(path: str | None) -> dict[str, Any]:
    if path is None:
        return {}
    values = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(values, dict):
        raise ValueError(f"{path} must contain a JSON object of field values.")
    return values


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dynamic-form",
        description="Decode, validate and submit data-described forms.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Draw the form's visible structure.")
    show.add_argument("form", help="Path to the form description (JSON).")
    show.add_argument("--values", help="Optional JSON values used for visibility.")

    for name, help_text in (
        ("validate", "Validate values against the form."),
        ("submit", "Validate values and hand them to the form's backend."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("form", help="Path to the form description (JSON).")
        cmd.add_argument("values", help="Path to the submitted values (JSON object).")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        _configure(Settings.from_env())
        instance = _load_form(args.form)
    except (DecodeError, OSError) as exc:
        display.decode_failed(args.form, str(exc))
        return 1
    except (FormConfigError, ImportError, ValidationError) as exc:
        display.config_failed(str(exc))
        return 2

    try:
        values = _load_values(getattr(args, "values", None))
    except (OSError, ValueError) as exc:
        display.config_failed(f"Could not read values: {exc}")
        return 1

    if args.command == "show":
        display.instance_tree(instance, values)
        return 0

    if args.command == "validate":
        display.instance_tree(instance, values)
        changes = validate(instance, values)
        display.changes_report(instance, changes)
        return 0 if changes.valid else 1

    try:
        submission = submit(instance, values)
    except BackendConfigError as exc:
        display.config_failed(str(exc))
        return 2

    display.changes_report(instance, submission.changes)
    display.submission_result(submission)
    return 0 if submission.ok else 1


if __name__ == "__main__":
    sys.exit(main())
