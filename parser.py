"""
Spreadsheet template learner — CLI entry point.

Usage:
    python parser.py learn <excel_file> [-o <draft.json>]
    python parser.py confirm <draft.json> --store <dir>
    python parser.py apply <template_id> <values.json> --store <dir> [-o <out.xlsx>]
    python parser.py match <excel_file> --store <dir>

``learn`` infers the layout of the first visible worksheet and writes the
draft definition plus the detected fields as JSON for review.  ``confirm``
stores a reviewed definition, ``apply`` fills a stored template with values
and ``match`` lists stored templates whose fingerprint matches an upload.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import dotenv

from errors import TemplateLearningError
from pipeline import apply_definition, confirm_definition, learn_template, match_template
from templates.store import JsonTemplateStore

dotenv.load_dotenv()

logger = logging.getLogger(__name__)

_DEFAULT_STORE = os.getenv("TEMPLATE_STORE_DIR", "template_store")


# -------------------------------------------------------------------
# Commands
# -------------------------------------------------------------------


def _cmd_learn(args: argparse.Namespace) -> None:
    excel_path = args.excel_file
    if not os.path.isfile(excel_path):
        logger.error("File not found: %s", excel_path)
        sys.exit(1)

    output_path = args.output or f"{Path(excel_path).stem}_draft.json"
    result = learn_template(excel_path, file_name=Path(excel_path).name)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(result.model_dump_json(indent=2, by_alias=True))
    logger.info("Draft written to %s", output_path)


def _cmd_confirm(args: argparse.Namespace) -> None:
    raw = Path(args.definition).read_text(encoding="utf-8")
    data = json.loads(raw)
    # Accept either a bare definition or the full ``learn`` output.
    if isinstance(data, dict) and "draftDefinition" in data:
        data = data["draftDefinition"]

    stored = confirm_definition(data, JsonTemplateStore(args.store))
    print(json.dumps({"ok": True, "id": stored.id, "version": stored.version}))


def _cmd_apply(args: argparse.Namespace) -> None:
    values = json.loads(Path(args.values).read_text(encoding="utf-8"))
    if not isinstance(values, dict):
        logger.error("Values file must contain a JSON object")
        sys.exit(1)

    out = apply_definition(
        args.template_id,
        values,
        JsonTemplateStore(args.store),
        output=args.output,
        version=args.version,
    )
    logger.info("Workbook written to %s", out)


def _cmd_match(args: argparse.Namespace) -> None:
    candidates = match_template(args.excel_file, JsonTemplateStore(args.store), args.threshold)
    print(
        json.dumps(
            [
                {
                    "id": c.definition.id,
                    "version": c.definition.version,
                    "clientKey": c.definition.client_key,
                    "score": c.score,
                }
                for c in candidates
            ],
            indent=2,
        )
    )


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Learn reusable datasheet templates from Excel workbooks.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    learn = sub.add_parser("learn", help="Infer a draft template from a workbook")
    learn.add_argument("excel_file", help="Path to the .xlsx / .xls file")
    learn.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output JSON file path (default: <input_name>_draft.json)",
    )
    learn.set_defaults(func=_cmd_learn)

    confirm = sub.add_parser("confirm", help="Store a reviewed definition")
    confirm.add_argument("definition", help="Definition JSON (or learn output)")
    confirm.add_argument("--store", default=_DEFAULT_STORE, help="Template store directory")
    confirm.set_defaults(func=_cmd_confirm)

    apply = sub.add_parser("apply", help="Fill a stored template with values")
    apply.add_argument("template_id")
    apply.add_argument("values", help="JSON object mapping field key (or label) to value")
    apply.add_argument("--store", default=_DEFAULT_STORE, help="Template store directory")
    apply.add_argument("--version", type=int, default=None, help="Template version (default: latest)")
    apply.add_argument("-o", "--output", default=None, help="Output .xlsx path")
    apply.set_defaults(func=_cmd_apply)

    match = sub.add_parser("match", help="Find stored templates matching a workbook")
    match.add_argument("excel_file")
    match.add_argument("--store", default=_DEFAULT_STORE, help="Template store directory")
    match.add_argument("--threshold", type=float, default=None)
    match.set_defaults(func=_cmd_match)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    args = build_arg_parser().parse_args(argv)
    try:
        args.func(args)
    except TemplateLearningError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
