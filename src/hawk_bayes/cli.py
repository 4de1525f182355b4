# =============================================================================
# Hawk-Bayes Command Line
# =============================================================================
# Commands:
#   learn     Learn files as "probable" or "improbable"
#   unlearn   Undo a previous learn of the same files
#   classify  Print the probability of each file
#   contexts  List contexts and their document counts
#   stats     Show counters of the selected context
#   paths     Print configuration and data paths
#
# Files are selected with glob patterns and read as UTF-8; each file is
# one document.
# =============================================================================

import argparse
import asyncio
import glob
import logging
import sys
from pathlib import Path

from hawk_bayes import __app_name__, __version__
from hawk_bayes.classifier import Classifier
from hawk_bayes.config import Config, ConfigError, print_paths
from hawk_bayes.core import DEFAULT_CONTEXT, Category, HawkBayesError, LookupKind
from hawk_bayes.storage import Database, TokenStore


logger = logging.getLogger(__name__)


# =============================================================================
# Argument Parsing
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Returns:
        Parser with one subcommand per operation.
    """
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="Hawk-Bayes: an adaptive two-class text classifier",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: XDG config location)",
    )

    parser.add_argument(
        "--db",
        help="Path to the token database, or :memory: (overrides config)",
    )

    parser.add_argument(
        "--context",
        default=DEFAULT_CONTEXT,
        help=f"Learning context to use (default: {DEFAULT_CONTEXT})",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("learn", "Learn text files"),
        ("unlearn", "Unlearn previously learned text files"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument(
            "-c", "--category",
            required=True,
            help="Category: probable or improbable (ham/spam also accepted)",
        )
        sub.add_argument("patterns", nargs="+", help="Glob patterns of files")

    classify = commands.add_parser("classify", help="Classify text files")
    classify.add_argument(
        "--evidence",
        action="store_true",
        help="Also print the tokens that decided each result",
    )
    classify.add_argument("patterns", nargs="+", help="Glob patterns of files")

    commands.add_parser("contexts", help="List learning contexts")
    commands.add_parser("stats", help="Show counters of the selected context")
    commands.add_parser("paths", help="Print configuration paths and exit")

    return parser


def find_files(patterns: list[str]) -> list[Path]:
    """
    Expand glob patterns into a sorted, de-duplicated list of files.

    Raises:
        FileNotFoundError: If a pattern matches no file.
    """
    files: dict[Path, None] = {}
    for pattern in patterns:
        matches = sorted(glob.glob(pattern, recursive=True))
        matched = [Path(m) for m in matches if Path(m).is_file()]
        if not matched:
            raise FileNotFoundError(f"No files match '{pattern}'")
        files.update(dict.fromkeys(matched))
    return list(files)


# =============================================================================
# Commands
# =============================================================================

async def _train(classifier: Classifier, args: argparse.Namespace) -> int:
    category = Category.parse(args.category)
    unlearn = args.command == "unlearn"
    failures = 0

    for path in find_files(args.patterns):
        text = path.read_text(encoding="utf-8")
        if unlearn:
            result = await classifier.unlearn(text, category, args.context)
        else:
            result = await classifier.learn(text, category, args.context)

        if not result.success:
            failures += 1
            print(f"{path}: failed ({result.error})", file=sys.stderr)
        elif result.failed:
            failures += 1
            print(f"{path}: {len(result.failed)} token(s) not stored", file=sys.stderr)
        else:
            logger.debug(f"{args.command} {path}: {len(result.tokens)} tokens")

    verb = "Unlearning" if unlearn else "Learning"
    if failures:
        print(f"{verb} finished with {failures} failure(s).", file=sys.stderr)
        return 1
    print(f"{verb} completed successfully.")
    return 0


async def _classify(classifier: Classifier, args: argparse.Namespace) -> int:
    for path in find_files(args.patterns):
        text = path.read_text(encoding="utf-8")
        if not args.evidence:
            probability = await classifier.classify(text, args.context)
            print(f"{path}: {probability:.6f}")
            continue

        result = await classifier.explain(text, args.context)
        print(f"{path}: {result.probability:.6f}")
        for item in result.relevant:
            via = f" via {item.matched}" if item.kind is LookupKind.DEGENERATED else ""
            print(f"    {item.token!r} x{item.count}: {item.affinity:.4f}{via}")
    return 0


async def _contexts(store: TokenStore) -> int:
    for name, aggregate in (await store.list_contexts()).items():
        print(
            f"{name}: {aggregate.positive_count} probable, "
            f"{aggregate.negative_count} improbable"
        )
    return 0


async def _stats(store: TokenStore, context: str) -> int:
    aggregate = await store.get_aggregate(context)
    if aggregate is None:
        print(f"Context '{context}' does not exist", file=sys.stderr)
        return 1

    print(f"Context:              {context}")
    print(f"Probable documents:   {aggregate.positive_count}")
    print(f"Improbable documents: {aggregate.negative_count}")
    print(f"Learn calls:          {aggregate.documents_learned}")
    print(f"Unlearn calls:        {aggregate.documents_unlearned}")
    print(f"Distinct tokens:      {await store.count_tokens(context)}")
    return 0


async def run(args: argparse.Namespace, config: Config) -> int:
    """
    Run a parsed command against the configured database.

    Returns:
        Exit code.
    """
    async with Database(config.database_path()) as db:
        store = TokenStore(db)

        if args.command in ("learn", "unlearn"):
            return await _train(Classifier(store, config), args)
        if args.command == "classify":
            return await _classify(Classifier(store, config), args)
        if args.command == "contexts":
            return await _contexts(store)
        return await _stats(store, args.context)


# =============================================================================
# CLI Entry Point
# =============================================================================

def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Hawk-Bayes.

    This function:
        1. Parses command-line arguments
        2. Handles special commands (paths, --version)
        3. Loads configuration
        4. Runs the command

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "paths":
        print_paths()
        return 0

    try:
        config = Config.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    if args.db:
        config.storage.db_path = args.db

    try:
        return asyncio.run(run(args, config))
    except (HawkBayesError, OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
