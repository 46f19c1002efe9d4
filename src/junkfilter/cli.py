# =============================================================================
# Junkfilter Command Line Interface
# =============================================================================
# Front end for training, checking and evaluating a junk filter:
#
#   junkfilter train hamdir spamdir           Train a new filter and save it
#   junkfilter train --sent-dir sent ham spam Also train sent mail as ham
#   junkfilter check message.eml              Print the spam probability
#   junkfilter test hamdir spamdir            Report how a trained filter does
#   junkfilter analyze hamdir spamdir         Train on part, test on the rest
#   junkfilter play hamdir spamdir            Replay by date, learning online
#   junkfilter config                         Write the effective settings
#
# Settings come from the config file (see junkfilter.config), with command
# line flags taking precedence.
# =============================================================================

import argparse
import logging
import sys
from pathlib import Path

from junkfilter import __version__, __app_name__
from junkfilter.config import Config, ConfigError, print_paths
from junkfilter.errors import JunkError
from junkfilter.junk import Params, new_filter, open_filter
from junkfilter.junk.evaluate import EvaluationReport, analyze, classify_dirs, list_dir, play

logger = logging.getLogger(__name__)


# =============================================================================
# Argument Parsing
# =============================================================================

def _filter_options() -> argparse.ArgumentParser:
    """Options shared by all filter commands. Defaults of None mean 'from config'."""
    parent = argparse.ArgumentParser(add_help=False)

    group = parent.add_argument_group("classifier parameters")
    group.add_argument(
        "--one-grams",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="use 1-grams, i.e. single words, for scoring (default: off)",
    )
    group.add_argument(
        "--two-grams",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="use 2-grams, i.e. word pairs, for scoring (default: on)",
    )
    group.add_argument(
        "--three-grams",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="use 3-grams, i.e. word triplets, for scoring (default: off)",
    )
    group.add_argument(
        "--max-power",
        type=float,
        help="maximum word power, e.g. 0.05 means min 0.05/max 0.95 (default: 0.05)",
    )
    group.add_argument(
        "--ignore-words",
        type=float,
        help="ignore words with ham/spaminess within this distance from 0.5 (default: 0.1)",
    )
    group.add_argument(
        "--top-words",
        type=int,
        help="number of top spam and number of top ham words from a message to use (default: 10)",
    )
    group.add_argument(
        "--rare-words",
        type=int,
        help="words seen fewer times than this during training are skipped for scoring (default: 1)",
    )

    group = parent.add_argument_group("evaluation")
    group.add_argument(
        "--spam-threshold",
        type=float,
        help="probability above which a message is seen as spam (default: 0.95)",
    )
    group.add_argument(
        "--train-ratio",
        type=float,
        help="part of the messages used for training versus testing, analyze only (default: 0.5)",
    )
    group.add_argument(
        "--sent-dir",
        type=Path,
        help="directory with sent messages, trained as ham",
    )
    group.add_argument(
        "--seed",
        action="store_true",
        help="seed the shuffle from the current time instead of a fixed value",
    )

    group = parent.add_argument_group("files")
    group.add_argument(
        "--dbpath",
        type=Path,
        help="word store file (default: from config, or XDG data location)",
    )
    group.add_argument(
        "--bloompath",
        type=Path,
        help="rarity filter file (default: from config, or XDG data location)",
    )

    parent.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging, including per-word scores",
    )
    return parent


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="Junkfilter: a trainable statistical junk filter for email",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--paths",
        action="store_true",
        help="Print configuration paths and exit",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: XDG config location)",
    )

    options = _filter_options()
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    cmd = commands.add_parser(
        "train",
        parents=[options],
        help="train a new filter with messages from hamdir and spamdir",
    )
    cmd.add_argument("hamdir", type=Path)
    cmd.add_argument("spamdir", type=Path)
    cmd.set_defaults(func=cmd_train)

    cmd = commands.add_parser(
        "check",
        parents=[options],
        help="print the spam probability of a message, from 0 to 1",
    )
    cmd.add_argument("mailfile", type=Path)
    cmd.set_defaults(func=cmd_check)

    cmd = commands.add_parser(
        "test",
        parents=[options],
        help="classify a ham and a spam directory and report the success ratio",
    )
    cmd.add_argument("hamdir", type=Path)
    cmd.add_argument("spamdir", type=Path)
    cmd.set_defaults(func=cmd_test)

    cmd = commands.add_parser(
        "analyze",
        parents=[options],
        help="shuffle ham and spam messages, train on part and test on the remainder",
    )
    cmd.add_argument("hamdir", type=Path)
    cmd.add_argument("spamdir", type=Path)
    cmd.set_defaults(func=cmd_analyze)

    cmd = commands.add_parser(
        "play",
        parents=[options],
        help="replay messages by date, classifying and then training each one",
    )
    cmd.add_argument("hamdir", type=Path)
    cmd.add_argument("spamdir", type=Path)
    cmd.set_defaults(func=cmd_play)

    cmd = commands.add_parser(
        "config",
        parents=[options],
        help="write the effective settings to the config file",
    )
    cmd.set_defaults(func=cmd_config)

    return parser


def effective_config(args: argparse.Namespace) -> Config:
    """
    Load the config file and apply command line overrides.

    Raises:
        ConfigError: If the config file is invalid.
        ValueError: If the resulting parameters are out of range.
    """
    config = Config.load(args.config)

    overrides = {
        name: getattr(args, name)
        for name in (
            "one_grams", "two_grams", "three_grams",
            "max_power", "ignore_words", "top_words", "rare_words",
        )
        if getattr(args, name, None) is not None
    }
    if overrides:
        params = config.params.to_dict()
        params.update(overrides)
        config.params = Params(**params)

    if getattr(args, "spam_threshold", None) is not None:
        config.evaluation.spam_threshold = args.spam_threshold
    if getattr(args, "train_ratio", None) is not None:
        if not 0.0 <= args.train_ratio <= 1.0:
            raise ValueError(f"train ratio must be in [0, 1], got {args.train_ratio}")
        config.evaluation.train_ratio = args.train_ratio
    if getattr(args, "dbpath", None) is not None:
        config.paths.database = str(args.dbpath)
    if getattr(args, "bloompath", None) is not None:
        config.paths.bloom = str(args.bloompath)

    return config


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# =============================================================================
# Commands
# =============================================================================

def print_report(report: EvaluationReport) -> None:
    """Print misclassified messages and the summary ratios."""
    for miss in report.misclassified:
        kind = "ham" if miss.ham else "spam"
        print(f"{kind} {str(miss.path)!r}: {miss.probability:.4f}")
    print(f"total ham, ok {report.ham_ok}, bad {report.ham_bad}")
    print(f"total spam, ok {report.spam_ok}, bad {report.spam_bad}")
    print(f"specificity (true negatives, hams identified): {report.specificity:.6f}")
    print(f"sensitivity (true positives, spams identified): {report.sensitivity:.6f}")
    print(f"accuracy: {report.accuracy:.6f}")


def cmd_train(args: argparse.Namespace, config: Config) -> int:
    """Train a new filter from a ham and a spam directory."""
    ham_files = list_dir(args.hamdir)
    spam_files = list_dir(args.spamdir)
    sent_files = list_dir(args.sent_dir) if args.sent_dir else []

    with new_filter(config.params, config.database_path(), config.bloom_path()) as f:
        result = f.train_dirs(args.hamdir, args.sent_dir, args.spamdir, ham_files, sent_files, spam_files)

    print(
        f"trained, nham {result.hams}, nsent {result.sent}, nspam {result.spams}, "
        f"malformed {result.malformed}"
    )
    return 0


def cmd_check(args: argparse.Namespace, config: Config) -> int:
    """Print the spam probability of a single message."""
    with open_filter(config.params, config.database_path(), config.bloom_path()) as f:
        try:
            result = f.classify_message_path(args.mailfile)
        except OSError as e:
            logger.error(f"Reading message {args.mailfile}: {e}")
            return 1

    print(f"{result.probability:.6f}")
    return 0


def cmd_test(args: argparse.Namespace, config: Config) -> int:
    """Classify labeled directories with a trained filter."""
    with open_filter(config.params, config.database_path(), config.bloom_path()) as f:
        report = classify_dirs(f, args.hamdir, args.spamdir, config.evaluation.spam_threshold)

    if report.malformed:
        print(f"malformed {report.malformed}")
    print_report(report)
    return 0


def cmd_analyze(args: argparse.Namespace, config: Config) -> int:
    """Train on part of a labeled corpus, test on the remainder."""
    with new_filter(config.params, config.database_path(), config.bloom_path()) as f:
        result = analyze(
            f,
            args.hamdir,
            args.spamdir,
            sent_dir=args.sent_dir,
            train_ratio=config.evaluation.train_ratio,
            threshold=config.evaluation.spam_threshold,
            seed=args.seed,
        )

    training = result.training
    print(f"training done, nham {training.hams}, nsent {training.sent}, nspam {training.spams}")
    print(f"malformed, training {training.malformed}, testing {result.report.malformed}")
    print_report(result.report)
    return 0


def cmd_play(args: argparse.Namespace, config: Config) -> int:
    """Replay messages in order of arrival."""
    with new_filter(config.params, config.database_path(), config.bloom_path()) as f:
        result = play(
            f,
            args.hamdir,
            args.spamdir,
            sent_dir=args.sent_dir,
            threshold=config.evaluation.spam_threshold,
        )

    print(
        f"completed, nham {result.hams}, nsent {result.sent}, nspam {result.spams}, "
        f"nbad {result.bad}, nwithoutdate {result.undated}"
    )
    print_report(result.report)
    return 0


def cmd_config(args: argparse.Namespace, config: Config) -> int:
    """Write the effective configuration."""
    path = config.save(args.config)
    print(f"wrote {path}")
    return 0


# =============================================================================
# CLI Entry Point
# =============================================================================

def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for Junkfilter.

    This function:
        1. Parses command-line arguments
        2. Handles special commands (--paths, --version)
        3. Loads configuration and applies overrides
        4. Runs the requested command

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(getattr(args, "debug", False))

    try:
        config = effective_config(args)
    except ConfigError as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        parser.error(str(e))

    # Handle --paths flag
    if args.paths:
        print_paths(config)
        return 0

    if args.command is None:
        parser.print_help()
        return 2

    try:
        return args.func(args, config)
    except JunkError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
