"""
Command-line entry point for the local categorization engine.

Usage:
    budgetlens classify "CB CARREFOUR REIMS" --amount -42.10
    budgetlens add-rule "CARREFOUR" custom-grocery --priority 150
    budgetlens reapply
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal
from uuid import UUID

from budgetlens.categorization.categorizer import CategorizerCache
from budgetlens.categorization.patterns import load_pattern_table
from budgetlens.config import settings
from budgetlens.core.errors import get_suggestion, get_user_message, is_retryable
from budgetlens.core.exceptions import CategorizationError
from budgetlens.core.logger import setup_logging
from budgetlens.db.session import init_db, make_engine, make_sessionmaker
from budgetlens.schemas.rule import RuleCreate, RuleRead
from budgetlens.services.categorization import CategorizationService

logger = logging.getLogger(__name__)


async def _init(service: CategorizationService, args: argparse.Namespace) -> int:
    categories = await service.category_repo.list_ordered()
    print(f"Store ready: {len(categories)} categories")
    return 0


async def _classify(service: CategorizationService, args: argparse.Namespace) -> int:
    is_expense = None if args.amount is None else args.amount < 0
    category = await service.classify(args.description, args.type, is_expense)
    print(category or "")
    return 0


async def _reapply(service: CategorizationService, args: argparse.Namespace) -> int:
    updated = await service.reapply_learned_rules()
    print(f"{updated} transactions updated")
    return 0


async def _recategorize(service: CategorizationService, args: argparse.Namespace) -> int:
    result = await service.recategorize_all()
    print(f"{result.updated}/{result.total} transactions recategorized")
    return 0


async def _learn_all(service: CategorizationService, args: argparse.Namespace) -> int:
    result = await service.learn_from_all_corrections()
    print(f"{result.rules_created} rules learned, {result.transactions_updated} transactions updated")
    return 0


async def _list_rules(service: CategorizationService, args: argparse.Namespace) -> int:
    for rule in map(RuleRead.model_validate, await service.list_rules()):
        state = "active" if rule.is_active else "inactive"
        print(f"{rule.id}  {rule.priority:>4}  {rule.field:<11}  {rule.pattern}  ->  {rule.category_id}  ({state})")
    return 0


async def _add_rule(service: CategorizationService, args: argparse.Namespace) -> int:
    rule = await service.add_rule(
        RuleCreate(
            pattern=args.pattern,
            category_id=args.category,
            field=args.field,
            priority=args.priority,
        )
    )
    print(rule.id)
    return 0


async def _delete_rule(service: CategorizationService, args: argparse.Namespace) -> int:
    await service.delete_rule(args.rule_id)
    print(f"Deleted {args.rule_id}")
    return 0


COMMANDS = {
    "init": _init,
    "classify": _classify,
    "reapply": _reapply,
    "recategorize": _recategorize,
    "learn-all": _learn_all,
    "rules": _list_rules,
    "add-rule": _add_rule,
    "delete-rule": _delete_rule,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="budgetlens", description="Local transaction categorizer")
    parser.add_argument("--database-url", help="Override the store URL (default from settings)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the store and seed default categories")

    classify = sub.add_parser("classify", help="Classify one description")
    classify.add_argument("description")
    classify.add_argument("--type", help="Bank transaction type")
    classify.add_argument("--amount", type=Decimal, help="Signed amount; negative for expenses")

    sub.add_parser("reapply", help="Apply learned rules to unedited transactions")
    sub.add_parser("recategorize", help="Recompute every unedited transaction")
    sub.add_parser("learn-all", help="Learn rules from every manual correction, then reapply")
    sub.add_parser("rules", help="List rules in evaluation order")

    add_rule = sub.add_parser("add-rule", help="Create a rule")
    add_rule.add_argument("pattern", help="Regular expression, case-insensitive")
    add_rule.add_argument("category", help="Target category id")
    add_rule.add_argument("--field", choices=["description", "type"], default="description")
    add_rule.add_argument("--priority", type=int, default=settings.learned_rule_priority)

    delete_rule = sub.add_parser("delete-rule", help="Delete a rule")
    delete_rule.add_argument("rule_id", type=UUID)

    return parser


async def run(args: argparse.Namespace) -> int:
    engine = make_engine(args.database_url)
    session_factory = make_sessionmaker(engine)
    try:
        await init_db(engine, session_factory)
        patterns = load_pattern_table(settings.patterns_file) if settings.patterns_file else None
        cache = CategorizerCache(patterns=patterns, fallback_category=settings.fallback_category)
        async with session_factory() as session:
            service = CategorizationService(session, cache)
            return await COMMANDS[args.command](service, args)
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    level = args.log_level or ("DEBUG" if settings.debug else settings.log_level)
    setup_logging(level, settings.log_file)

    try:
        return asyncio.run(run(args))
    except CategorizationError as e:
        logger.error("Command failed", extra={"error_code": e.error_code, **e.details})
        print(f"Error [{e.error_code}]: {get_user_message(e.error_code)}", file=sys.stderr)
        print(get_suggestion(e.error_code), file=sys.stderr)
        return 75 if is_retryable(e.error_code) else 1


if __name__ == "__main__":
    sys.exit(main())
