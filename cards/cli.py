"""
Command-line interface for the card store.

Usage:
    cards init-db
    cards add "What does FSRS stand for?" --context "Free Spaced Repetition Scheduler" --tag srs
    cards list [--status triaging|active|suspended]
    cards accept CARD_ID
    cards skip CARD_ID
    cards edit CARD_ID [--front TEXT] [--context TEXT] [--tag TAG ...] [--status STATUS]
    cards due
    cards counts
    cards review CARD_ID good [--answer TEXT]
    cards evaluate CARD_ID "my answer"
    cards delete CARD_ID

Set DEFAULT_USER_ID (or pass --user) to scope every command to one owner.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from cards import config
from cards.card import Card
from cards.errors import CardError
from cards.fsrs import database
from cards.fsrs.constants import CardStatus
from cards.grader import OpenAIGrader
from cards.rating_policy import suggest_rating
from cards.schemas import CardCreate, CardEdit, EvaluateRequest, ReviewRequest
from cards.service import CardService

logger = logging.getLogger(__name__)


def _format_card(card: Card) -> str:
    tags = f" [{', '.join(card.tags)}]" if card.tags else ""
    return (
        f"{card.id}  {card.status.value:<9}  {card.state.value:<10}  "
        f"due {card.due:%Y-%m-%d %H:%M}  {card.front}{tags}"
    )


def _cmd_init_db(service: CardService, args) -> int:
    database.init_db()
    print(f"✓ Database ready: {config.get_database_url()}")
    return 0


def _cmd_add(service: CardService, args) -> int:
    request = CardCreate(front=args.front, context=args.context, tags=args.tag or None)
    created = service.create_cards([request])
    for card in created:
        print(f"✓ Created {card.id} (triaging)")
    return 0


def _cmd_list(service: CardService, args) -> int:
    status = CardStatus(args.status) if args.status else None
    cards = service.list_cards(status)
    if not cards:
        print("No cards")
        return 0
    for card in cards:
        print(_format_card(card))
    return 0


def _cmd_accept(service: CardService, args) -> int:
    card = service.accept(args.card_id)
    print(f"✓ Accepted {card.id}")
    return 0


def _cmd_skip(service: CardService, args) -> int:
    card = service.skip(args.card_id)
    print(f"✓ Suspended {card.id}")
    return 0


def _cmd_edit(service: CardService, args) -> int:
    fields = {
        key: value
        for key, value in (
            ("front", args.front),
            ("context", args.context),
            ("tags", args.tag),
            ("status", args.status),
        )
        if value is not None
    }
    if not fields:
        print("Nothing to change")
        return 1
    changes = CardEdit(**fields).changes()
    card = service.edit(args.card_id, changes)
    print(_format_card(card))
    return 0


def _cmd_due(service: CardService, args) -> int:
    result = service.due()
    for card in result.cards:
        print(_format_card(card))
    print(f"\n{len(result.cards)} due, {result.upcoming_count} upcoming")
    if result.next_due is not None:
        print(f"Next due: {result.next_due:%Y-%m-%d %H:%M} UTC")
    return 0


def _cmd_counts(service: CardService, args) -> int:
    counts = service.counts()
    print(f"New (triaging): {counts.new}")
    print(f"Due:            {counts.due}")
    return 0


def _cmd_review(service: CardService, args) -> int:
    request = ReviewRequest(rating=args.rating, answer=args.answer)
    outcome = service.review(args.card_id, request.to_rating(), answer=request.answer)
    card = outcome.card
    print(
        f"✓ {outcome.review_log.rating.label}: {card.state.value}, "
        f"next due {card.due:%Y-%m-%d %H:%M} UTC "
        f"(stability {card.schedule.stability:.2f}, difficulty {card.schedule.difficulty:.2f})"
    )
    return 0


def _cmd_evaluate(service: CardService, args) -> int:
    request = EvaluateRequest(answer=args.answer)
    result = service.evaluate(args.card_id, request.answer)
    print(f"Score: {result.score:.2f} (suggested rating: {suggest_rating(result.score).label})")
    print(f"Feedback: {result.feedback}")
    return 0


def _cmd_delete(service: CardService, args) -> int:
    service.delete(args.card_id)
    print(f"✓ Deleted {args.card_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cards", description="Spaced repetition flashcards")
    parser.add_argument("--user", help="Owner id (default: DEFAULT_USER_ID or 'local')")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create tables if missing")
    p.set_defaults(handler=_cmd_init_db)

    p = sub.add_parser("add", help="Add a card for triage")
    p.add_argument("front")
    p.add_argument("--context")
    p.add_argument("--tag", action="append", help="Tag (repeatable)")
    p.set_defaults(handler=_cmd_add)

    p = sub.add_parser("list", help="List cards")
    p.add_argument("--status", choices=[s.value for s in CardStatus])
    p.set_defaults(handler=_cmd_list)

    for name, handler, help_text in (
        ("accept", _cmd_accept, "Move a triaging card into review"),
        ("skip", _cmd_skip, "Suspend a triaging card"),
        ("delete", _cmd_delete, "Delete a card and its history"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("card_id")
        p.set_defaults(handler=handler)

    p = sub.add_parser("edit", help="Edit content or status")
    p.add_argument("card_id")
    p.add_argument("--front")
    p.add_argument("--context")
    p.add_argument("--tag", action="append", help="Replace tags (repeatable)")
    p.add_argument("--status", choices=[s.value for s in CardStatus])
    p.set_defaults(handler=_cmd_edit)

    p = sub.add_parser("due", help="Show cards due now")
    p.set_defaults(handler=_cmd_due)

    p = sub.add_parser("counts", help="Show badge counts")
    p.set_defaults(handler=_cmd_counts)

    p = sub.add_parser("review", help="Rate a card")
    p.add_argument("card_id")
    p.add_argument("rating", help="again, hard, good or easy")
    p.add_argument("--answer", help="Your answer, stored with the review")
    p.set_defaults(handler=_cmd_review)

    p = sub.add_parser("evaluate", help="Grade an answer with the LLM (advisory)")
    p.add_argument("card_id")
    p.add_argument("answer")
    p.set_defaults(handler=_cmd_evaluate)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config.configure_logging(args.log_level)

    grader = OpenAIGrader() if args.command == "evaluate" else None
    service = CardService(user_id=args.user, grader=grader)

    if args.command != "init-db":
        database.init_db()

    try:
        return args.handler(service, args)
    except ValidationError as e:
        print(f"✗ Invalid input: {e}", file=sys.stderr)
        return 2
    except CardError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
