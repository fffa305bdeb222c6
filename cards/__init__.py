"""
Spaced repetition flashcards with an FSRS memory model.

Subpackages and modules:
    cards.fsrs        memory model, scheduler, SQL persistence
    cards.lifecycle   triage/review transitions on card snapshots
    cards.due_queue   due queue and badge counters
    cards.service     read -> compute -> write orchestration
    cards.cli         `cards` command
"""

__version__ = "0.1.0"
