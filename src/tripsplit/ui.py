"""Interactive UI components for picking users and trips."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Trip, User

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="al" matches "Alice"
        query="bch" matches "Beach weekend"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class NameCompleter(Completer):
    """Fuzzy search completer over labelled ids."""

    def __init__(self, entries: list[tuple[int, str]]):
        """Initialize the completer with (id, name) pairs."""
        # Labels carry the id so that duplicate names stay distinguishable
        self.label_to_id = {f"{name} (#{entry_id})": entry_id for entry_id, name in entries}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for label in self.label_to_id:
            if not query or fuzzy_match(query, label.lower()):
                yield Completion(
                    text=label,
                    start_position=-len(document.text),
                    display=label,
                )

    def resolve(self, text: str) -> int | None:
        """Map a completed label, or a bare id, back to its id."""
        if text in self.label_to_id:
            return self.label_to_id[text]
        if text.isdigit() and int(text) in self.label_to_id.values():
            return int(text)
        return None


def select_participants_interactive(
    users: list[User], payer_id: int | None = None
) -> list[int]:
    """
    Interactive participant selection with fuzzy search.

    The payer is pre-selected. Each prompt adds one user; an empty line
    finishes the selection.

    Args:
        users: Registered users
        payer_id: Optional payer to include up front

    Returns:
        Selected user IDs (empty if the user cancelled)
    """
    completer = NameCompleter([(user.id, user.name) for user in users])
    session: PromptSession[str] = PromptSession(completer=completer)

    selected: list[int] = []
    if payer_id is not None and payer_id in completer.label_to_id.values():
        selected.append(payer_id)

    print("\n👥 Choose who shares this expense")
    print("   Type to search, Enter to add, empty line to finish, Ctrl+C to cancel\n")

    try:
        while True:
            if selected:
                print(f"   Selected: {', '.join(str(uid) for uid in selected)}")

            result = session.prompt("Participant: ", complete_while_typing=True)
            if not result:
                return selected

            user_id = completer.resolve(result.strip())
            if user_id is None:
                print("❌ Unknown user. Pick from the list or press Tab to complete.")
                continue

            if user_id not in selected:
                selected.append(user_id)
                logger.debug(f"Added participant {user_id}")

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return []
    except EOFError:
        return selected


def select_trip_interactive(trips: list[Trip]) -> int | None:
    """
    Interactive trip selection with fuzzy search.

    Returns:
        Selected trip ID, or None to cancel
    """
    if not trips:
        return None

    completer = NameCompleter([(trip.id, trip.name) for trip in trips])
    session: PromptSession[str] = PromptSession(completer=completer)

    print("\n🧳 Choose a trip")
    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    try:
        while True:
            result = session.prompt("Trip: ", complete_while_typing=True)
            if not result:
                return None

            trip_id = completer.resolve(result.strip())
            if trip_id is not None:
                return trip_id

            print("❌ Unknown trip. Pick from the list or press Tab to complete.")

    except KeyboardInterrupt:
        print("\n⏭️  Cancelled")
        return None
    except EOFError:
        return None
