"""Repair client-supplied chat history into a form the chat model accepts."""
from dataclasses import replace
from typing import Any, List, Sequence

from models.conversation import ChatTurn, USER, ASSISTANT


def parse_history(raw_history: Sequence[Any]) -> List[ChatTurn]:
    """Convert widget payload items to ChatTurns, skipping malformed items."""
    turns = []
    for item in raw_history:
        turn = ChatTurn.from_dict(item)
        if turn is not None:
            turns.append(turn)
    return turns


def truncate_history(turns: Sequence[ChatTurn], limit: int) -> List[ChatTurn]:
    """Keep only the most recent ``limit`` turns."""
    if limit <= 0:
        return []
    return list(turns[-limit:])


def normalize_history(turns: Sequence[ChatTurn]) -> List[ChatTurn]:
    """
    Make history start with a user turn and use only user/assistant roles.

    Leading assistant turns (e.g. the widget's welcome bubble) are dropped.
    Returns an empty list when there is no user turn at all. The input is not
    modified, and already-valid history comes back unchanged.
    """
    collapsed = [
        turn if turn.role in (USER, ASSISTANT) else replace(turn, role=ASSISTANT)
        for turn in turns
    ]

    for index, turn in enumerate(collapsed):
        if turn.role == USER:
            return collapsed[index:]
    return []
