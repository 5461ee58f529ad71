"""
Context Enhancer

Short follow-ups ("and last month?", "what about food") only make sense
next to what was asked before. For those, a few keywords from the
user's recent turns are appended so structural matching can see the
subject of the conversation.
"""

from typing import Optional

from finchat.intents.text import STOP_WORDS, tokenize
from finchat.models.conversation import ConversationWindow


MIN_KEYWORD_LENGTH = 4
KEYWORDS_PER_TURN = 5
MAX_ADDED_KEYWORDS = 3
SHORT_QUERY_TOKENS = 4


def context_keywords(window: ConversationWindow) -> list[str]:
    """Keywords from the user's turns, oldest first, at most five per turn."""
    keywords: list[str] = []
    for turn in window.user_turns():
        words = [
            word for word in tokenize(turn.text)
            if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
        ]
        keywords.extend(words[:KEYWORDS_PER_TURN])
    return keywords


def enhance_query(query: str, window: Optional[ConversationWindow]) -> tuple[str, list[str]]:
    """
    Fold conversation keywords into a short query.

    Returns:
        (contextual query, keywords that were added). Long queries and
        queries with no usable history come back unchanged.
    """
    if window is None or window.is_empty:
        return query, []

    keywords = context_keywords(window)
    if not keywords or len(query.split(" ")) >= SHORT_QUERY_TOKENS:
        return query, []

    added = keywords[:MAX_ADDED_KEYWORDS]
    return f"{query} {' '.join(added)}", added
