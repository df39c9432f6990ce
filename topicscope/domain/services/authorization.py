"""Topic permission lookups for the requesting principal."""
from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable, List, Mapping

TOPIC_ACTIONS_CLAIM = "topic_actions"


class StaticTopicAuthorizer:
    """Grants the same actions on every topic."""

    def __init__(self, actions: Iterable[str] = ("all",)) -> None:
        self._actions = list(actions)

    def allowed_topic_actions(self, topic_name: str) -> List[str]:
        return list(self._actions)


class ClaimsTopicAuthorizer:
    """Grants actions from a ``{glob: [actions]}`` map carried in JWT claims.

    Actions of every matching pattern are merged, keeping first-seen order.
    A topic no pattern matches gets no actions.
    """

    def __init__(self, rules: Mapping[str, Iterable[str]]) -> None:
        self._rules = [
            (pattern, [actions] if isinstance(actions, str) else list(actions))
            for pattern, actions in rules.items()
        ]

    def allowed_topic_actions(self, topic_name: str) -> List[str]:
        out: list[str] = []
        for pattern, actions in self._rules:
            if fnmatchcase(topic_name, pattern):
                out.extend(a for a in actions if a not in out)
        return out


def authorizer_for_claims(claims: Dict[str, Any] | None, default_actions: Iterable[str]):
    """Pick the authorizer matching *claims* (falls back to *default_actions*)."""
    rules = (claims or {}).get(TOPIC_ACTIONS_CLAIM)
    if isinstance(rules, dict):
        return ClaimsTopicAuthorizer(rules)
    return StaticTopicAuthorizer(default_actions)
