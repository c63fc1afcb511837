from __future__ import annotations

import re

from research_router.models.research import ResearchAction

# Evaluated in order; each rule fires at most once.
_RECENCY = re.compile(r"\b(202[4-6]|latest|recent|year-end)\b", re.IGNORECASE)
_COMPARISON = re.compile(r"\b(vs|versus|compare|comparison)\b", re.IGNORECASE)
_MULTI_STEP = re.compile(
    r"\b(implications|impact|pipeline|architecture|multi-step|workflow)\b", re.IGNORECASE
)
_STACK_PRODUCTS = re.compile(
    r"\b(azure|oracle|elastic|postgres|pgvector|opensearch)\b", re.IGNORECASE
)
_VERIFICATION = re.compile(
    r"\b(fact-check|verify|source|citation|security|malware|phishing)\b", re.IGNORECASE
)


def plan_actions(sanitized_query: str) -> list[ResearchAction]:
    """Map a sanitized query to an ordered list of research actions.

    Always starts with ``plan``, always contains ``hybrid-search`` and always
    ends with ``exploratory-browse``.
    """
    lc = sanitized_query.lower()
    actions = [ResearchAction.PLAN]

    if _RECENCY.search(lc):
        actions.append(ResearchAction.UPDATE_CHECK)
    if _COMPARISON.search(lc):
        actions.append(ResearchAction.CONTRASTIVE)
    if _MULTI_STEP.search(lc):
        actions.append(ResearchAction.MULTI_HOP)

    actions.append(ResearchAction.HYBRID_SEARCH)

    if _STACK_PRODUCTS.search(lc):
        actions.append(ResearchAction.FOCUSED_SEARCH)
    if _VERIFICATION.search(lc):
        actions.append(ResearchAction.FACT_CHECK)
        actions.append(ResearchAction.SOURCE_AUDIT)

    actions.append(ResearchAction.EXPLORATORY_BROWSE)
    return actions


def select_primary_action(actions: list[ResearchAction]) -> ResearchAction:
    """``hybrid-search`` when planned, otherwise the last planned action."""
    if ResearchAction.HYBRID_SEARCH in actions:
        return ResearchAction.HYBRID_SEARCH
    if not actions:
        raise ValueError("cannot select a primary action from an empty plan")
    return actions[-1]
