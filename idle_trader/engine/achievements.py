"""Achievement engine: generic scanner over the achievement rule table."""

from __future__ import annotations

from datetime import datetime

from loguru import logger

from idle_trader.catalog import Achievement, Catalog
from idle_trader.models import ActionResult, AchievementProgress, GameState, RejectReason


def evaluate(state: GameState, catalog: Catalog, *, now: datetime) -> list[Achievement]:
    """Unlock every achievement whose predicate now holds.

    Missing progress records are created first. Unlocks are never reverted and
    re-evaluating an unchanged state unlocks nothing. Returns new unlocks.
    """
    progress_by_id = {progress.id: progress for progress in state.achievements}
    newly_unlocked: list[Achievement] = []
    for definition in catalog.achievements:
        progress = progress_by_id.get(definition.id)
        if progress is None:
            progress = AchievementProgress(id=definition.id)
            state.achievements.append(progress)
            progress_by_id[definition.id] = progress
        if progress.unlocked or progress.reward_claimed:
            continue
        if definition.predicate(state):
            progress.unlocked = True
            progress.unlocked_at = now
            newly_unlocked.append(definition)
            logger.info("Achievement unlocked: {} (+{} tokens)", definition.name, definition.reward)
    return newly_unlocked


def claim_reward(state: GameState, catalog: Catalog, achievement_id: str) -> ActionResult:
    """Credit the token reward of an unlocked, unclaimed achievement."""
    definition = catalog.achievement(achievement_id)
    if definition is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_ACHIEVEMENT)
    progress = state.achievement(achievement_id)
    if progress is None or not progress.unlocked:
        return ActionResult.rejected(RejectReason.ACHIEVEMENT_LOCKED)
    if progress.reward_claimed:
        return ActionResult.rejected(RejectReason.REWARD_ALREADY_CLAIMED)

    progress.reward_claimed = True
    state.boost_tokens += definition.reward
    logger.info(
        "Achievement reward claimed: {} (+{} tokens, balance {})",
        definition.id,
        definition.reward,
        state.boost_tokens,
    )
    return ActionResult(ok=True)
