"""
Hold Timer Service

State machine that turns a stream of match/no-match ticks into a
completed hold. Transitions are pure: each tick takes a ChallengeState
and returns a new one, so there is no timer callback holding on to
values from a previous pose.

    IDLE --match--> HOLDING --match, hold >= target--> COMPLETE
      ^                |                                  |
      +----no match----+                                  |
      +-------------------- reset / re-arm ---------------+
"""

from dataclasses import dataclass, replace
from typing import Optional

from ..domain.challenge import ChallengeState, HoldPhase

# Hold time is kept in microsecond fixed point so repeated 0.1 s ticks
# land exactly on the target instead of drifting below it.
_HOLD_TIME_DIGITS = 6


@dataclass(frozen=True)
class HoldTick:
    """
    Outcome of one tick.

    Attributes:
        state: The state after the tick
        completed_pose_index: Pose that was just completed, or None
    """
    state: ChallengeState
    completed_pose_index: Optional[int] = None

    @property
    def completed(self) -> bool:
        return self.completed_pose_index is not None


class HoldTimer:
    """
    Pure hold timer transitions.

    Usage:
        state = HoldTimer.arm(target_time=5.0, pose_index=0)
        result = HoldTimer.tick(state, is_match=True, tick_delta=0.1)
        if result.completed:
            award(result.completed_pose_index)
        state = result.state
    """

    @staticmethod
    def arm(target_time: float, pose_index: int) -> ChallengeState:
        """Fresh IDLE state for a pose."""
        return ChallengeState(target_time=target_time, pose_index=pose_index)

    @staticmethod
    def reset(state: ChallengeState) -> ChallengeState:
        """Back to IDLE for the same pose and target."""
        return HoldTimer.arm(state.target_time, state.pose_index)

    @staticmethod
    def tick(state: ChallengeState, is_match: bool, tick_delta: float) -> HoldTick:
        """
        Advance the timer by one tick.

        Args:
            state: Current state
            is_match: Most recent match signal
            tick_delta: Seconds represented by this tick

        Returns:
            HoldTick with the new state; completion fires at most once
            per armed state.
        """
        if state.phase == HoldPhase.COMPLETE:
            return HoldTick(state)

        if not is_match:
            if state.phase == HoldPhase.HOLDING:
                return HoldTick(replace(state, phase=HoldPhase.IDLE, hold_time=0.0))
            return HoldTick(state)

        # Entering HOLDING restarts the count from zero
        held = state.hold_time if state.phase == HoldPhase.HOLDING else 0.0
        new_time = round(held + tick_delta, _HOLD_TIME_DIGITS)

        if new_time >= state.target_time:
            done = replace(state, phase=HoldPhase.COMPLETE, hold_time=new_time)
            return HoldTick(done, completed_pose_index=state.pose_index)

        return HoldTick(replace(state, phase=HoldPhase.HOLDING, hold_time=new_time))
