from __future__ import annotations

import random
from typing import Optional, Sequence

from ..core.constants import LIVENESS_ACTIONS
from ..core.enums import LivenessAction


def choose_challenge(
    rng: Optional[random.Random] = None,
    actions: Sequence[LivenessAction] = LIVENESS_ACTIONS,
) -> LivenessAction:
    """Uniform draw from the liveness vocabulary.

    Pass a seeded ``random.Random`` for reproducible draws.
    """
    return (rng or random).choice(list(actions))
