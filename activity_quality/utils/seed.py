from __future__ import annotations

import logging
import os
import random

import numpy as np

log = logging.getLogger(__name__)


def set_global_seed(seed: int) -> int:
    """Seed Python, NumPy and hashing. Estimators and splits also receive the seed explicitly."""
    seed = int(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)
    log.debug("Global seed set to %d", seed)
    return seed
