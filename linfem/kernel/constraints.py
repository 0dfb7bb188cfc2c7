# linfem/kernel/constraints.py
"""Multi-freedom constraint collection for Lagrange-multiplier assembly."""

import logging
from typing import List, Sequence

from ..loads import Load, LoadKind, MultiFreedomConstraint

logger = logging.getLogger(__name__)


def collect_mfcs(loads: Sequence[Load]) -> List[MultiFreedomConstraint]:
    """
    Scan the load list once and number every multi-freedom constraint.

    Each MFC gets `index` = its ordinal among the MFCs (0, 1, 2, ... in load
    list order). Other loads are ignored. The returned list is ordered by
    index, so NMFC = len(result) and the system order is NGFN + NMFC.
    """
    mfcs = []
    for load in loads:
        if load.kind is LoadKind.MFC:
            load.index = len(mfcs)
            mfcs.append(load)

    logger.debug("Collected %d multi-freedom constraints", len(mfcs))
    return mfcs
