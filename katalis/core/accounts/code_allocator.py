# ======================================
# katalis/core/accounts/code_allocator.py
# ======================================

import logging
from typing import Iterable

from katalis.core.accounts.chart import BLOCK_SIZE, parse_code
from katalis.core.errors import RangeExhausted

logger = logging.getLogger(__name__)


def next_child_code(parent_code, existing_codes: Iterable = ()) -> str:
    """
    Pick the next free child code inside the parent's block.

    Preference order
    ----------------
    1. round hundreds : parent+100, +200, ... +900
    2. round tens     : parent+10, +20, ... +990
    3. any slot       : parent+1 ... parent+999

    Raises RangeExhausted when all 999 slots are used.

    >>> next_child_code("5000", ["5100", "5200"])
    '5300'
    """
    parent = parse_code(parent_code)

    taken = set()
    for code in existing_codes:
        text = str(code).strip()
        if text.isdigit():
            taken.add(int(text))

    for step in (100, 10, 1):
        for offset in range(step, BLOCK_SIZE + 1, step):
            candidate = parent + offset
            if candidate not in taken:
                logger.debug(
                    "allocated code %s under %s (step %s)", candidate, parent_code, step
                )
                return str(candidate)

    raise RangeExhausted(parent_code)


def next_child_code_for(parent, accounts) -> str:
    """
    Same as next_child_code for an Account parent.
    Codes are unique per business, so every code of the parent's business
    counts as taken (grandchildren also sit inside the block).
    """
    taken = [
        a.account_code for a in accounts
        if a.business_id == parent.business_id
    ]
    return next_child_code(parent.account_code, taken)

# ============= end code_allocator.py
