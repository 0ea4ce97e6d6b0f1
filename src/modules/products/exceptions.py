"""Product persistence exceptions."""

from __future__ import annotations

from typing import List


class StaleStock(Exception):
    """A conditional stock update found a different quantity than expected.

    Another writer changed the product stock between the read and the
    write.  ``product_ids`` lists every product whose update was rejected.
    """

    def __init__(self, product_ids: List[str]) -> None:
        self.product_ids = product_ids
        super().__init__(f"Stock changed concurrently for {', '.join(product_ids)}.")
